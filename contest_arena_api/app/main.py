"""
Main entrypoint for the Contest Arena API.

This module assembles the FastAPI application: logging, storage
migrations, the service container, JSON error handlers and the
versioned router.  The ``create_app`` function builds and configures
the app, which is then instantiated at module import time as ``app``
so it can be served with uvicorn::

    uvicorn contest_arena_api.app.main:app --reload

Collaborators can be replaced by passing them to ``create_app``; the
test suite uses this to supply a temporary database, locally signed
tokens and a fake payment gateway.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.container import build_container
from .core.errors import register_error_handlers
from .core.logging_config import setup_logging
from .core.security import IdentityVerifier
from .services.gateway import PaymentGateway


logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    verifier: Optional[IdentityVerifier] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration; defaults to the environment-derived settings.
    verifier : Optional[IdentityVerifier]
        Identity verifier; defaults to the one selected by settings.
    gateway : Optional[PaymentGateway]
        Payment gateway; defaults to Stripe.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that setup below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    container = build_container(settings, verifier=verifier, gateway=gateway)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(v1_router, prefix=settings.api_prefix)

    # Migrations run on startup, not when the app object is built.
    @app.on_event("startup")
    async def startup_event() -> None:
        version = container.database.init_db()
        logger.info("Database %s at schema version %s", container.database.path, version)

    @app.get("/", tags=["health"])
    async def read_root() -> dict:
        return {"message": f"{settings.project_name} is running"}

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
