"""
Error taxonomy shared by services and routes.

Services raise one of the exceptions below instead of building HTTP
responses themselves.  Each class fixes the HTTP status; each instance
carries a short machine-readable ``code`` (for example
``PaymentNotCompleted``) and a human message.  ``register_error_handlers``
installs the FastAPI handlers that turn them, request validation
failures and any unexpected exception into a JSON body of the form
``{"error": <code>, "detail": <message>}``.
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class ArenaError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "InternalError"

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.code = code or self.default_code

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class InvalidInput(ArenaError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "InvalidInput"


class Unauthenticated(ArenaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "Unauthenticated"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(ArenaError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "Forbidden"


class NotFound(ArenaError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NotFound"


class GatewayError(ArenaError):
    """An external provider (payment gateway) call failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "GatewayError"


class InternalError(ArenaError):
    pass


def error_body(code: str, detail: str) -> Dict[str, str]:
    return {"error": code, "detail": detail}


def register_error_handlers(app: FastAPI) -> None:
    """Install JSON error handlers on ``app``.

    Every request failure is answered by its own handler; nothing
    propagates to the server loop, so one failed request never affects
    another.
    """

    @app.exception_handler(ArenaError)
    async def handle_arena_error(request: Request, exc: ArenaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.detail),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("InvalidInput", "; ".join(problems) or "Invalid request"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("InternalError", "Internal server error"),
        )
