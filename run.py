"""Entry point for serving the Contest Arena API.

Host, port and log level come from the same environment variables as
the rest of the settings (``HOST``, ``PORT``, ``LOG_LEVEL``), which can
be placed in the process environment by the deployment platform.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from contest_arena_api.app.core.config import settings
from contest_arena_api.app.main import app


async def main() -> None:
    """Serve the API until the process is stopped."""
    config = Config(app=app, host=settings.host, port=settings.port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    logging.getLogger(__name__).info("Serving %s on %s:%s", settings.project_name, settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
