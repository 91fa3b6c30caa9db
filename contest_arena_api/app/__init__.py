"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (users, contests, payments, creator
applications) owns a repository for persistence, a service holding the
business rules and a router defined in ``api/v1/endpoints``.  Services
are built once per process by ``core.container`` and handed to the
routes through FastAPI dependencies, so nothing reaches for a global
connection.
"""

from .main import app, create_app  # noqa: F401
