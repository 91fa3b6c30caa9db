"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts in a local development mode (SQLite file next to the
package, locally signed identity tokens).  In a production deployment
override these via environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Contest Arena API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Routes are served from the root by default because browser clients
    # and the checkout redirect target use bare paths such as
    # ``/payment-success``.
    api_prefix: str = os.getenv("API_PREFIX", "")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "contest_arena.db")

    # Externally reachable origin of the web client.  Checkout success and
    # cancel redirects are built from it.
    site_domain: str = os.getenv("SITE_DOMAIN", "http://localhost:5173")
    currency: str = os.getenv("CURRENCY", "usd")
    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")

    # ``local`` verifies HS256 tokens signed with ``identity_secret_key``;
    # ``tokeninfo`` asks the identity provider's token-info endpoint.
    identity_provider: str = os.getenv("IDENTITY_PROVIDER", "local")
    identity_secret_key: str = os.getenv("IDENTITY_SECRET_KEY", "change_me")
    identity_audience: str = os.getenv("IDENTITY_AUDIENCE", "")
    identity_tokeninfo_url: str = os.getenv(
        "IDENTITY_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo"
    )
    identity_timeout: float = float(os.getenv("IDENTITY_TIMEOUT", "10"))
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # The account registered with this email is created as an admin.  It
    # is the only way the first (original) admin comes into existence.
    bootstrap_admin_email: str = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at import time, environment variables should be set
# before importing this module.
settings = Settings()
