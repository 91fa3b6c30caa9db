"""Issue a locally signed identity token for development.

Only meaningful with ``IDENTITY_PROVIDER=local``; the token is signed
with ``IDENTITY_SECRET_KEY``.

Usage:
    python create_token.py admin@example.com [lifetime_seconds]
"""
import sys

from contest_arena_api.app.core.config import settings
from contest_arena_api.app.core.security import SignedTokenVerifier

if len(sys.argv) < 2:
    sys.exit(__doc__)

verifier = SignedTokenVerifier(settings.identity_secret_key, audience=settings.identity_audience)
lifetime = int(sys.argv[2]) if len(sys.argv) > 2 else 365 * 24 * 60 * 60
print(verifier.issue(sys.argv[1].strip().lower(), expires_in=lifetime))
