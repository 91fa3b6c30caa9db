"""
Identity verification and the authorization gate.

Identity verification turns a bearer credential into a verified
subject email.  Two verifiers are provided:

* ``SignedTokenVerifier`` checks HS256 JSON Web Tokens signed with a
  shared secret (header and payload base64url encoded, HMAC‑SHA256
  signature, ``exp`` and optional ``aud`` claims).  It can also issue
  such tokens, which is what local development and the test suite use.
* ``TokenInfoVerifier`` delegates to the external identity provider's
  token-info endpoint over ``httpx`` and accepts the token only if the
  provider vouches for it and the audience matches.

Verification failures are terminal for the request: nothing here
retries.

The authorization gate is a set of FastAPI dependencies:
``get_current_user`` (authenticated), ``require_admin`` and
``require_creator_or_admin``, all built on ``require_roles``.  Role
lookups go through the process-owned ``UserService`` found on
``request.app.state.container``.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .errors import Forbidden, GatewayError, Unauthenticated
from .roles import ADMIN_ONLY, CREATOR_OR_ADMIN, Role, has_capability


logger = logging.getLogger(__name__)


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


class IdentityVerifier(ABC):
    """Turns a credential string into a verified subject email."""

    @abstractmethod
    async def verify(self, credential: Optional[str]) -> str:
        """Return the subject email or raise ``Unauthenticated``."""


class SignedTokenVerifier(IdentityVerifier):
    """Verify (and issue) HS256 tokens signed with a shared secret."""

    def __init__(self, secret_key: str, audience: str = "", expire_seconds: int = 24 * 60 * 60) -> None:
        self._secret = secret_key.encode("utf-8")
        self._audience = audience
        self._expire_seconds = expire_seconds

    def _sign(self, message: bytes) -> bytes:
        return hmac.new(self._secret, message, hashlib.sha256).digest()

    def issue(self, email: str, expires_in: Optional[int] = None, **claims: Any) -> str:
        """Create a signed token whose subject is ``email``.

        ``exp`` is set ``expires_in`` seconds from now (default: the
        configured lifetime); ``aud`` is added when an audience is
        configured.  Extra claims are embedded as given.
        """
        payload: Dict[str, Any] = {"sub": email, "email": email, **claims}
        if self._audience and "aud" not in payload:
            payload["aud"] = self._audience
        lifetime = self._expire_seconds if expires_in is None else expires_in
        payload["exp"] = int(time.time()) + lifetime
        header = {"alg": "HS256", "typ": "JWT"}
        header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
        payload_b64 = _b64_url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        signature = self._sign(f"{header_b64}.{payload_b64}".encode("utf-8"))
        return f"{header_b64}.{payload_b64}.{_b64_url_encode(signature)}"

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the verified payload, or ``None`` if the token is not acceptable."""
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        try:
            actual_sig = _b64_url_decode(signature_b64)
            expected_sig = self._sign(f"{header_b64}.{payload_b64}".encode("utf-8"))
            # Constant‑time comparison to prevent timing attacks
            if not hmac.compare_digest(expected_sig, actual_sig):
                return None
            data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(data, dict):
            return None
        exp = data.get("exp")
        if not isinstance(exp, (int, float)) or int(exp) < int(time.time()):
            return None
        if self._audience and data.get("aud") != self._audience:
            return None
        return data

    async def verify(self, credential: Optional[str]) -> str:
        if not credential:
            raise Unauthenticated("Not authenticated")
        payload = self.decode(credential)
        if not payload:
            raise Unauthenticated("Invalid or expired token")
        email = payload.get("email") or payload.get("sub")
        if not email:
            raise Unauthenticated("Token carries no subject")
        return str(email).lower()


class TokenInfoVerifier(IdentityVerifier):
    """Ask the identity provider whether a token is valid.

    The provider answers ``GET <tokeninfo_url>?id_token=<token>`` with the
    token's claims (HTTP 200) or an error status.  The token is accepted
    only on 200 with a matching ``aud`` and a non-empty ``email``.  A
    provider that cannot be reached is a ``GatewayError`` (502), not a
    verdict on the token.
    """

    def __init__(
        self,
        tokeninfo_url: str,
        audience: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = tokeninfo_url
        self._audience = audience
        self._timeout = timeout
        self._transport = transport

    async def verify(self, credential: Optional[str]) -> str:
        if not credential:
            raise Unauthenticated("Not authenticated")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url, params={"id_token": credential})
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise GatewayError("Identity provider unavailable") from exc
        if response.status_code != 200:
            raise Unauthenticated("Invalid or expired token")
        try:
            claims = response.json()
        except ValueError as exc:
            raise Unauthenticated("Malformed identity provider response") from exc
        if self._audience and claims.get("aud") != self._audience:
            raise Unauthenticated("Token issued for another audience")
        email = claims.get("email")
        if not email:
            raise Unauthenticated("Token carries no email")
        return str(email).lower()


def build_verifier(settings: Settings) -> IdentityVerifier:
    """Create the verifier selected by ``settings.identity_provider``."""
    if settings.identity_provider == "tokeninfo":
        return TokenInfoVerifier(
            settings.identity_tokeninfo_url,
            settings.identity_audience,
            timeout=settings.identity_timeout,
        )
    return SignedTokenVerifier(
        settings.identity_secret_key,
        audience=settings.identity_audience,
        expire_seconds=settings.access_token_expire_minutes * 60,
    )


security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Dependency that requires a verified identity.

    Returns a context dict with the verified subject email under
    ``sub``.  Missing or invalid credentials raise ``Unauthenticated``
    (HTTP 401).
    """
    verifier: IdentityVerifier = request.app.state.container.verifier
    token = credentials.credentials if credentials is not None else None
    email = await verifier.verify(token)
    return {"sub": email}


def require_roles(*roles: Role) -> Callable[..., Any]:
    """Dependency factory enforcing that the caller holds one of ``roles``.

    Runs ``get_current_user`` first, then looks up the caller's user
    record.  An unknown user or a role outside ``roles`` raises
    ``Forbidden`` (HTTP 403).  On success the context gains ``user_id``
    and ``role``.
    """
    required: Iterable[Role] = frozenset(roles)

    async def _role_dependency(
        request: Request,
        current_user: Dict[str, Any] = Depends(get_current_user),
    ) -> Dict[str, Any]:
        users = request.app.state.container.users
        user = await users.find_by_email(current_user["sub"])
        if user is None or not has_capability(user.role, required):
            raise Forbidden("Insufficient permissions")
        return {**current_user, "user_id": user.id, "role": user.role}

    return _role_dependency


require_admin = require_roles(*ADMIN_ONLY)
require_creator_or_admin = require_roles(*CREATOR_OR_ADMIN)
