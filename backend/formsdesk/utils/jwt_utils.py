"""JWT utilities: HS256 signing and verification of session-bound admin tokens.

A token is only usable while the session named by its ``jti`` claim is live.
:func:`decode_access_token` checks signature and expiry only; session liveness
is checked separately by the request authenticator in ``formsdesk.api.deps``.
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

from jose import JWTError, jwt

from formsdesk.config import settings
from formsdesk.exceptions import ConfigurationError, InvalidToken
from formsdesk.models.admin_user import AdminUser, Role
from formsdesk.utils.logger import logger

_REQUIRED_CLAIMS = ("sub", "email", "name", "role", "jti", "iat", "exp")
_MIN_SECRET_BYTES = 32


class TokenClaims(NamedTuple):
    """Decoded claim set of an admin token."""
    sub: str                  # user id, decimal string
    email: str
    name: str
    role: str                 # superadmin | agency | admin | viewer
    tenant_id: Optional[str]  # None = not scoped to a tenant
    jti: str                  # session id
    iat: int
    exp: int


# ---------------------------------------------------------------------------
# Secret handling
# ---------------------------------------------------------------------------

def signing_secret(secret: Optional[str]) -> str:
    """Return the signing secret or raise ConfigurationError if it is empty"""
    if not secret:
        raise ConfigurationError("JWT secret not configured")
    return secret


def require_signing_secret(secret: Optional[str]) -> str:
    """Startup check: like :func:`signing_secret`, and warn once about a weak secret.

    Called from the app lifespan so a missing secret stops the service from booting.
    """
    secret = signing_secret(secret)
    if len(secret.encode("utf-8")) < _MIN_SECRET_BYTES:
        logger.warning("JWT_SECRET is shorter than 32 bytes; use a longer random value in production")
    return secret


def generate_session_id() -> str:
    """Return an unguessable session id (UUID4), used as the token's jti"""
    return str(uuid.uuid4())


def session_expiry(issued_at: Optional[int] = None) -> datetime:
    """Naive UTC expiry for a session created alongside a token issued at ``issued_at``"""
    issued_at = int(time.time()) if issued_at is None else issued_at
    expires = issued_at + settings.TOKEN_EXPIRE_SECONDS
    return datetime.fromtimestamp(expires, tz=timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def create_access_token(
    user: AdminUser,
    secret: Optional[str],
    session_id: str,
    issued_at: Optional[int] = None,
) -> str:
    """Sign and return a token for ``user`` bound to ``session_id``.

    Args:
        user:        The authenticated AdminUser.
        secret:      HMAC signing key.
        session_id:  Id of the session row created for this login (``jti``).
        issued_at:   Unix seconds; defaults to now.

    Returns:
        Signed JWT string.
    """
    secret = signing_secret(secret)
    now = int(time.time()) if issued_at is None else issued_at

    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": Role(user.role).value,
        "tenant_id": user.tenant_id,
        "jti": session_id,
        "iat": now,
        "exp": now + settings.TOKEN_EXPIRE_SECONDS,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_access_token(token: str, secret: Optional[str]) -> TokenClaims:
    """Verify signature and expiry and return the claims.

    Raises:
        ConfigurationError: the secret is empty.
        InvalidToken: bad signature, malformed token, missing claims,
            unknown role, or expired.
    """
    secret = signing_secret(secret)

    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc

    missing = [claim for claim in _REQUIRED_CLAIMS if claim not in payload]
    if missing:
        raise InvalidToken(f"Token missing claims: {', '.join(missing)}")

    try:
        role = Role(payload["role"]).value
    except ValueError as exc:
        raise InvalidToken(f"Unknown role claim: {payload['role']!r}") from exc

    return TokenClaims(
        sub=str(payload["sub"]),
        email=payload["email"],
        name=payload["name"],
        role=role,
        tenant_id=payload.get("tenant_id"),
        jti=payload["jti"],
        iat=int(payload["iat"]),
        exp=int(payload["exp"]),
    )
