"""API dependencies for authentication and authorization.

Every protected endpoint resolves its caller through
:func:`get_current_principal`, which runs the same four steps in order and
stops at the first failure:

1. take the bearer token from ``Authorization: Bearer <token>`` or, failing
   that, from the auth cookie (the header wins when both are sent);
2. no token → 401;
3. signature or expiry check fails → 401;
4. the session named by the token's ``jti`` is gone or expired → 401.

Step 4 is what makes logout and forced revocation effective for a token that
is still cryptographically valid. All four rejections return the same body;
only the logs say which step failed.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from formsdesk.config import settings
from formsdesk.database import get_db
from formsdesk.exceptions import Forbidden, InvalidToken, Unauthenticated
from formsdesk.middleware.monitoring import record_auth_failure
from formsdesk.models.admin_user import Role
from formsdesk.utils.email import EmailService
from formsdesk.utils.jwt_utils import decode_access_token, signing_secret
from formsdesk.utils.logger import logger
from formsdesk.utils.policy import Principal, can_modify, require_user_manager
from formsdesk.utils.sessions import validate_session
from formsdesk.utils.storage import ResumeStorage

_bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Token extraction
# ---------------------------------------------------------------------------

def get_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Bearer header first, then the auth cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials

    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer ") and header[7:].strip():
        return header[7:].strip()

    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


def get_signing_secret() -> str:
    """Resolve the JWT secret; a missing secret is a 500, never a degraded mode."""
    return signing_secret(settings.JWT_SECRET)


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------

def _reject(reason: str, session_id: Optional[str] = None) -> Unauthenticated:
    logger.info("Authentication rejected", extra={"reason": reason, "session_id": session_id})
    record_auth_failure(reason)
    return Unauthenticated()


def authenticate_token(db: Session, token: Optional[str], secret: str) -> Principal:
    """Turn a raw bearer token into a Principal or raise Unauthenticated."""
    if not token:
        raise _reject("missing_token")

    try:
        claims = decode_access_token(token, secret)
    except InvalidToken as exc:
        logger.debug(f"JWT decode failed: {exc.message}")
        raise _reject("invalid_token")

    if not validate_session(db, claims.jti):
        raise _reject("session_not_live", claims.jti)

    try:
        user_id = int(claims.sub)
    except ValueError:
        raise _reject("invalid_subject", claims.jti)

    return Principal(
        id=user_id,
        email=claims.email,
        name=claims.name,
        role=Role(claims.role),
        tenant_id=claims.tenant_id,
        session_id=claims.jti,
    )


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Require an authenticated admin user (any role)."""
    secret = get_signing_secret()
    token = get_token_from_request(request, credentials)
    principal = authenticate_token(db, token, secret)
    request.state.user_id = principal.id
    return principal


# ---------------------------------------------------------------------------
# Role gates
# ---------------------------------------------------------------------------

def require_modify(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Reject read-only (viewer) callers."""
    if not can_modify(principal):
        raise Forbidden("Permission denied")
    return principal


def require_manager(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Require a caller who may manage other admin users."""
    require_user_manager(principal)
    return principal


def require_superadmin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != Role.SUPERADMIN:
        raise Forbidden("Only superadmins can perform this action")
    return principal


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

def get_storage() -> ResumeStorage:
    return ResumeStorage()


def get_mailer() -> EmailService:
    return EmailService()
