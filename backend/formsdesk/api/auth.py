"""Admin login, logout and self-service endpoints"""
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from formsdesk.api.deps import get_current_principal, get_signing_secret, get_token_from_request
from formsdesk.config import settings
from formsdesk.database import get_db, utcnow
from formsdesk.exceptions import FormsdeskError, InvalidToken, NotFoundError, ValidationError
from formsdesk.middleware.monitoring import record_login
from formsdesk.middleware.rate_limit import get_rate_limit, limiter
from formsdesk.models.admin_user import AdminUser, NotifyForms
from formsdesk.schemas.auth import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    NotificationPreferenceRequest,
    SessionUser,
)
from formsdesk.utils.cookies import clear_auth_cookie, set_auth_cookie
from formsdesk.utils.jwt_utils import (
    create_access_token,
    decode_access_token,
    generate_session_id,
    session_expiry,
)
from formsdesk.utils.logger import logger
from formsdesk.utils.passwords import hash_password, verify_password
from formsdesk.utils.policy import Principal
from formsdesk.utils.sessions import create_session, delete_session, delete_user_sessions

router = APIRouter(prefix="/api/admin", tags=["auth"])

_INVALID_CREDENTIALS = "Invalid email or password"

# Checked against when the email is unknown so both failure paths hash once
_dummy_hash: Optional[str] = None


def _timing_guard_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(generate_session_id())
    return _dummy_hash


def _session_user(user) -> SessionUser:
    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=str(getattr(user.role, "value", user.role)),
        tenant_id=user.tenant_id,
    )


# ---------------------------------------------------------------------------
# POST /api/admin/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=LoginResponse)
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Exchange email and password for a session token.

    The token is returned in the body and set as the ``admin_token`` cookie.
    Unknown email, inactive account and wrong password all get the same 401.
    """
    secret = get_signing_secret()

    if not credentials.email or not credentials.password:
        raise ValidationError("Email and password are required")

    user = (
        db.query(AdminUser)
        .filter(AdminUser.email == credentials.email, AdminUser.is_active.is_(True))
        .first()
    )
    if user is None:
        verify_password(credentials.password, _timing_guard_hash())
        record_login("invalid_credentials")
        raise FormsdeskError(_INVALID_CREDENTIALS, 401)

    if not verify_password(credentials.password, user.password_hash):
        record_login("invalid_credentials")
        logger.info("Login rejected", extra={"user_id": user.id, "reason": "bad_password"})
        raise FormsdeskError(_INVALID_CREDENTIALS, 401)

    session_id = generate_session_id()
    issued_at = int(time.time())
    expires_at = session_expiry(issued_at)
    create_session(db, user.id, session_id, expires_at)
    token = create_access_token(user, secret, session_id, issued_at=issued_at)

    user.last_login = utcnow()
    db.commit()

    set_auth_cookie(response, token)
    record_login("success")
    logger.info(
        f"Admin login: {user.email}",
        extra={"user_id": user.id, "session_id": session_id, "tenant_id": user.tenant_id, "action": "login"},
    )

    return LoginResponse(data=LoginData(user=_session_user(user), token=token, expires_at=expires_at))


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

def _end_session(request: Request, db: Session) -> None:
    """Delete the session named by the caller's token, if it names one.

    A missing, malformed or expired token is ignored; logout always succeeds.
    """
    token = get_token_from_request(request)
    if not token:
        return
    try:
        claims = decode_access_token(token, get_signing_secret())
    except InvalidToken:
        return
    delete_session(db, claims.jti)
    logger.info("Admin logout", extra={"user_id": claims.sub, "session_id": claims.jti, "action": "logout"})


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response, db: Session = Depends(get_db)) -> MessageResponse:
    _end_session(request, db)
    clear_auth_cookie(response)
    return MessageResponse()


@router.get("/logout")
def logout_redirect(request: Request, db: Session = Depends(get_db)) -> RedirectResponse:
    """Link-friendly logout: clears the session and sends the browser to the login page."""
    _end_session(request, db)
    redirect = RedirectResponse(url="/admin/login", status_code=302)
    clear_auth_cookie(redirect)
    return redirect


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------

@router.get("/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    return MeResponse(data=_session_user(principal))


@router.post("/change-password", response_model=MessageResponse)
@limiter.limit(get_rate_limit("change_password"))
def change_password(
    request: Request,
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    """Change the caller's own password.

    Every other session of the caller is revoked; the session making this
    request stays valid.
    """
    if not data.current_password or not data.new_password:
        raise ValidationError("Current password and new password are required")
    if len(data.new_password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

    user = db.query(AdminUser).filter(AdminUser.id == principal.id).first()
    if user is None:
        raise NotFoundError("User not found")

    if not verify_password(data.current_password, user.password_hash):
        raise FormsdeskError("Current password is incorrect", 401)

    user.password_hash = hash_password(data.new_password)
    db.commit()

    revoked = delete_user_sessions(db, user.id, keep_session_id=principal.session_id)
    logger.info(
        "Password changed",
        extra={"user_id": user.id, "action": "change_password", "reason": f"revoked {revoked} sessions"},
    )
    return MessageResponse(message="Password changed successfully")


@router.post("/update-notifications", response_model=MessageResponse)
def update_notifications(
    data: NotificationPreferenceRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    try:
        preference = NotifyForms(data.notify_forms)
    except ValueError:
        raise ValidationError("Invalid notification preference")

    user = db.query(AdminUser).filter(AdminUser.id == principal.id).first()
    if user is None:
        raise NotFoundError("User not found")

    user.notify_forms = preference.value
    db.commit()
    return MessageResponse(message="Notification preferences updated")
