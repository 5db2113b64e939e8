"""Admin user management endpoints.

Who may see, create, edit or delete whom is decided entirely by
``formsdesk.utils.policy``; this module only loads rows and applies changes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from formsdesk.api.deps import get_mailer, require_manager, require_superadmin
from formsdesk.config import settings
from formsdesk.database import get_db
from formsdesk.exceptions import FormsdeskError, NotFoundError, ValidationError
from formsdesk.models.admin_user import AdminUser, NotifyForms, Role
from formsdesk.schemas.admin_user import (
    AdminUserCreate,
    AdminUserData,
    AdminUserEnvelope,
    AdminUserList,
    AdminUserListEnvelope,
    AdminUserResponse,
    AdminUserUpdate,
    SendTestEmailRequest,
    SendTestEmailResponse,
)
from formsdesk.schemas.auth import MessageResponse
from formsdesk.services.intake import tenant_branding
from formsdesk.utils.email import EmailService, verification_message
from formsdesk.utils.logger import logger
from formsdesk.utils.passwords import hash_password
from formsdesk.utils.policy import (
    Principal,
    check_can_assign_role,
    check_can_manage_target,
    check_not_self,
    check_tenant_assignment,
)
from formsdesk.utils.sessions import delete_user_sessions

router = APIRouter(prefix="/api/admin", tags=["users"])


def _envelope(user: AdminUser) -> AdminUserEnvelope:
    return AdminUserEnvelope(data=AdminUserData(user=AdminUserResponse.model_validate(user)))


def _check_password(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")


def _get_target(db: Session, user_id: int) -> AdminUser:
    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


# ---------------------------------------------------------------------------
# List / create
# ---------------------------------------------------------------------------

@router.get("/users", response_model=AdminUserListEnvelope)
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    """List the users the caller may manage, newest first.

    Superadmins are hidden from everyone but superadmins; admin users only
    see their own tenant.
    """
    query = db.query(AdminUser)
    if principal.role != Role.SUPERADMIN:
        query = query.filter(AdminUser.role != Role.SUPERADMIN.value)
    if principal.role == Role.ADMIN:
        query = query.filter(AdminUser.tenant_id == principal.tenant_id)

    users = query.order_by(AdminUser.created_at.desc(), AdminUser.id.desc()).all()
    return AdminUserListEnvelope(
        data=AdminUserList(users=[AdminUserResponse.model_validate(user) for user in users])
    )


@router.post("/users", response_model=AdminUserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    data: AdminUserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    if not data.email or not data.password or not data.name or not data.role:
        raise ValidationError("Email, password, name, and role are required")

    role = check_can_assign_role(principal, data.role)
    tenant_id = check_tenant_assignment(principal, role, data.tenant_id)
    _check_password(data.password)

    if db.query(AdminUser.id).filter(AdminUser.email == data.email).first():
        raise ValidationError("Email already exists")

    try:
        notify_forms = NotifyForms(data.notify_forms).value
    except ValueError:
        notify_forms = NotifyForms.NONE.value

    user = AdminUser(
        email=data.email,
        password_hash=hash_password(data.password),
        name=data.name,
        role=role.value,
        tenant_id=tenant_id,
        notify_forms=notify_forms,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(
        f"Created admin user: {user.email}",
        extra={"user_id": principal.id, "tenant_id": tenant_id, "action": "create_user"},
    )
    return _envelope(user)


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

@router.patch("/users/{user_id}", response_model=AdminUserEnvelope)
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    """Partially update a user.

    Changing role, tenant, password or deactivating the user revokes every
    session the user holds. A password change made on one's own account
    keeps the calling session; the other changes revoke it too.
    """
    user = _get_target(db, user_id)
    check_can_manage_target(principal, user.role, user.tenant_id)

    changes = {}
    revoke = False
    spare_caller = True

    if data.name is not None:
        changes["name"] = data.name

    new_role = Role(user.role)
    if data.role is not None:
        new_role = check_can_assign_role(principal, data.role)
        changes["role"] = new_role.value

    if data.role is not None or data.tenant_id is not None:
        requested_tenant = data.tenant_id if data.tenant_id is not None else user.tenant_id
        new_tenant = check_tenant_assignment(principal, new_role, requested_tenant)
        if new_tenant != user.tenant_id:
            changes["tenant_id"] = new_tenant

    if data.notify_forms is not None:
        try:
            changes["notify_forms"] = NotifyForms(data.notify_forms).value
        except ValueError:
            pass

    if data.is_active is not None:
        changes["is_active"] = data.is_active
        if not data.is_active:
            revoke = True
            spare_caller = False

    if data.password:
        _check_password(data.password)
        changes["password_hash"] = hash_password(data.password)
        revoke = True

    if not changes:
        raise ValidationError("No updates provided")

    if changes.get("role", user.role) != user.role or "tenant_id" in changes:
        revoke = True
        spare_caller = False

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    if revoke:
        # Tokens carry role and tenant claims; only a password change keeps the caller's session
        keep = principal.session_id if spare_caller and user.id == principal.id else None
        delete_user_sessions(db, user.id, keep_session_id=keep)

    logger.info(
        f"Updated admin user: {user.email}",
        extra={"user_id": principal.id, "tenant_id": user.tenant_id, "action": "update_user"},
    )
    return _envelope(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    check_not_self(principal, user_id)
    user = _get_target(db, user_id)
    check_can_manage_target(principal, user.role, user.tenant_id)

    delete_user_sessions(db, user.id)
    db.delete(user)
    db.commit()

    logger.info(f"Deleted admin user: {user_id}", extra={"user_id": principal.id, "action": "delete_user"})
    return MessageResponse()


# ---------------------------------------------------------------------------
# POST /api/admin/test-email
# ---------------------------------------------------------------------------

@router.post("/test-email", response_model=SendTestEmailResponse)
def send_test_email(
    data: SendTestEmailRequest,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
    principal: Principal = Depends(require_superadmin),
):
    """Send a test notification to a user (superadmin only)."""
    user = _get_target(db, data.user_id)
    tenant_name, from_email = tenant_branding(db, settings.TENANT_ID)

    result = mailer.send([user.email], from_email, verification_message(user.name, tenant_name))
    if not result.success:
        raise FormsdeskError(result.error or "Failed to send email", status.HTTP_502_BAD_GATEWAY)

    logger.info(f"Test email sent to {user.email}", extra={"user_id": principal.id, "action": "test_email"})
    return SendTestEmailResponse(message=f"Test email sent to {user.email}", message_id=result.message_id)
