"""AdminUser model: dashboard accounts with a role and an optional tenant scope"""
import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, event
from sqlalchemy.orm import relationship, validates

from formsdesk.database import Base, utcnow
from formsdesk.exceptions import ValidationError


class Role(str, enum.Enum):
    """Closed set of roles, highest privilege first."""

    SUPERADMIN = "superadmin"
    AGENCY = "agency"
    ADMIN = "admin"
    VIEWER = "viewer"

    @property
    def requires_tenant(self) -> bool:
        return self in (Role.ADMIN, Role.VIEWER)


class NotifyForms(str, enum.Enum):
    """Which submission types trigger an email to a user."""

    NONE = "none"
    CONTACT = "contact"
    APPLICATION = "application"
    ALL = "all"

    def covers(self, form_type: str) -> bool:
        return self is NotifyForms.ALL or self.value == form_type


class AdminUser(Base):
    """A person who can log into the admin dashboard.

    ``superadmin`` and ``agency`` users are not scoped to a tenant
    (``tenant_id`` is NULL); ``admin`` and ``viewer`` users must belong to
    exactly one tenant. Rows violating that are rejected before they reach
    the database, and the CHECK constraint backs it up for raw SQL writes.
    """

    __tablename__ = "admin_users"
    __table_args__ = (
        CheckConstraint(
            "(role IN ('superadmin', 'agency') AND tenant_id IS NULL) OR "
            "(role IN ('admin', 'viewer') AND tenant_id IS NOT NULL AND tenant_id != '')",
            name="ck_admin_users_tenant_scope",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(100), nullable=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)   # iterations:salt:key
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.ADMIN.value)
    notify_forms = Column(String(20), nullable=False, default=NotifyForms.NONE.value)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    sessions = relationship(
        "LoginSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("role")
    def _validate_role(self, key, value):
        try:
            return Role(value).value
        except ValueError:
            raise ValidationError(f"Invalid role: {value!r}")

    @validates("notify_forms")
    def _validate_notify_forms(self, key, value):
        try:
            return NotifyForms(value).value
        except ValueError:
            raise ValidationError(f"Invalid notification preference: {value!r}")

    @validates("tenant_id")
    def _normalize_tenant_id(self, key, value):
        # Empty string and NULL both mean unscoped; only NULL is stored
        if value is None:
            return None
        value = value.strip()
        return value or None

    def check_tenant_scope(self) -> None:
        """Raise ValidationError unless the role/tenant pair is consistent."""
        role = Role(self.role)
        if role.requires_tenant and not self.tenant_id:
            raise ValidationError("Tenant ID is required for admin and viewer roles")
        if not role.requires_tenant and self.tenant_id is not None:
            raise ValidationError(f"{role.value} users cannot be scoped to a tenant")


@event.listens_for(AdminUser, "before_insert")
@event.listens_for(AdminUser, "before_update")
def _enforce_tenant_scope(mapper, connection, target: AdminUser) -> None:
    target.check_tenant_scope()
