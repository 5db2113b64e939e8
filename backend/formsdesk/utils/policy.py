"""Access policy: pure decisions over an authenticated principal.

Role hierarchy (higher → more permissions):
    superadmin > agency > admin > viewer

Two privileges that look alike are kept apart on purpose:

* ``agency`` sees submissions of every tenant (through the agency copies).
* ``superadmin`` administers users across tenants, but is tenant-scoped like
  anyone else for :func:`can_access_tenant`.

Every user-management endpoint asks this module; no endpoint keeps its own
list of permitted roles.
"""
from typing import Dict, FrozenSet, NamedTuple, Optional

from formsdesk.exceptions import Forbidden, ValidationError
from formsdesk.models.admin_user import Role


class Principal(NamedTuple):
    """Authenticated identity, populated by the request authenticator."""
    id: int
    email: str
    name: str
    role: Role
    tenant_id: Optional[str]   # None = not scoped to a tenant
    session_id: Optional[str] = None


# Which roles an actor may give to a user it creates or edits.
ASSIGNABLE_ROLES: Dict[Role, FrozenSet[Role]] = {
    Role.SUPERADMIN: frozenset({Role.SUPERADMIN, Role.AGENCY, Role.ADMIN, Role.VIEWER}),
    Role.AGENCY: frozenset({Role.AGENCY, Role.ADMIN, Role.VIEWER}),
    Role.ADMIN: frozenset({Role.ADMIN, Role.VIEWER}),
    Role.VIEWER: frozenset(),
}


def _role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Invalid role")


# ---------------------------------------------------------------------------
# Submission data
# ---------------------------------------------------------------------------

def can_access_tenant(principal: Principal, tenant_id: Optional[str]) -> bool:
    """Agency sees every tenant; everyone else only their own."""
    if principal.role == Role.AGENCY:
        return True
    return principal.tenant_id is not None and principal.tenant_id == tenant_id


def can_modify(principal: Principal) -> bool:
    """Viewers are read-only."""
    return principal.role != Role.VIEWER


def visible_submission_copy(principal: Principal) -> bool:
    """The ``is_agency_copy`` value of the rows this principal reads.

    Agency users read the immutable agency copies; everyone else reads client
    copies.
    """
    return principal.role == Role.AGENCY


def home_tenant(principal: Principal, default_tenant: str) -> str:
    """Tenant whose client copies an unscoped non-agency principal works on."""
    return principal.tenant_id or default_tenant


def resolve_submission_tenant(principal: Principal, requested: Optional[str], default_tenant: str) -> Optional[str]:
    """Tenant filter for a submission listing.

    Returns None when an agency user asked for no particular tenant (all of
    them). Raises Forbidden when a tenant outside the principal's scope was
    asked for explicitly.
    """
    requested = (requested or "").strip() or None
    if principal.role == Role.AGENCY:
        return requested
    home = home_tenant(principal, default_tenant)
    if requested is not None and requested != home and not can_access_tenant(principal, requested):
        raise Forbidden()
    return home


def can_access_resume(principal: Principal, key: str, default_tenant: str) -> bool:
    """Resume keys live under ``<tenant>/...`` (or ``.../<tenant>/...`` for older uploads)."""
    if principal.role in (Role.AGENCY, Role.SUPERADMIN):
        return True
    tenant_id = principal.tenant_id or default_tenant
    return key.startswith(f"{tenant_id}/") or f"/{tenant_id}/" in key


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------

def assignable_roles(principal: Principal) -> FrozenSet[Role]:
    return ASSIGNABLE_ROLES[_role(principal.role)]


def can_manage_users(principal: Principal) -> bool:
    """Anyone who may assign at least one role may reach user management."""
    return bool(assignable_roles(principal))


def can_view_user(principal: Principal, target_role) -> bool:
    """Only a superadmin can see a superadmin."""
    return _role(target_role) != Role.SUPERADMIN or principal.role == Role.SUPERADMIN


def require_user_manager(principal: Principal) -> None:
    if not can_manage_users(principal):
        raise Forbidden()


def check_can_assign_role(principal: Principal, role) -> Role:
    """Return ``role`` as a Role, or raise Forbidden if the actor may not grant it."""
    role = _role(role)
    if role not in assignable_roles(principal):
        raise Forbidden("Invalid role or insufficient permissions")
    return role


def check_can_manage_target(principal: Principal, target_role, target_tenant_id: Optional[str]) -> None:
    """Gate for viewing, editing or deleting an existing user.

    Raises Forbidden when the actor cannot manage users at all, when the target
    is a superadmin and the actor is not, when the target holds a role the
    actor could not have assigned, or when a tenant-scoped actor reaches
    outside its own tenant.
    """
    require_user_manager(principal)
    target_role = _role(target_role)
    if not can_view_user(principal, target_role):
        raise Forbidden()
    if target_role not in assignable_roles(principal):
        raise Forbidden()
    if principal.role == Role.ADMIN and target_tenant_id != principal.tenant_id:
        raise Forbidden()


def check_tenant_assignment(principal: Principal, role: Role, tenant_id: Optional[str]) -> Optional[str]:
    """Return the tenant id a user with ``role`` should be stored with.

    Unscoped roles always get None. Tenant-scoped actors can only place users
    in their own tenant.
    """
    if not role.requires_tenant:
        return None
    tenant_id = (tenant_id or "").strip() or None
    if tenant_id is None:
        raise ValidationError("Tenant ID is required for admin and viewer roles")
    if principal.role == Role.ADMIN and tenant_id != principal.tenant_id:
        raise Forbidden()
    return tenant_id


def check_not_self(principal: Principal, target_id: int) -> None:
    """No one may delete their own account, whatever their role."""
    if principal.id == target_id:
        raise Forbidden("Cannot delete your own account")
