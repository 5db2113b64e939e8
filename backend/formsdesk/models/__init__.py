"""Database models"""
from formsdesk.models.admin_user import AdminUser, NotifyForms, Role
from formsdesk.models.login_session import LoginSession
from formsdesk.models.submission import Submission
from formsdesk.models.tenant import EmailLog, Tenant

__all__ = ["AdminUser", "EmailLog", "LoginSession", "NotifyForms", "Role", "Submission", "Tenant"]
