"""Pydantic schemas for request/response validation"""
from formsdesk.schemas.admin_user import AdminUserCreate, AdminUserResponse, AdminUserUpdate
from formsdesk.schemas.auth import ChangePasswordRequest, LoginRequest, NotificationPreferenceRequest
from formsdesk.schemas.submission import ContactForm, SubmissionDetail, SubmissionSummary, SubmissionUpdate

__all__ = [
    "AdminUserCreate",
    "AdminUserResponse",
    "AdminUserUpdate",
    "ChangePasswordRequest",
    "LoginRequest",
    "NotificationPreferenceRequest",
    "ContactForm",
    "SubmissionDetail",
    "SubmissionSummary",
    "SubmissionUpdate",
]
