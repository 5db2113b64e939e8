"""AdminUser schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class AdminUserCreate(BaseModel):
    # Required fields are checked by the endpoint so they share one error message
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None
    name: Optional[str] = Field(None, max_length=255)
    role: Optional[str] = Field(None, description="superadmin | agency | admin | viewer")
    tenant_id: Optional[str] = Field(None, description="Required for admin and viewer roles")
    notify_forms: Optional[str] = Field(None, description="none | contact | application | all")


class AdminUserUpdate(BaseModel):
    """Partial update; fields left out are not touched."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[str] = None
    tenant_id: Optional[str] = None
    notify_forms: Optional[str] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None


class AdminUserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    tenant_id: Optional[str]
    notify_forms: str
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminUserData(BaseModel):
    user: AdminUserResponse


class AdminUserEnvelope(BaseModel):
    success: bool = True
    data: AdminUserData


class AdminUserList(BaseModel):
    users: List[AdminUserResponse]


class AdminUserListEnvelope(BaseModel):
    success: bool = True
    data: AdminUserList


class SendTestEmailRequest(BaseModel):
    user_id: int


class SendTestEmailResponse(BaseModel):
    success: bool = True
    message: str
    message_id: Optional[str] = None
