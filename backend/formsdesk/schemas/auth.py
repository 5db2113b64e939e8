"""Login, logout and self-service schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Optional so a missing field gets the endpoint's own 400 message
    email: Optional[str] = None
    password: Optional[str] = None


class SessionUser(BaseModel):
    id: int
    email: str
    name: str
    role: str
    tenant_id: Optional[str] = None


class LoginData(BaseModel):
    user: SessionUser
    token: str
    expires_at: datetime


class LoginResponse(BaseModel):
    success: bool = True
    data: LoginData


class MeResponse(BaseModel):
    success: bool = True
    data: SessionUser


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class NotificationPreferenceRequest(BaseModel):
    notify_forms: Optional[str] = Field(None, description="none | contact | application | all")


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
