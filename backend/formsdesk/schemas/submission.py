"""Submission schemas"""
import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactForm(BaseModel):
    """Public contact form payload. Required fields are checked by the endpoint."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    message: Optional[str] = None
    page_url: Optional[str] = Field(None, max_length=1024)


class SubmissionUpdate(BaseModel):
    """Fields a tenant may change on its own copy"""

    status: Optional[Literal["new", "reviewed", "contacted", "hired", "archived"]] = None
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class SubmissionSummary(BaseModel):
    id: int
    tenant_id: str
    form_type: str
    status: str
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    experience: Optional[str] = None
    resume_filename: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionDetail(SubmissionSummary):
    is_agency_copy: bool
    message: Optional[str] = None
    dob: Optional[str] = None
    cdl: Optional[str] = None
    resume_key: Optional[str] = None
    resume_size: Optional[int] = None
    source: Optional[str] = None
    page_url: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    admin_notes: Optional[str] = None
    deleted_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SubmissionPage(BaseModel):
    submissions: List[SubmissionSummary]
    pagination: Pagination


class SubmissionPageEnvelope(BaseModel):
    success: bool = True
    data: SubmissionPage


class SubmissionDetailEnvelope(BaseModel):
    success: bool = True
    data: SubmissionDetail


class SubmissionCreated(BaseModel):
    id: int


class SubmissionCreatedEnvelope(BaseModel):
    success: bool = True
    data: SubmissionCreated


class ActionResult(BaseModel):
    success: bool = True
    data: dict
