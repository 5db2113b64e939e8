"""Submission model: contact and job-application form posts"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, String, Text

from formsdesk.database import Base, utcnow

FORM_TYPES = ("contact", "application")
SUBMISSION_STATUSES = ("new", "reviewed", "contacted", "hired", "archived")


class Submission(Base):
    """A form post.

    Every accepted post is stored twice: a client copy (``is_agency_copy``
    False) that the tenant can triage, annotate and soft-delete, and an agency
    copy (``is_agency_copy`` True) that is never modified.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        CheckConstraint("form_type IN ('contact', 'application')", name="ck_submissions_form_type"),
        CheckConstraint(
            "status IN ('new', 'reviewed', 'contacted', 'hired', 'archived')",
            name="ck_submissions_status",
        ),
        Index("ix_submissions_tenant_deleted", "tenant_id", "deleted_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(100), nullable=False, index=True)
    is_agency_copy = Column(Boolean, default=False, nullable=False, index=True)
    form_type = Column(String(20), nullable=False, index=True)
    status = Column(String(20), default="new", nullable=False, index=True)

    # Common fields
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)

    # Application-only fields
    dob = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    experience = Column(Text, nullable=True)
    cdl = Column(String(50), nullable=True)
    resume_key = Column(String(512), nullable=True)
    resume_filename = Column(String(255), nullable=True)
    resume_size = Column(Integer, nullable=True)

    # Metadata
    source = Column(String(100), nullable=True)
    page_url = Column(String(1024), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
