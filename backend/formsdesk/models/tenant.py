"""Tenant and EmailLog models"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text

from formsdesk.database import Base, utcnow


class Tenant(Base):
    """A client whose submissions and scoped users are partitioned from other clients."""

    __tablename__ = "tenants"

    id = Column(String(100), primary_key=True)           # e.g. "wood_wireline"
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True)
    notification_emails = Column(JSON, nullable=True)
    from_email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class EmailLog(Base):
    """Outcome of one notification email."""

    __tablename__ = "email_log"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True, index=True)
    tenant_id = Column(String(100), nullable=False, index=True)
    from_address = Column(String(255), nullable=False)
    to_addresses = Column(JSON, nullable=False)
    subject = Column(String(512), nullable=False)
    status = Column(String(20), nullable=False, index=True)   # sent, failed, pending
    error_message = Column(Text, nullable=True)
    message_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    sent_at = Column(DateTime, nullable=True)
