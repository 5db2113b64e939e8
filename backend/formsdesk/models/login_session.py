"""LoginSession model: server-side proof that a token is still live"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from formsdesk.database import Base, utcnow


class LoginSession(Base):
    """One row per successful login.

    ``id`` is the token's ``jti`` claim. Rows are inserted at login and deleted
    at logout, on revocation or by the expiry sweep; they are never updated.
    A row past ``expires_at`` is dead even while it is still stored.
    """

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    user_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("AdminUser", back_populates="sessions")
