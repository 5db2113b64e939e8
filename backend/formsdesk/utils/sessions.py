"""Session store backed by the ``sessions`` table.

Each operation is a single insert, lookup or delete. Storage failures are
raised as :class:`StorageError` and never retried here.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from formsdesk.database import utcnow
from formsdesk.exceptions import StorageError
from formsdesk.models.login_session import LoginSession
from formsdesk.utils.logger import logger


def create_session(db: Session, user_id: int, session_id: str, expires_at: datetime) -> None:
    """Insert a new session row"""
    try:
        db.add(LoginSession(id=session_id, user_id=user_id, expires_at=expires_at))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Session insert failed: {exc}", extra={"user_id": user_id, "action": "create_session"})
        raise StorageError("Could not create session") from exc


def validate_session(db: Session, session_id: str) -> bool:
    """True iff the session exists and has not expired.

    A missing row and an expired row give the same answer.
    """
    if not session_id:
        return False
    try:
        row = (
            db.query(LoginSession.id)
            .filter(LoginSession.id == session_id, LoginSession.expires_at > utcnow())
            .first()
        )
    except SQLAlchemyError as exc:
        logger.error(f"Session lookup failed: {exc}", extra={"action": "validate_session"})
        raise StorageError("Could not validate session") from exc
    return row is not None


def delete_session(db: Session, session_id: str) -> None:
    """Delete a session. Deleting an unknown id is not an error."""
    try:
        db.query(LoginSession).filter(LoginSession.id == session_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Session delete failed: {exc}", extra={"session_id": session_id, "action": "delete_session"})
        raise StorageError("Could not delete session") from exc


def delete_user_sessions(db: Session, user_id: int, keep_session_id: Optional[str] = None) -> int:
    """Revoke every session of a user, optionally sparing the caller's own"""
    try:
        query = db.query(LoginSession).filter(LoginSession.user_id == user_id)
        if keep_session_id:
            query = query.filter(LoginSession.id != keep_session_id)
        count = query.delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError("Could not revoke sessions") from exc
    return count


def cleanup_expired_sessions(db: Session) -> int:
    """Bulk-delete expired sessions. Storage hygiene only, not needed for correctness."""
    try:
        count = (
            db.query(LoginSession)
            .filter(LoginSession.expires_at <= utcnow())
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError("Could not clean up sessions") from exc

    if count:
        logger.info(f"Removed {count} expired sessions", extra={"action": "cleanup_sessions"})
    return count
