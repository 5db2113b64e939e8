"""Submission intake: dual-copy writes and notification fan-out.

Every accepted form post becomes two rows with the same payload:

* the client copy (``is_agency_copy=False``), owned by the tenant and open
  to status changes, notes and soft deletion;
* the agency copy (``is_agency_copy=True``), an immutable audit record only
  agency users read.

Both rows are written in one transaction so a reader never sees one without
the other.
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from formsdesk.config import settings
from formsdesk.database import utcnow
from formsdesk.exceptions import StorageError
from formsdesk.models.admin_user import AdminUser, NotifyForms, Role
from formsdesk.models.submission import Submission
from formsdesk.models.tenant import EmailLog, Tenant
from formsdesk.utils.email import EmailService, application_message, contact_message
from formsdesk.utils.logger import logger

_SOURCES = {
    "contact": "Website Contact Form",
    "application": "Website Application Form",
}

_COPY_FIELDS = (
    "name", "email", "phone", "message", "dob", "location", "experience", "cdl",
    "resume_key", "resume_filename", "resume_size", "page_url", "ip_address", "user_agent",
)


def record_submission(
    db: Session,
    tenant_id: str,
    form_type: str,
    data: Dict[str, Any],
) -> Tuple[Submission, Submission]:
    """Write the client and agency copies of a submission.

    Returns:
        ``(client_copy, agency_copy)``

    Raises:
        StorageError: the transaction failed; neither copy was written.
    """
    fields = {key: data.get(key) for key in _COPY_FIELDS}
    fields["source"] = _SOURCES[form_type]

    client_copy = Submission(tenant_id=tenant_id, is_agency_copy=False, form_type=form_type, **fields)
    agency_copy = Submission(tenant_id=tenant_id, is_agency_copy=True, form_type=form_type, **fields)

    try:
        db.add_all([client_copy, agency_copy])
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Submission insert failed: {exc}", extra={"tenant_id": tenant_id, "form_type": form_type})
        raise StorageError("Could not save submission") from exc

    db.refresh(client_copy)
    db.refresh(agency_copy)

    logger.info(
        f"Submission recorded: {client_copy.id}",
        extra={"tenant_id": tenant_id, "form_type": form_type, "action": "record_submission"},
    )
    return client_copy, agency_copy


def notification_recipients(db: Session, tenant_id: str, form_type: str) -> List[str]:
    """Emails of active users who asked to hear about ``form_type`` for ``tenant_id``.

    Tenant-scoped users get their own tenant's posts; unscoped users
    (agency and superadmin) get every tenant's posts.
    """
    wanted = [NotifyForms.ALL.value, NotifyForms(form_type).value]
    rows = (
        db.query(AdminUser.email)
        .filter(
            AdminUser.is_active.is_(True),
            AdminUser.notify_forms.in_(wanted),
            or_(
                AdminUser.tenant_id == tenant_id,
                AdminUser.role.in_([Role.AGENCY.value, Role.SUPERADMIN.value]),
            ),
        )
        .order_by(AdminUser.id)
        .all()
    )
    return [row.email for row in rows]


def tenant_branding(db: Session, tenant_id: str) -> Tuple[str, str]:
    tenant: Optional[Tenant] = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    tenant_name = tenant.name if tenant and tenant.name else "Website"
    from_email = tenant.from_email if tenant and tenant.from_email else settings.default_from_email
    return tenant_name, from_email


def notify_submission(db: Session, mailer: EmailService, submission: Submission) -> Optional[EmailLog]:
    """Email the subscribed users about a new submission and log the outcome.

    Returns the EmailLog row, or None when nobody subscribed.
    """
    recipients = notification_recipients(db, submission.tenant_id, submission.form_type)
    if not recipients:
        return None

    tenant_name, from_email = tenant_branding(db, submission.tenant_id)
    data = {column: getattr(submission, column) for column in _COPY_FIELDS}
    if submission.form_type == "application":
        message = application_message(data, tenant_name)
    else:
        message = contact_message(data, tenant_name)

    result = mailer.send(recipients, from_email, message)

    entry = EmailLog(
        submission_id=submission.id,
        tenant_id=submission.tenant_id,
        from_address=from_email,
        to_addresses=recipients,
        subject=message.subject,
        status="sent" if result.success else "failed",
        error_message=result.error,
        message_id=result.message_id,
        sent_at=utcnow() if result.success else None,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Email log insert failed: {exc}", extra={"tenant_id": submission.tenant_id})
        return None

    if not result.success:
        logger.error(
            f"Email notification failed: {result.error}",
            extra={"tenant_id": submission.tenant_id, "form_type": submission.form_type},
        )
    return entry
