"""Public form endpoints: contact messages and job applications"""
import re
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from formsdesk.api.deps import get_mailer, get_storage
from formsdesk.config import settings
from formsdesk.database import SessionLocal, get_db
from formsdesk.exceptions import ValidationError
from formsdesk.middleware.monitoring import record_submission_metric
from formsdesk.middleware.rate_limit import get_rate_limit, limiter
from formsdesk.models.submission import Submission
from formsdesk.schemas.submission import (
    EMAIL_PATTERN,
    ContactForm,
    SubmissionCreated,
    SubmissionCreatedEnvelope,
)
from formsdesk.services.intake import notify_submission, record_submission
from formsdesk.utils.email import EmailService
from formsdesk.utils.logger import logger
from formsdesk.utils.storage import ResumeStorage

router = APIRouter(prefix="/api", tags=["forms"])

# Content type -> extension used in the object key
ALLOWED_RESUME_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}


def _client_metadata(request: Request) -> dict:
    return {
        "ip_address": request.headers.get("cf-connecting-ip") or request.headers.get("x-forwarded-for"),
        "user_agent": request.headers.get("user-agent"),
    }


def _check_email(email: str) -> None:
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address")


def _ascii(value: str) -> str:
    # S3 user metadata must be ASCII
    return value.encode("ascii", "ignore").decode("ascii")


def _notify(db: Session, mailer: EmailService, submission: Submission) -> None:
    """Send the notification email; a failure here never fails the form post."""
    try:
        notify_submission(db, mailer, submission)
    except Exception as e:
        logger.error(
            f"Notification failed for submission {submission.id}: {e}",
            extra={"tenant_id": submission.tenant_id, "form_type": submission.form_type},
            exc_info=True,
        )


def _notify_in_background(submission_id: int, mailer: EmailService) -> None:
    db = SessionLocal()
    try:
        submission = db.query(Submission).filter(Submission.id == submission_id).first()
        if submission is not None:
            _notify(db, mailer, submission)
    finally:
        db.close()


# ---------------------------------------------------------------------------
# POST /api/contact
# ---------------------------------------------------------------------------

@router.post("/contact", response_model=SubmissionCreatedEnvelope, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("contact"))
def submit_contact(
    request: Request,
    form: ContactForm,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    """Accept a contact message and notify subscribed users."""
    if not form.name or not form.email or not form.message:
        raise ValidationError("Name, email, and message are required")
    _check_email(form.email)

    data = form.model_dump()
    data.update(_client_metadata(request))
    client_copy, _ = record_submission(db, settings.TENANT_ID, "contact", data)
    record_submission_metric("contact")

    _notify(db, mailer, client_copy)
    return SubmissionCreatedEnvelope(data=SubmissionCreated(id=client_copy.id))


# ---------------------------------------------------------------------------
# POST /api/apply
# ---------------------------------------------------------------------------

@router.post("/apply", response_model=SubmissionCreatedEnvelope, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("apply"))
def submit_application(
    request: Request,
    background_tasks: BackgroundTasks,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    cdl: Optional[str] = Form(None),
    page_url: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ResumeStorage = Depends(get_storage),
    mailer: EmailService = Depends(get_mailer),
):
    """
    Accept a job application with an optional resume upload.

    The resume (PDF, DOC or DOCX, at most 5MB) is stored under
    ``<tenant>/resumes/<ms-timestamp>-<applicant>.<ext>``. The notification
    email is sent after the response.
    """
    if not all((name, email, phone, dob, location, experience, cdl)):
        raise ValidationError("All required fields must be filled out")
    _check_email(email)

    data = {
        "name": name,
        "email": email,
        "phone": phone,
        "dob": dob,
        "location": location,
        "experience": experience,
        "cdl": cdl,
        "page_url": page_url or None,
    }
    data.update(_client_metadata(request))

    if resume is not None and resume.filename:
        body = resume.file.read(settings.MAX_RESUME_SIZE + 1)
        if body:
            if len(body) > settings.MAX_RESUME_SIZE:
                raise ValidationError("Resume file is too large. Maximum size is 5MB.")
            if resume.content_type not in ALLOWED_RESUME_TYPES:
                raise ValidationError("Invalid file type. Please upload a PDF, DOC, or DOCX file.")

            safe_name = re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()
            extension = ALLOWED_RESUME_TYPES[resume.content_type]
            key = f"{settings.TENANT_ID}/resumes/{int(time.time() * 1000)}-{safe_name}.{extension}"

            storage.put(
                key,
                body,
                resume.content_type,
                metadata={
                    "original-name": _ascii(resume.filename),
                    "uploaded-by": _ascii(email),
                    "applicant-name": _ascii(name),
                },
            )
            data.update(resume_key=key, resume_filename=resume.filename, resume_size=len(body))

    client_copy, _ = record_submission(db, settings.TENANT_ID, "application", data)
    record_submission_metric("application")

    background_tasks.add_task(_notify_in_background, client_copy.id, mailer)
    return SubmissionCreatedEnvelope(data=SubmissionCreated(id=client_copy.id))
