"""Submission review endpoints for the admin dashboard"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import or_
from sqlalchemy.orm import Query as SAQuery
from sqlalchemy.orm import Session

from formsdesk.api.deps import get_current_principal, get_storage, require_modify
from formsdesk.config import settings
from formsdesk.database import get_db, utcnow
from formsdesk.exceptions import Forbidden, NotFoundError, ValidationError
from formsdesk.models.admin_user import Role
from formsdesk.models.submission import Submission
from formsdesk.schemas.submission import (
    ActionResult,
    Pagination,
    SubmissionDetail,
    SubmissionDetailEnvelope,
    SubmissionPage,
    SubmissionPageEnvelope,
    SubmissionSummary,
    SubmissionUpdate,
)
from formsdesk.utils.logger import logger
from formsdesk.utils.policy import (
    Principal,
    can_access_resume,
    home_tenant,
    resolve_submission_tenant,
    visible_submission_copy,
)
from formsdesk.utils.storage import ResumeStorage

router = APIRouter(prefix="/api/admin", tags=["submissions"])

MAX_PAGE_SIZE = 100

_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
}


def _readable(db: Session, principal: Principal) -> SAQuery:
    """Rows of the copy kind this principal reads (tenant filter not applied)."""
    agency_copy = visible_submission_copy(principal)
    query = db.query(Submission).filter(Submission.is_agency_copy.is_(agency_copy))
    if not agency_copy:
        query = query.filter(Submission.deleted_at.is_(None))
    return query


def _editable(db: Session, principal: Principal, submission_id: int) -> Submission:
    """The live client copy ``submission_id`` if the caller may change it.

    Agency users may change client copies of any tenant; everyone else only
    their home tenant's. Anything out of reach looks like a missing row.
    """
    query = db.query(Submission).filter(
        Submission.id == submission_id,
        Submission.is_agency_copy.is_(False),
        Submission.deleted_at.is_(None),
    )
    if principal.role != Role.AGENCY:
        query = query.filter(Submission.tenant_id == home_tenant(principal, settings.TENANT_ID))
    submission = query.first()
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


# ---------------------------------------------------------------------------
# GET /api/admin/submissions
# ---------------------------------------------------------------------------

@router.get("/submissions", response_model=SubmissionPageEnvelope)
def list_submissions(
    tenant_id: Optional[str] = Query(None),
    form_type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    List submissions visible to the caller, newest first.

    Agency users read the agency copies of every tenant (optionally narrowed
    with ``tenant_id``); everyone else reads the live client copies of their
    own tenant.
    """
    limit = min(limit, MAX_PAGE_SIZE)
    scope = resolve_submission_tenant(principal, tenant_id, settings.TENANT_ID)

    query = _readable(db, principal)
    if scope is not None:
        query = query.filter(Submission.tenant_id == scope)
    if form_type:
        query = query.filter(Submission.form_type == form_type)
    if status:
        query = query.filter(Submission.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Submission.name.like(pattern), Submission.email.like(pattern)))

    total = query.count()
    rows = (
        query.order_by(Submission.created_at.desc(), Submission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return SubmissionPageEnvelope(
        data=SubmissionPage(
            submissions=[SubmissionSummary.model_validate(row) for row in rows],
            pagination=Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
        )
    )


# ---------------------------------------------------------------------------
# /api/admin/submission/{id}
# ---------------------------------------------------------------------------

@router.get("/submission/{submission_id}", response_model=SubmissionDetailEnvelope)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    query = _readable(db, principal).filter(Submission.id == submission_id)
    if principal.role != Role.AGENCY:
        query = query.filter(Submission.tenant_id == home_tenant(principal, settings.TENANT_ID))

    submission = query.first()
    if submission is None:
        raise NotFoundError("Submission not found")
    return SubmissionDetailEnvelope(data=SubmissionDetail.model_validate(submission))


@router.patch("/submission/{submission_id}", response_model=ActionResult)
def update_submission(
    submission_id: int,
    data: SubmissionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_modify),
):
    """Update status, notes or review time of a client copy."""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields to update")
    if updates.get("status", "") is None:
        raise ValidationError("Status cannot be empty")

    submission = _editable(db, principal, submission_id)
    for field, value in updates.items():
        setattr(submission, field, value)
    submission.updated_at = utcnow()
    db.commit()

    logger.info(
        f"Submission updated: {submission_id}",
        extra={"user_id": principal.id, "tenant_id": submission.tenant_id, "action": "update_submission"},
    )
    return ActionResult(data={"updated": True})


@router.delete("/submission/{submission_id}", response_model=ActionResult)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_modify),
):
    """Soft-delete a client copy. The agency copy is never touched."""
    submission = _editable(db, principal, submission_id)
    now = utcnow()
    submission.deleted_at = now
    submission.updated_at = now
    db.commit()

    logger.info(
        f"Submission deleted: {submission_id}",
        extra={"user_id": principal.id, "tenant_id": submission.tenant_id, "action": "delete_submission"},
    )
    return ActionResult(data={"deleted": True})


# ---------------------------------------------------------------------------
# GET /api/admin/resume/{key}
# ---------------------------------------------------------------------------

def _content_type(key: str, stored: str) -> str:
    if stored and stored != "application/octet-stream":
        return stored
    for extension, content_type in _CONTENT_TYPES.items():
        if key.lower().endswith(extension):
            return content_type
    return "application/octet-stream"


@router.get("/resume/{key:path}")
def download_resume(
    key: str,
    view: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    storage: ResumeStorage = Depends(get_storage),
):
    """Stream an uploaded resume. ``?view=1`` shows it inline instead of downloading."""
    if not key:
        raise ValidationError("Resume key required")
    if not can_access_resume(principal, key, settings.TENANT_ID):
        raise Forbidden()

    stored = storage.get(key)
    if stored is None:
        raise NotFoundError("Resume not found")

    filename = stored.metadata.get("original-name") or key.rsplit("/", 1)[-1] or "resume"
    disposition = "inline" if view == "1" else f'attachment; filename="{filename}"'

    return Response(
        content=stored.body,
        media_type=_content_type(key, stored.content_type),
        headers={
            "Content-Disposition": disposition,
            "Cache-Control": "private, max-age=3600",
            "X-Frame-Options": "SAMEORIGIN",
            "X-Content-Type-Options": "nosniff",
        },
    )
