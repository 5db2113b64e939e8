"""Tests for submission review endpoints"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from formsdesk.models.submission import Submission
from formsdesk.services.intake import record_submission


@pytest.fixture
def submit(db: Session):
    """Record a submission directly; returns (client_copy_id, agency_copy_id)"""

    def _submit(tenant_id: str = "acme", form_type: str = "contact", **fields):
        data = {"name": "Jo Applicant", "email": "jo@example.com", "message": "Hello"}
        data.update(fields)
        client_copy, agency_copy = record_submission(db, tenant_id, form_type, data)
        return client_copy.id, agency_copy.id

    return _submit


def _ids(response) -> set:
    return {row["id"] for row in response.json()["data"]["submissions"]}


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def test_dual_copy_write(db: Session, submit):
    client_id, agency_id = submit(phone="555-0100")
    client_copy = db.get(Submission, client_id)
    agency_copy = db.get(Submission, agency_id)

    assert client_copy.is_agency_copy is False
    assert agency_copy.is_agency_copy is True
    for column in ("tenant_id", "form_type", "name", "email", "phone", "message", "source"):
        assert getattr(client_copy, column) == getattr(agency_copy, column)
    assert client_copy.source == "Website Contact Form"
    assert client_copy.status == "new"


def test_admin_lists_own_client_copies(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    acme_client, acme_agency = submit("acme")
    globex_client, _ = submit("globex")

    response = client.get("/api/admin/submissions", headers=login("ana@acme.test"))
    assert response.status_code == 200
    assert _ids(response) == {acme_client}
    assert response.json()["data"]["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}


def test_agency_lists_agency_copies_of_every_tenant(client: TestClient, make_user, login, submit):
    make_user("ops@agency.test", role="agency")
    _, acme_agency = submit("acme")
    _, globex_agency = submit("globex")
    headers = login("ops@agency.test")

    response = client.get("/api/admin/submissions", headers=headers)
    assert _ids(response) == {acme_agency, globex_agency}

    narrowed = client.get("/api/admin/submissions", params={"tenant_id": "globex"}, headers=headers)
    assert _ids(narrowed) == {globex_agency}


def test_superadmin_reads_site_tenant(client: TestClient, make_user, login, submit):
    make_user("root@agency.test", role="superadmin")
    acme_client, _ = submit("acme")
    submit("globex")

    headers = login("root@agency.test")
    assert _ids(client.get("/api/admin/submissions", headers=headers)) == {acme_client}
    assert client.get("/api/admin/submissions", params={"tenant_id": "globex"}, headers=headers).status_code == 403


def test_explicit_foreign_tenant_forbidden(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    submit("globex")
    headers = login("ana@acme.test")

    assert client.get("/api/admin/submissions", params={"tenant_id": "globex"}, headers=headers).status_code == 403
    assert client.get("/api/admin/submissions", params={"tenant_id": "acme"}, headers=headers).status_code == 200


def test_list_filters(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    contact_id, _ = submit(name="Alice Smith", email="alice@example.com")
    application_id, _ = submit(form_type="application", name="Bob Jones", email="bob@example.com")
    headers = login("ana@acme.test")

    by_type = client.get("/api/admin/submissions", params={"form_type": "application"}, headers=headers)
    assert _ids(by_type) == {application_id}

    by_search = client.get("/api/admin/submissions", params={"search": "alice"}, headers=headers)
    assert _ids(by_search) == {contact_id}

    client.patch(f"/api/admin/submission/{contact_id}", json={"status": "contacted"}, headers=headers)
    by_status = client.get("/api/admin/submissions", params={"status": "contacted"}, headers=headers)
    assert _ids(by_status) == {contact_id}


def test_pagination(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    for i in range(5):
        submit(name=f"Person {i}")
    headers = login("ana@acme.test")

    page = client.get("/api/admin/submissions", params={"page": 2, "limit": 2}, headers=headers).json()["data"]
    assert len(page["submissions"]) == 2
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}

    capped = client.get("/api/admin/submissions", params={"limit": 500}, headers=headers).json()["data"]
    assert capped["pagination"]["limit"] == 100


def test_list_requires_auth(client: TestClient):
    client.cookies.clear()
    assert client.get("/api/admin/submissions").status_code == 401


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------

def test_detail_scoping(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    make_user("ops@agency.test", role="agency")
    acme_client, acme_agency = submit("acme", message="Need a quote")
    globex_client, _ = submit("globex")

    admin = login("ana@acme.test")
    detail = client.get(f"/api/admin/submission/{acme_client}", headers=admin)
    assert detail.status_code == 200
    assert detail.json()["data"]["message"] == "Need a quote"
    assert detail.json()["data"]["is_agency_copy"] is False

    assert client.get(f"/api/admin/submission/{globex_client}", headers=admin).status_code == 404
    assert client.get(f"/api/admin/submission/{acme_agency}", headers=admin).status_code == 404

    agency = login("ops@agency.test")
    assert client.get(f"/api/admin/submission/{acme_agency}", headers=agency).status_code == 200
    assert client.get(f"/api/admin/submission/{acme_client}", headers=agency).status_code == 404


# ---------------------------------------------------------------------------
# Update / soft delete
# ---------------------------------------------------------------------------

def test_update_client_copy_only(client: TestClient, db: Session, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    client_id, agency_id = submit()
    headers = login("ana@acme.test")

    response = client.patch(
        f"/api/admin/submission/{client_id}",
        json={"status": "reviewed", "admin_notes": "Called back"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"updated": True}}

    db.expire_all()
    assert db.get(Submission, client_id).status == "reviewed"
    assert db.get(Submission, client_id).admin_notes == "Called back"
    assert db.get(Submission, agency_id).status == "new"
    assert db.get(Submission, agency_id).admin_notes is None

    assert client.patch(f"/api/admin/submission/{agency_id}", json={"status": "archived"}, headers=headers).status_code == 404


def test_update_validation(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    client_id, _ = submit()
    headers = login("ana@acme.test")

    assert client.patch(f"/api/admin/submission/{client_id}", json={}, headers=headers).status_code == 400
    assert client.patch(
        f"/api/admin/submission/{client_id}", json={"status": "lost"}, headers=headers
    ).status_code == 400


def test_viewer_cannot_modify(client: TestClient, make_user, login, submit):
    make_user("val@acme.test", role="viewer", tenant_id="acme")
    client_id, _ = submit()
    headers = login("val@acme.test")

    assert client.get(f"/api/admin/submission/{client_id}", headers=headers).status_code == 200
    patch = client.patch(f"/api/admin/submission/{client_id}", json={"status": "reviewed"}, headers=headers)
    assert patch.status_code == 403
    assert patch.json()["error"] == "Permission denied"
    assert client.delete(f"/api/admin/submission/{client_id}", headers=headers).status_code == 403


def test_admin_cannot_modify_other_tenant(client: TestClient, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    globex_client, _ = submit("globex")
    headers = login("ana@acme.test")

    assert client.patch(
        f"/api/admin/submission/{globex_client}", json={"status": "reviewed"}, headers=headers
    ).status_code == 404
    assert client.delete(f"/api/admin/submission/{globex_client}", headers=headers).status_code == 404


def test_agency_modifies_any_tenant_client_copy(client: TestClient, make_user, login, submit):
    make_user("ops@agency.test", role="agency")
    globex_client, _ = submit("globex")

    response = client.patch(
        f"/api/admin/submission/{globex_client}", json={"status": "hired"}, headers=login("ops@agency.test")
    )
    assert response.status_code == 200


def test_soft_delete_keeps_agency_copy(client: TestClient, db: Session, make_user, login, submit):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    make_user("ops@agency.test", role="agency")
    client_id, agency_id = submit()
    admin = login("ana@acme.test")

    response = client.delete(f"/api/admin/submission/{client_id}", headers=admin)
    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": True}

    assert _ids(client.get("/api/admin/submissions", headers=admin)) == set()
    assert client.get(f"/api/admin/submission/{client_id}", headers=admin).status_code == 404
    assert client.delete(f"/api/admin/submission/{client_id}", headers=admin).status_code == 404

    db.expire_all()
    assert db.get(Submission, client_id).deleted_at is not None
    assert db.get(Submission, agency_id).deleted_at is None
    assert _ids(client.get("/api/admin/submissions", headers=login("ops@agency.test"))) == {agency_id}


# ---------------------------------------------------------------------------
# Resume download
# ---------------------------------------------------------------------------

def test_resume_download(client: TestClient, make_user, login, storage):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    storage.put("acme/resumes/1-jo.pdf", b"%PDF-1.4 resume", "application/pdf", {"original-name": "Jo CV.pdf"})
    headers = login("ana@acme.test")

    response = client.get("/api/admin/resume/acme/resumes/1-jo.pdf", headers=headers)
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 resume"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Jo CV.pdf"'

    inline = client.get("/api/admin/resume/acme/resumes/1-jo.pdf", params={"view": "1"}, headers=headers)
    assert inline.headers["content-disposition"] == "inline"


def test_resume_content_type_from_extension(client: TestClient, make_user, login, storage):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    storage.put("acme/resumes/2-jo.docx", b"PK", "application/octet-stream")

    response = client.get("/api/admin/resume/acme/resumes/2-jo.docx", headers=login("ana@acme.test"))
    assert response.headers["content-type"] == (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert response.headers["content-disposition"] == 'attachment; filename="2-jo.docx"'


def test_resume_scoping(client: TestClient, make_user, login, storage):
    make_user("ana@acme.test", role="admin", tenant_id="acme")
    make_user("ops@agency.test", role="agency")
    storage.put("globex/resumes/1-gil.pdf", b"%PDF", "application/pdf")

    assert client.get("/api/admin/resume/globex/resumes/1-gil.pdf", headers=login("ana@acme.test")).status_code == 403
    assert client.get("/api/admin/resume/globex/resumes/1-gil.pdf", headers=login("ops@agency.test")).status_code == 200
    assert client.get("/api/admin/resume/acme/resumes/missing.pdf", headers=login("ana@acme.test")).status_code == 404
