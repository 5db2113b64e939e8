"""Pytest configuration and fixtures"""
import os

# Settings are read at import time; configure the test environment first
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-signing-secret-with-at-least-32-bytes!"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_CLEANUP_INTERVAL_SECONDS"] = "0"
os.environ["TENANT_ID"] = "acme"

from typing import Dict, Generator, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

import formsdesk.models  # noqa: E402,F401
from formsdesk.api.deps import get_mailer, get_storage  # noqa: E402
from formsdesk.database import Base, SessionLocal, engine, get_db  # noqa: E402
from formsdesk.main import app  # noqa: E402
from formsdesk.models.admin_user import AdminUser  # noqa: E402
from formsdesk.utils.email import EmailMessage, EmailResult  # noqa: E402
from formsdesk.utils.passwords import hash_password  # noqa: E402
from formsdesk.utils.storage import StoredObject  # noqa: E402

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeStorage:
    """In-memory stand-in for the S3 resume bucket"""

    def __init__(self):
        self.objects: Dict[str, StoredObject] = {}

    def put(self, key: str, body: bytes, content_type: str, metadata: Optional[Dict[str, str]] = None) -> None:
        self.objects[key] = StoredObject(body=body, content_type=content_type, metadata=dict(metadata or {}))

    def get(self, key: str) -> Optional[StoredObject]:
        return self.objects.get(key)


class FakeMailer:
    """Records messages instead of calling SES"""

    def __init__(self):
        self.sent: List[dict] = []
        self.fail = False

    def send(self, to: List[str], sender: str, message: EmailMessage) -> EmailResult:
        if self.fail:
            return EmailResult(success=False, error="SES unavailable")
        self.sent.append({"to": list(to), "sender": sender, "message": message})
        return EmailResult(success=True, message_id=f"msg-{len(self.sent)}")


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture(scope="function")
def client(db: Session, storage: FakeStorage, mailer: FakeMailer) -> Generator[TestClient, None, None]:
    """Create test client with database and collaborator overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Session):
    """Factory that inserts an admin user with the shared test password"""

    def _make_user(
        email: str,
        role: str = "admin",
        tenant_id: Optional[str] = None,
        notify_forms: str = "none",
        is_active: bool = True,
        name: Optional[str] = None,
    ) -> AdminUser:
        user = AdminUser(
            email=email,
            password_hash=PASSWORD_HASH,
            name=name or email.split("@")[0].title(),
            role=role,
            tenant_id=tenant_id,
            notify_forms=notify_forms,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def login(client: TestClient):
    """Log in and return bearer headers for the new session"""

    def _login(email: str, password: str = PASSWORD) -> dict:
        response = client.post("/api/admin/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['data']['token']}"}

    return _login
