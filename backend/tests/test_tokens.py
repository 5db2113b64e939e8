"""Tests for JWT issuance and verification"""
import time
import uuid
from datetime import datetime

import pytest
from jose import jwt

from formsdesk.exceptions import ConfigurationError, InvalidToken
from formsdesk.models.admin_user import AdminUser
from formsdesk.utils.jwt_utils import (
    create_access_token,
    decode_access_token,
    generate_session_id,
    require_signing_secret,
    session_expiry,
    signing_secret,
)

SECRET = "unit-test-secret-that-is-long-enough-123"
WEEK = 7 * 24 * 60 * 60


@pytest.fixture
def user() -> AdminUser:
    return AdminUser(id=7, email="ana@acme.test", name="Ana", role="admin", tenant_id="acme")


def test_token_round_trip(user: AdminUser):
    session_id = generate_session_id()
    token = create_access_token(user, SECRET, session_id)

    claims = decode_access_token(token, SECRET)
    assert claims.sub == "7"
    assert claims.email == "ana@acme.test"
    assert claims.name == "Ana"
    assert claims.role == "admin"
    assert claims.tenant_id == "acme"
    assert claims.jti == session_id
    assert claims.exp - claims.iat == WEEK


def test_unscoped_user_has_null_tenant():
    agency = AdminUser(id=3, email="ops@agency.test", name="Ops", role="agency", tenant_id=None)
    claims = decode_access_token(create_access_token(agency, SECRET, generate_session_id()), SECRET)
    assert claims.tenant_id is None
    assert claims.role == "agency"


def test_token_uses_hs256(user: AdminUser):
    token = create_access_token(user, SECRET, generate_session_id())
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_wrong_secret_rejected(user: AdminUser):
    token = create_access_token(user, SECRET, generate_session_id())
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET + "-other")


def test_expired_token_rejected(user: AdminUser):
    issued_at = int(time.time()) - WEEK - 60
    token = create_access_token(user, SECRET, generate_session_id(), issued_at=issued_at)
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET)


def test_tampered_token_rejected(user: AdminUser):
    token = create_access_token(user, SECRET, generate_session_id())
    header, payload, signature = token.split(".")
    forged = jwt.encode({"sub": "1", "role": "superadmin"}, "attacker", algorithm="HS256").split(".")[1]
    with pytest.raises(InvalidToken):
        decode_access_token(f"{header}.{forged}.{signature}", SECRET)


def test_garbage_token_rejected():
    with pytest.raises(InvalidToken):
        decode_access_token("not.a.token", SECRET)


def test_missing_claims_rejected():
    now = int(time.time())
    token = jwt.encode({"sub": "1", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        decode_access_token(token, SECRET)


def test_unknown_role_rejected():
    now = int(time.time())
    payload = {
        "sub": "1", "email": "x@y.z", "name": "X", "role": "owner", "tenant_id": None,
        "jti": generate_session_id(), "iat": now, "exp": now + 60,
    }
    with pytest.raises(InvalidToken):
        decode_access_token(jwt.encode(payload, SECRET, algorithm="HS256"), SECRET)


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_is_configuration_error(user: AdminUser, secret):
    with pytest.raises(ConfigurationError):
        create_access_token(user, secret, generate_session_id())
    with pytest.raises(ConfigurationError):
        decode_access_token("anything", secret)
    with pytest.raises(ConfigurationError):
        require_signing_secret(secret)
    with pytest.raises(ConfigurationError):
        signing_secret(secret)


def test_short_secret_warns_only_at_startup(user: AdminUser, caplog):
    short = "too-short"
    with caplog.at_level("WARNING", logger="formsdesk"):
        token = create_access_token(user, short, generate_session_id())
        decode_access_token(token, short)
        decode_access_token(token, short)
    assert "shorter than 32 bytes" not in caplog.text

    with caplog.at_level("WARNING", logger="formsdesk"):
        assert require_signing_secret(short) == short
    assert "shorter than 32 bytes" in caplog.text


def test_session_ids_are_uuid4():
    ids = {generate_session_id() for _ in range(50)}
    assert len(ids) == 50
    for value in ids:
        assert uuid.UUID(value).version == 4


def test_session_expiry_matches_token_expiry():
    issued_at = 1_700_000_000
    assert session_expiry(issued_at) == datetime(2023, 11, 21, 22, 13, 20)
