import pytest
from hris.core.exceptions import AuthenticationError, ConflictError, ValidationError
from hris.core.security import decrypt_data, encrypt_data, password_policy_errors
from hris.models.audit_log import AuditLog
from hris.models.user import User, UserRole, UserSession
from hris.services import auth as auth_service
from hris.services import user_service

PASSWORD = "Password@123"


def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    hashed = auth_service.get_password_hash(PASSWORD)
    assert hashed != PASSWORD
    assert auth_service.verify_password(PASSWORD, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)


def test_password_policy():
    assert password_policy_errors(PASSWORD) == []
    problems = password_policy_errors("abc")
    assert any("8 characters" in p for p in problems)
    assert any("uppercase" in p for p in problems)
    assert any("number" in p for p in problems)
    assert any("special" in p for p in problems)


def test_field_encryption_round_trip():
    token = encrypt_data("GSIS-0012345")
    assert token != "GSIS-0012345"
    assert decrypt_data(token) == "GSIS-0012345"


def test_build_user_lowercases_email(db_session):
    user = user_service.build_user(db_session, "pedro", "Pedro@LGU.gov.ph", PASSWORD)
    db_session.commit()
    saved = db_session.query(User).filter(User.username == "pedro").first()
    assert saved.id == user.id
    assert saved.email == "pedro@lgu.gov.ph"
    assert saved.role == UserRole.EMPLOYEE
    assert auth_service.verify_password(PASSWORD, saved.hashed_password)


def test_build_user_duplicate_email(db_session, employee_user):
    with pytest.raises(ConflictError):
        user_service.build_user(db_session, "someoneelse", "JUAN@lgu.gov.ph", PASSWORD)


def test_build_user_weak_password(db_session):
    with pytest.raises(ValidationError) as exc:
        user_service.build_user(db_session, "weak", "weak@lgu.gov.ph", "weak")
    assert exc.value.errors
    assert all(e["field"] == "password" for e in exc.value.errors)


def test_failed_login_is_audited(db_session, employee_user):
    with pytest.raises(AuthenticationError):
        user_service.authenticate(db_session, "juan", "Wrong@12345", request_ip="10.0.0.7")
    entry = db_session.query(AuditLog).filter(AuditLog.action == "failed_login").first()
    assert entry is not None
    assert entry.ip_address == "10.0.0.7"
    assert entry.details["identifier"] == "juan"


def test_login_persists_session(db_session, employee_user):
    result = user_service.login(db_session, "juan", PASSWORD, user_agent="pytest", ip_address="127.0.0.1")
    assert result["user"].id == employee_user.id
    session = db_session.query(UserSession).filter(UserSession.refresh_token == result["refresh_token"]).first()
    assert session is not None
    assert session.is_revoked is False
    assert session.user_agent == "pytest"


def test_access_token_claims(employee_user):
    token = user_service.access_token_for(employee_user)["access_token"]
    payload = auth_service.decode_access_token(token)
    assert payload["sub"] == str(employee_user.id)
    assert payload["role"] == "Employee"
    assert payload["type"] == "access"


def test_refresh_tokens_are_unique(employee_user):
    first = auth_service.create_refresh_token(data={"sub": str(employee_user.id)})
    second = auth_service.create_refresh_token(data={"sub": str(employee_user.id)})
    assert first != second


def test_decode_rejects_tampered_token(employee_user):
    token = user_service.access_token_for(employee_user)["access_token"]
    header, payload, _ = token.split(".")
    assert auth_service.decode_access_token(f"{header}.{payload}.invalidsignature") is None
