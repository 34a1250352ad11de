import pytest
from datetime import timedelta
from fastapi import status
from hris.models.user import UserRole, UserStatus
from hris.services import auth as auth_service

PASSWORD = "Password@123"


def _login(client, username, password=PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def test_register_employee(client):
    """Self-registration creates an Employee account and returns an access token."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": "maria",
            "email": "Maria.Santos@lgu.gov.ph",
            "password": PASSWORD,
            "first_name": "Maria",
            "last_name": "Santos",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Registration successful"
    assert body["data"]["user"]["role"] == "Employee"
    assert body["data"]["user"]["email"] == "maria.santos@lgu.gov.ph"
    assert body["data"]["user"]["personnel_id"] is not None
    assert body["data"]["access_token"]


def test_register_rejects_weak_password(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "weakling", "email": "weak@lgu.gov.ph", "password": "password"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert {e["field"] for e in body["errors"]} == {"password"}


def test_register_duplicate_username(client, employee_user):
    response = client.post(
        "/api/auth/register",
        json={"username": "juan", "email": "another@lgu.gov.ph", "password": PASSWORD},
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "CONFLICT"


def test_register_missing_fields(client):
    """Schema errors come back as 400 with one entry per field."""
    response = client.post("/api/auth/register", json={"username": "x1"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert "email" in fields
    assert "password" in fields


def test_login_with_username(client, employee_user):
    response = _login(client, "juan")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "juan"


def test_login_with_email(client, employee_user):
    response = _login(client, "JUAN@lgu.gov.ph")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["user"]["id"] == employee_user.id


def test_login_wrong_password(client, employee_user):
    response = _login(client, "juan", "Wrong@12345")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid credentials"


def test_login_inactive_account(client, make_user):
    make_user("dormant", UserRole.EMPLOYEE, status=UserStatus.INACTIVE)
    response = _login(client, "dormant")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Account is inactive"


def test_get_me(client, employee_user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["username"] == "juan"
    assert data["role"] == "Employee"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_expired_token_is_rejected(client, employee_user):
    token = auth_service.create_access_token(
        data={"sub": str(employee_user.id), "username": "juan", "role": "Employee"},
        expires_delta=timedelta(minutes=-5),
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "TOKEN_EXPIRED"


def test_refresh_token_cannot_be_used_as_access_token(client, employee_user):
    refresh = _login(client, "juan").json()["data"]["refresh_token"]
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_inactive_user_token_is_rejected(client, employee_user, auth_headers, db_session):
    headers = auth_headers(employee_user)
    employee_user.status = UserStatus.INACTIVE
    db_session.commit()
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "User is inactive"


def test_refresh_token_rotation(client, employee_user):
    """A refresh token is single use: the second attempt is refused."""
    refresh = _login(client, "juan").json()["data"]["refresh_token"]

    first = client.post("/api/auth/refresh-token", json={"refresh_token": refresh})
    assert first.status_code == status.HTTP_200_OK
    new_refresh = first.json()["data"]["refresh_token"]
    assert new_refresh and new_refresh != refresh

    replay = client.post("/api/auth/refresh-token", json={"refresh_token": refresh})
    assert replay.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_with_garbage_token(client):
    response = client.post("/api/auth/refresh-token", json={"refresh_token": "not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Invalid refresh token"


def test_logout_revokes_all_sessions(client, employee_user, auth_headers):
    first = _login(client, "juan").json()["data"]["refresh_token"]
    second = _login(client, "juan").json()["data"]["refresh_token"]

    response = client.post("/api/auth/logout", headers=auth_headers(employee_user), json={})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["sessions_revoked"] == 2

    for token in (first, second):
        again = client.post("/api/auth/refresh-token", json={"refresh_token": token})
        assert again.status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_single_session(client, employee_user, auth_headers):
    keep = _login(client, "juan").json()["data"]["refresh_token"]
    drop = _login(client, "juan").json()["data"]["refresh_token"]

    response = client.post(
        "/api/auth/logout", headers=auth_headers(employee_user), json={"refresh_token": drop}
    )
    assert response.json()["data"]["sessions_revoked"] == 1
    assert client.post("/api/auth/refresh-token", json={"refresh_token": keep}).status_code == 200


def test_change_password(client, employee_user, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers(employee_user),
        json={"current_password": PASSWORD, "new_password": "NewPassword#2024"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert _login(client, "juan", "NewPassword#2024").status_code == status.HTTP_200_OK
    assert _login(client, "juan").status_code == status.HTTP_401_UNAUTHORIZED


def test_change_password_wrong_current(client, employee_user, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers(employee_user),
        json={"current_password": "Nope@12345", "new_password": "NewPassword#2024"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Current password is incorrect"


def test_change_password_policy(client, employee_user, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers(employee_user),
        json={"current_password": PASSWORD, "new_password": "short"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert all(e["field"] == "new_password" for e in response.json()["errors"])
