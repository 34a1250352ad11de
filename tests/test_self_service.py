import pytest
from fastapi import status
from hris.models.audit_log import AuditLog


def _register_document(client, headers, title="Service Record"):
    return client.post(
        "/api/employee-self-service/upload-document",
        headers=headers,
        json={"title": title, "file_url": f"/files/{title.lower().replace(' ', '-')}.pdf", "file_type": "application/pdf"},
    )


def test_self_service_root(client, employee_user, auth_headers):
    response = client.get("/api/employee-self-service/", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Employee Self-Service module - API root"


def test_get_my_profile(client, employee_user, auth_headers):
    response = client.get("/api/employee-self-service/my-profile", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_200_OK
    profile = response.json()["data"]
    assert profile["username"] == "juan"
    assert profile["role"] == "Employee"
    assert profile["general"]["first_name"] == "Juan"
    assert profile["employment"]["designation"] == "Administrative Officer"
    assert profile["employment"]["department_name"] == "Human Resource Management Office"
    assert profile["membership"]["gsis_number"] is None


def test_update_my_profile(client, employee_user, auth_headers, db_session):
    headers = auth_headers(employee_user)
    response = client.put(
        "/api/employee-self-service/my-profile",
        headers=headers,
        json={
            "contact_number": "09181112222",
            "civil_status": "Married",
            "email": "Juan.Personal@lgu.gov.ph",
            "profile_picture": "/media/juan.jpg",
        },
    )
    assert response.status_code == status.HTTP_200_OK
    profile = response.json()["data"]
    assert profile["general"]["contact_number"] == "09181112222"
    assert profile["general"]["civil_status"] == "Married"
    assert profile["email"] == "juan.personal@lgu.gov.ph"
    assert profile["profile_picture"] == "/media/juan.jpg"

    entry = db_session.query(AuditLog).filter(AuditLog.action == "update_my_profile").one()
    assert entry.user_id == employee_user.id


def test_profile_email_must_be_unique(client, employee_user, hr_user, auth_headers):
    response = client.put(
        "/api/employee-self-service/my-profile",
        headers=auth_headers(employee_user),
        json={"email": hr_user.email},
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_employment_fields_are_not_self_editable(client, employee_user, auth_headers):
    """Unknown keys such as salary are ignored rather than applied."""
    headers = auth_headers(employee_user)
    client.put("/api/employee-self-service/my-profile", headers=headers, json={"salary": 99999})
    profile = client.get("/api/employee-self-service/my-profile", headers=headers).json()["data"]
    assert profile["employment"]["salary"] == 30000


def test_my_documents(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    created = _register_document(client, headers)
    assert created.status_code == status.HTTP_201_CREATED
    document = created.json()["data"]
    assert document["personnel_id"] == employee_user.personnel.id
    assert document["category"] == "general"

    listing = client.get("/api/employee-self-service/my-documents", headers=headers).json()["data"]
    assert [d["title"] for d in listing] == ["Service Record"]

    deleted = client.delete(f"/api/employee-self-service/documents/{document['id']}", headers=headers)
    assert deleted.status_code == status.HTTP_200_OK
    assert client.get("/api/employee-self-service/my-documents", headers=headers).json()["data"] == []


def test_cannot_delete_someone_elses_document(client, employee_user, hr_user, auth_headers):
    document_id = _register_document(client, auth_headers(hr_user)).json()["data"]["id"]
    response = client.delete(f"/api/employee-self-service/documents/{document_id}", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Document not found"


def test_document_validation(client, employee_user, auth_headers):
    response = client.post(
        "/api/employee-self-service/upload-document",
        headers=auth_headers(employee_user),
        json={"title": "", "file_type": "application/pdf"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert {e["field"] for e in response.json()["errors"]} == {"title", "file_url"}


def test_applicant_has_no_personnel_record(client, applicant_user, auth_headers):
    response = client.get("/api/employee-self-service/my-profile", headers=auth_headers(applicant_user))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Personnel record not found"
