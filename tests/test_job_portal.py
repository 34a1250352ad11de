import pytest
from datetime import date, timedelta
from fastapi import status
from hris.models.job_application import ApplicationStatus
from hris.models.job_posting import JobPosting, PostingStatus
from hris.models.notification import Notification

PASSWORD = "Password@123"


def _start(client, applicant_user, auth_headers, posting_id, cover_letter="I am interested."):
    return client.post(
        "/api/job-portal/applications",
        headers=auth_headers(applicant_user),
        json={"position_id": posting_id, "cover_letter": cover_letter},
    )


def test_register_and_login_applicant(client):
    """Applicants sign up with their email and log in with it."""
    response = client.post(
        "/api/job-portal/register",
        json={"email": "Lito.Cruz@gmail.com", "password": PASSWORD, "first_name": "Lito", "last_name": "Cruz"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    profile = response.json()["data"]
    assert profile["email"] == "lito.cruz@gmail.com"
    assert profile["is_profile_complete"] is False

    login = client.post("/api/job-portal/login", json={"email": "lito.cruz@gmail.com", "password": PASSWORD})
    assert login.status_code == status.HTTP_200_OK
    data = login.json()["data"]
    assert data["access_token"]
    assert data["user"]["role"] == "Applicant"
    assert data["applicant"]["id"] == profile["id"]


def test_register_duplicate_email(client, applicant_user):
    response = client.post("/api/job-portal/register", json={"email": applicant_user.email, "password": PASSWORD})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Email already registered"


def test_employee_cannot_use_applicant_login(client, employee_user):
    response = client.post("/api/job-portal/login", json={"email": employee_user.email, "password": PASSWORD})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_applicant_login_wrong_password(client, applicant_user):
    response = client.post("/api/job-portal/login", json={"email": applicant_user.email, "password": "Wrong@12345"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_profile(client, applicant_user, auth_headers):
    headers = auth_headers(applicant_user)
    assert client.get("/api/job-portal/profile", headers=headers).json()["data"]["first_name"] == "Rosa"

    updated = client.put("/api/job-portal/profile", headers=headers, json={"phone": None, "highest_education": "BSBA"})
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["data"]["highest_education"] == "BSBA"

    completion = client.get("/api/job-portal/profile/completion-status", headers=headers).json()["data"]
    assert completion == {"complete": False, "missing_fields": ["phone"]}


def test_profile_requires_applicant_role(client, employee_user, auth_headers):
    response = client.get("/api/job-portal/profile", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_public_job_board(client, job_posting, department, db_session):
    """Listings are public and only show published postings."""
    db_session.add(JobPosting(
        position_title="Engineer II",
        department_id=department.id,
        job_description="Draft plans",
        qualifications="Licensed civil engineer",
        posting_status=PostingStatus.DRAFT,
    ))
    db_session.commit()

    response = client.get("/api/job-portal/jobs")
    assert response.status_code == status.HTTP_200_OK
    assert [j["position_title"] for j in response.json()["data"]] == ["Administrative Aide IV"]

    assert len(client.get("/api/job-portal/jobs?keywords=clerical").json()["data"]) == 1
    assert len(client.get("/api/job-portal/jobs?keywords=welding").json()["data"]) == 0
    assert len(client.get("/api/job-portal/jobs?department=All").json()["data"]) == 1
    dept = department.department_name.upper()
    assert len(client.get("/api/job-portal/jobs", params={"department": dept}).json()["data"]) == 1
    assert len(client.get("/api/job-portal/jobs?department=Nowhere").json()["data"]) == 0


def test_public_job_detail(client, job_posting, db_session):
    assert client.get(f"/api/job-portal/jobs/{job_posting.id}").status_code == status.HTTP_200_OK
    job_posting.posting_status = PostingStatus.CLOSED
    db_session.commit()
    response = client.get(f"/api/job-portal/jobs/{job_posting.id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Job not found"


def test_public_catalogues(client, job_posting, department):
    assert client.get("/api/job-portal/departments").json()["data"] == [department.department_name]
    assert client.get("/api/job-portal/salary-ranges").json()["data"] == ["₱15,000 - ₱25,000"]


def test_application_lifecycle(client, applicant_user, job_posting, auth_headers):
    headers = auth_headers(applicant_user)
    started = _start(client, applicant_user, auth_headers, job_posting.id)
    assert started.status_code == status.HTTP_201_CREATED
    application = started.json()["data"]
    assert application["status"] == ApplicationStatus.PENDING.value
    app_id = application["id"]

    uploaded = client.post(
        f"/api/job-portal/applications/{app_id}/upload",
        headers=headers,
        json={"document_type": "Resume", "document_path": "/uploads/rosa-cv.pdf"},
    )
    assert uploaded.json()["data"]["documents"][0]["document_type"] == "Resume"

    answers = client.put(
        f"/api/job-portal/applications/{app_id}/answers",
        headers=headers,
        json={"answers": {"willing_to_relocate": True}},
    )
    assert answers.json()["data"]["answers"] == {"willing_to_relocate": True}

    edited = client.put(f"/api/job-portal/applications/{app_id}", headers=headers, json={"cover_letter": "Updated"})
    assert edited.json()["data"]["cover_letter"] == "Updated"

    submitted = client.post(f"/api/job-portal/applications/{app_id}/submit", headers=headers)
    assert submitted.json()["data"]["status"] == ApplicationStatus.PRE_SCREENING.value

    # Past the pending stage the application is frozen
    again = client.put(f"/api/job-portal/applications/{app_id}", headers=headers, json={"cover_letter": "Late"})
    assert again.status_code == status.HTTP_400_BAD_REQUEST

    mine = client.get("/api/job-portal/applications", headers=headers).json()["data"]
    assert [a["id"] for a in mine] == [app_id]
    assert mine[0]["position_title"] == "Administrative Aide IV"


def test_duplicate_application(client, applicant_user, job_posting, auth_headers):
    _start(client, applicant_user, auth_headers, job_posting.id)
    response = _start(client, applicant_user, auth_headers, job_posting.id)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "You have already applied for this position"


def test_closed_or_expired_posting(client, applicant_user, job_posting, auth_headers, db_session):
    job_posting.application_deadline = date.today() - timedelta(days=1)
    db_session.commit()
    response = _start(client, applicant_user, auth_headers, job_posting.id)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    assert _start(client, applicant_user, auth_headers, 9999).status_code == status.HTTP_404_NOT_FOUND


def test_posting_is_open():
    posting = JobPosting(posting_status=PostingStatus.PUBLISHED, application_deadline=date(2025, 5, 31))
    assert posting.is_open(today=date(2025, 5, 31))
    assert not posting.is_open(today=date(2025, 6, 1))
    assert not JobPosting(posting_status=PostingStatus.DRAFT).is_open()
    assert JobPosting(posting_status=PostingStatus.PUBLISHED).is_open()


def test_withdraw(client, applicant_user, job_posting, auth_headers):
    headers = auth_headers(applicant_user)
    app_id = _start(client, applicant_user, auth_headers, job_posting.id).json()["data"]["id"]

    withdrawn = client.delete(f"/api/job-portal/applications/{app_id}", headers=headers)
    assert withdrawn.status_code == status.HTTP_200_OK
    assert withdrawn.json()["data"]["status"] == ApplicationStatus.WITHDRAWN.value
    assert withdrawn.json()["data"]["withdrawn_date"] is not None

    twice = client.delete(f"/api/job-portal/applications/{app_id}", headers=headers)
    assert twice.status_code == status.HTTP_400_BAD_REQUEST


def test_applications_are_private(client, applicant_user, make_user, job_posting, auth_headers, db_session):
    from hris.models.job_applicant import JobApplicant
    from hris.models.user import UserRole

    app_id = _start(client, applicant_user, auth_headers, job_posting.id).json()["data"]["id"]
    other = make_user("other.applicant", UserRole.APPLICANT)
    db_session.add(JobApplicant(user_id=other.id, email=other.email))
    db_session.commit()

    response = client.get(f"/api/job-portal/applications/{app_id}", headers=auth_headers(other))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_notify_applicant(client, hr_user, applicant_user, auth_headers, db_session):
    applicant_id = applicant_user.applicant_profile.id
    response = client.post(
        "/api/job-portal/notifications",
        headers=auth_headers(hr_user),
        json={"applicant_id": applicant_id, "message": "Please bring your original transcript."},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["notification_type"] == "Job Application"

    inbox = db_session.query(Notification).filter(Notification.user_id == applicant_user.id).all()
    assert len(inbox) == 1

    missing = client.post(
        "/api/job-portal/notifications",
        headers=auth_headers(hr_user),
        json={"applicant_id": 9999, "message": "Hello"},
    )
    assert missing.status_code == status.HTTP_404_NOT_FOUND

    forbidden = client.post(
        "/api/job-portal/notifications",
        headers=auth_headers(applicant_user),
        json={"applicant_id": applicant_id, "message": "Hello"},
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
