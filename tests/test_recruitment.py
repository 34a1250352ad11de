import pytest
from fastapi import status
from hris.models.job_application import ApplicationStatus, JobApplication
from hris.models.notification import Notification
from hris.services.recruitment_service import salary_range_label


def _posting_payload(department, **overrides):
    payload = {
        "position_title": "Nurse I",
        "department_id": department.id,
        "job_description": "Provide nursing care at the rural health unit",
        "qualifications": "BS Nursing, RN license",
        "salary_range": "3",
        "employment_type": "Permanent",
        "num_vacancies": 3,
    }
    payload.update(overrides)
    return payload


def _apply(db_session, applicant_user, job_posting):
    application = JobApplication(
        position_id=job_posting.id,
        applicant_id=applicant_user.applicant_profile.id,
        cover_letter="Please consider me.",
        status=ApplicationStatus.PRE_SCREENING,
    )
    db_session.add(application)
    db_session.commit()
    return application


def test_recruitment_root(client, employee_user, auth_headers):
    response = client.get("/api/recruitment/", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Recruitment module - Coming soon"


def test_salary_range_label():
    assert salary_range_label("3") == "₱35,000 - ₱45,000"
    assert salary_range_label("10") == "₱105,000+"
    assert salary_range_label("Negotiable") == "Negotiable"
    assert salary_range_label(None) is None


def test_create_posting(client, hr_user, department, auth_headers):
    """New postings start as drafts and catalogue ids become labels."""
    response = client.post("/api/recruitment/jobs", headers=auth_headers(hr_user), json=_posting_payload(department))
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["posting_status"] == "Draft"
    assert data["salary_range"] == "₱35,000 - ₱45,000"
    assert data["department_name"] == department.department_name
    assert data["created_by"] == hr_user.id


def test_create_posting_validation(client, hr_user, department, auth_headers):
    response = client.post(
        "/api/recruitment/jobs",
        headers=auth_headers(hr_user),
        json=_posting_payload(department, num_vacancies=0, position_title=""),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert {e["field"] for e in response.json()["errors"]} == {"num_vacancies", "position_title"}

    unknown = client.post(
        "/api/recruitment/jobs", headers=auth_headers(hr_user), json=_posting_payload(department, department_id=9999)
    )
    assert unknown.status_code == status.HTTP_404_NOT_FOUND


def test_posting_status_and_update(client, hr_user, department, auth_headers):
    headers = auth_headers(hr_user)
    posting_id = client.post("/api/recruitment/jobs", headers=headers, json=_posting_payload(department)).json()["data"]["id"]

    published = client.patch(
        f"/api/recruitment/jobs/{posting_id}/status", headers=headers, json={"posting_status": "Published"}
    )
    assert published.json()["data"]["posting_status"] == "Published"
    assert published.json()["message"] == "Job posting status changed to Published"
    assert len(client.get("/api/job-portal/jobs").json()["data"]) == 1

    updated = client.put(f"/api/recruitment/jobs/{posting_id}", headers=headers, json={"num_vacancies": 5, "salary_range": "10"})
    assert updated.json()["data"]["num_vacancies"] == 5
    assert updated.json()["data"]["salary_range"] == "₱105,000+"

    listing = client.get("/api/recruitment/jobs?status=Published", headers=headers)
    assert listing.json()["pagination"]["total"] == 1


def test_employee_cannot_manage_postings(client, employee_user, department, auth_headers):
    response = client.post("/api/recruitment/jobs", headers=auth_headers(employee_user), json=_posting_payload(department))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_posting_admin_only(client, hr_user, admin_user, department, auth_headers):
    posting_id = client.post(
        "/api/recruitment/jobs", headers=auth_headers(hr_user), json=_posting_payload(department)
    ).json()["data"]["id"]
    assert client.delete(f"/api/recruitment/jobs/{posting_id}", headers=auth_headers(hr_user)).status_code == 403
    assert client.delete(f"/api/recruitment/jobs/{posting_id}", headers=auth_headers(admin_user)).status_code == 200
    assert client.get(f"/api/recruitment/jobs/{posting_id}", headers=auth_headers(hr_user)).status_code == 404


def test_delete_posting_with_applications(client, admin_user, applicant_user, job_posting, auth_headers, db_session):
    _apply(db_session, applicant_user, job_posting)
    response = client.delete(f"/api/recruitment/jobs/{job_posting.id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_change_application_status_notifies_applicant(
    client, hr_user, applicant_user, job_posting, auth_headers, db_session
):
    application = _apply(db_session, applicant_user, job_posting)
    response = client.patch(
        f"/api/recruitment/applications/{application.id}/status",
        headers=auth_headers(hr_user),
        json={"status": "For_Interview", "remarks": "Panel interview on Monday"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["status"] == "For_Interview"
    assert data["remarks"] == "Panel interview on Monday"
    assert data["applicant_name"] == "Rosa Mendoza"

    notice = db_session.query(Notification).filter(Notification.user_id == applicant_user.id).one()
    assert "For Interview" in notice.message

    inbox = client.get("/api/notifications/", headers=auth_headers(applicant_user)).json()["data"]
    assert inbox[0]["title"] == "Application status updated"


def test_application_listing(client, hr_user, applicant_user, job_posting, auth_headers, db_session):
    application = _apply(db_session, applicant_user, job_posting)
    headers = auth_headers(hr_user)

    listing = client.get(f"/api/recruitment/applications?position_id={job_posting.id}", headers=headers)
    assert [a["id"] for a in listing.json()["data"]] == [application.id]
    assert client.get("/api/recruitment/applications?status=Hired", headers=headers).json()["data"] == []

    detail = client.get(f"/api/recruitment/applications/{application.id}", headers=headers)
    assert detail.json()["data"]["position_title"] == "Administrative Aide IV"


def test_dashboard(client, hr_user, applicant_user, job_posting, auth_headers, db_session):
    _apply(db_session, applicant_user, job_posting)
    response = client.get("/api/recruitment/dashboard", headers=auth_headers(hr_user))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["statistics"] == {
        "total_job_postings": 1,
        "active_job_postings": 1,
        "total_applications": 1,
        "pending_applications": 0,
    }
    assert len(data["recent_applications"]) == 1


def test_catalogues(client, hr_user, department, auth_headers):
    headers = auth_headers(hr_user)
    departments = client.get("/api/recruitment/departments", headers=headers).json()["data"]
    assert [d["department_name"] for d in departments] == [department.department_name]

    ranges = client.get("/api/recruitment/salary-ranges", headers=headers).json()["data"]
    assert len(ranges) == 10
    assert ranges[-1] == {"id": "10", "range": "₱105,000+", "min": 105000, "max": None}


def test_update_posting_rejects_null_required_fields(client, hr_user, job_posting, auth_headers):
    response = client.put(
        f"/api/recruitment/jobs/{job_posting.id}",
        headers=auth_headers(hr_user),
        json={"position_title": None, "posting_status": None},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert {e["field"] for e in response.json()["errors"]} == {"position_title", "posting_status"}
