"""
Online job application portal.
Job listings are public; everything under /profile and /applications
belongs to the signed-in applicant.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hris.core.config import settings
from hris.core.limiter import limiter
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User
from hris.routers.auth_deps import require_applicant, require_staff
from hris.schemas.auth import UserResponse
from hris.schemas.job_portal import (
    ApplicantLogin,
    ApplicantNotification,
    ApplicantProfileResponse,
    ApplicantProfileUpdate,
    ApplicantRegister,
    ApplicationAnswers,
    ApplicationDocumentCreate,
    ApplicationEdit,
    ApplicationStart,
)
from hris.schemas.notification import NotificationResponse
from hris.schemas.recruitment import JobApplicationResponse, JobPostingResponse
from hris.services import job_portal_service

router = APIRouter(
    prefix="/job-portal",
    tags=["job-portal"]
)


def _application(application):
    return JobApplicationResponse.model_validate(application)


# --- Account ---

@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
def register(request: Request, data: ApplicantRegister, db: Session = Depends(get_db)):
    applicant = job_portal_service.register_applicant(db, data)
    return ApiResponse.ok(
        data=ApplicantProfileResponse.model_validate(applicant),
        message="Applicant registered successfully",
    ).to_dict()


@router.post("/login")
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, data: ApplicantLogin, db: Session = Depends(get_db)):
    result = job_portal_service.login_applicant(
        db,
        data.email,
        data.password,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return ApiResponse.ok(
        data={
            "access_token": result["access_token"],
            "refresh_token": result["refresh_token"],
            "token_type": result["token_type"],
            "expires_in": result["expires_in"],
            "user": UserResponse.model_validate(result["user"]),
            "applicant": ApplicantProfileResponse.model_validate(result["applicant"]),
        },
        message="Login successful",
    ).to_dict()


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), current_user: User = Depends(require_applicant())):
    applicant = job_portal_service.get_profile(db, current_user)
    return ApiResponse.ok(data=ApplicantProfileResponse.model_validate(applicant)).to_dict()


@router.put("/profile")
def update_profile(
    data: ApplicantProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    applicant = job_portal_service.update_profile(db, current_user, data)
    return ApiResponse.ok(
        data=ApplicantProfileResponse.model_validate(applicant), message="Profile updated successfully"
    ).to_dict()


@router.get("/profile/completion-status")
def profile_completion(db: Session = Depends(get_db), current_user: User = Depends(require_applicant())):
    return ApiResponse.ok(data=job_portal_service.profile_completion(db, current_user)).to_dict()


# --- Public job board ---

@router.get("/jobs")
def list_jobs(
    keywords: Optional[str] = None,
    department: Optional[str] = None,
    salary_range: Optional[str] = None,
    db: Session = Depends(get_db),
):
    rows = job_portal_service.list_public_jobs(db, keywords, department, salary_range)
    return ApiResponse.ok(data=[JobPostingResponse.model_validate(r) for r in rows]).to_dict()


@router.get("/jobs/{posting_id}")
def get_job(posting_id: int, db: Session = Depends(get_db)):
    posting = job_portal_service.get_public_job(db, posting_id)
    return ApiResponse.ok(data=JobPostingResponse.model_validate(posting)).to_dict()


@router.get("/departments")
def list_departments(db: Session = Depends(get_db)):
    return ApiResponse.ok(data=job_portal_service.public_departments(db)).to_dict()


@router.get("/salary-ranges")
def list_salary_ranges(db: Session = Depends(get_db)):
    return ApiResponse.ok(data=job_portal_service.public_salary_ranges(db)).to_dict()


# --- Applications ---

@router.post("/applications", status_code=status.HTTP_201_CREATED)
def start_application(
    data: ApplicationStart,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.start_application(db, current_user, data.position_id, data.cover_letter)
    return ApiResponse.ok(data=_application(application), message="Application started").to_dict()


@router.post("/applications/{application_id}/upload")
def attach_document(
    application_id: int,
    data: ApplicationDocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.attach_document(
        db, current_user, application_id, data.document_type, data.document_path
    )
    return ApiResponse.ok(data=_application(application), message="Document attached").to_dict()


@router.put("/applications/{application_id}/answers")
def save_answers(
    application_id: int,
    data: ApplicationAnswers,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.save_answers(db, current_user, application_id, data.answers)
    return ApiResponse.ok(data=_application(application), message="Answers saved").to_dict()


@router.post("/applications/{application_id}/submit")
def submit_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.submit_application(db, current_user, application_id)
    return ApiResponse.ok(data=_application(application), message="Application submitted successfully").to_dict()


@router.get("/applications")
def my_applications(db: Session = Depends(get_db), current_user: User = Depends(require_applicant())):
    rows = job_portal_service.list_my_applications(db, current_user)
    return ApiResponse.ok(data=[_application(r) for r in rows]).to_dict()


@router.get("/applications/{application_id}")
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.get_my_application(db, current_user, application_id)
    return ApiResponse.ok(data=_application(application)).to_dict()


@router.put("/applications/{application_id}")
def edit_application(
    application_id: int,
    data: ApplicationEdit,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.edit_application(db, current_user, application_id, data.cover_letter)
    return ApiResponse.ok(data=_application(application), message="Application updated").to_dict()


@router.delete("/applications/{application_id}")
def withdraw_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_applicant()),
):
    application = job_portal_service.withdraw_application(db, current_user, application_id)
    return ApiResponse.ok(data=_application(application), message="Application withdrawn").to_dict()


# --- Staff ---

@router.post("/notifications", status_code=status.HTTP_201_CREATED)
def notify_applicant(
    data: ApplicantNotification,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    notification = job_portal_service.notify_applicant(db, data, current_user)
    return ApiResponse.ok(
        data=NotificationResponse.model_validate(notification), message="Applicant notified"
    ).to_dict()
