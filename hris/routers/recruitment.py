"""
Job portal management for Admin/HR: postings, the applications against
them and the recruitment dashboard.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hris.core.pagination import PageParams, page_params
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.job_application import ApplicationStatus
from hris.models.job_posting import PostingStatus
from hris.models.user import User
from hris.routers.auth_deps import get_current_user, require_admin, require_staff
from hris.schemas.department import DepartmentResponse
from hris.schemas.recruitment import (
    ApplicationStatusUpdate,
    JobApplicationResponse,
    JobPostingCreate,
    JobPostingResponse,
    JobPostingStatusUpdate,
    JobPostingUpdate,
    RecruitmentDashboard,
    SalaryRange,
)
from hris.services import recruitment_service

router = APIRouter(
    prefix="/recruitment",
    tags=["recruitment"]
)


@router.get("/")
def recruitment_root(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(message="Recruitment module - Coming soon").to_dict()


# ==================== JOB POSTINGS ====================

@router.post("/jobs", status_code=status.HTTP_201_CREATED)
def create_posting(
    data: JobPostingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    posting = recruitment_service.create_posting(db, data, current_user)
    return ApiResponse.ok(
        data=JobPostingResponse.model_validate(posting), message="Job posting created successfully"
    ).to_dict()


@router.get("/jobs")
def list_postings(
    params: PageParams = Depends(page_params),
    status: Optional[PostingStatus] = None,
    department_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = recruitment_service.list_postings(db, params, status, department_id, search)
    return ApiResponse.ok(
        data=[JobPostingResponse.model_validate(p) for p in items], pagination=pagination
    ).to_dict()


@router.get("/jobs/{posting_id}")
def get_posting(posting_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    posting = recruitment_service.get_posting(db, posting_id)
    return ApiResponse.ok(data=JobPostingResponse.model_validate(posting)).to_dict()


@router.put("/jobs/{posting_id}")
def update_posting(
    posting_id: int,
    data: JobPostingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    posting = recruitment_service.update_posting(db, posting_id, data, current_user)
    return ApiResponse.ok(
        data=JobPostingResponse.model_validate(posting), message="Job posting updated successfully"
    ).to_dict()


@router.patch("/jobs/{posting_id}/status")
def change_posting_status(
    posting_id: int,
    data: JobPostingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    posting = recruitment_service.change_posting_status(db, posting_id, data.posting_status, current_user)
    return ApiResponse.ok(
        data=JobPostingResponse.model_validate(posting),
        message=f"Job posting status changed to {posting.posting_status.value}",
    ).to_dict()


@router.delete("/jobs/{posting_id}")
def delete_posting(posting_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin())):
    recruitment_service.delete_posting(db, posting_id, current_user)
    return ApiResponse.ok(message="Job posting deleted successfully").to_dict()


# ==================== APPLICATIONS ====================

@router.get("/applications")
def list_applications(
    params: PageParams = Depends(page_params),
    status: Optional[ApplicationStatus] = None,
    position_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = recruitment_service.list_applications(db, params, status, position_id)
    return ApiResponse.ok(
        data=[JobApplicationResponse.model_validate(a) for a in items], pagination=pagination
    ).to_dict()


@router.get("/applications/{application_id}")
def get_application(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    application = recruitment_service.get_application(db, application_id)
    return ApiResponse.ok(data=JobApplicationResponse.model_validate(application)).to_dict()


@router.patch("/applications/{application_id}/status")
def change_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    application = recruitment_service.change_application_status(
        db, application_id, data.status, current_user, data.remarks
    )
    return ApiResponse.ok(
        data=JobApplicationResponse.model_validate(application),
        message="Application status updated successfully",
    ).to_dict()


# ==================== DASHBOARD / CATALOGUES ====================

@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    summary = recruitment_service.dashboard(db)
    return ApiResponse.ok(data=RecruitmentDashboard(
        statistics=summary["statistics"],
        recent_applications=[JobApplicationResponse.model_validate(a) for a in summary["recent_applications"]],
    )).to_dict()


@router.get("/departments")
def list_departments(db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = recruitment_service.list_departments(db)
    return ApiResponse.ok(data=[DepartmentResponse.model_validate(d) for d in rows]).to_dict()


@router.get("/salary-ranges")
def list_salary_ranges(current_user: User = Depends(require_staff())):
    return ApiResponse.ok(
        data=[SalaryRange(**r) for r in recruitment_service.SALARY_RANGES]
    ).to_dict()
