"""
Recruitment Service Layer

Staff-side management of job postings and the applications filed against
them. The applicant-facing flow lives in job_portal_service.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hris.core.exceptions import BusinessRuleError, NotFoundError
from hris.core.pagination import PageParams, apply_sort, paginate
from hris.models.department import Department
from hris.models.job_application import ApplicationStatus, JobApplication
from hris.models.job_posting import JobPosting, PostingStatus
from hris.models.user import User
from hris.schemas.recruitment import JobPostingCreate, JobPostingUpdate
from hris.services.audit import AuditService
from hris.services.notification import NotificationService

logger = logging.getLogger(__name__)

SALARY_RANGES: List[Dict[str, Any]] = [
    {"id": "1", "range": "₱15,000 - ₱25,000", "min": 15000, "max": 25000},
    {"id": "2", "range": "₱25,000 - ₱35,000", "min": 25000, "max": 35000},
    {"id": "3", "range": "₱35,000 - ₱45,000", "min": 35000, "max": 45000},
    {"id": "4", "range": "₱45,000 - ₱55,000", "min": 45000, "max": 55000},
    {"id": "5", "range": "₱55,000 - ₱65,000", "min": 55000, "max": 65000},
    {"id": "6", "range": "₱65,000 - ₱75,000", "min": 65000, "max": 75000},
    {"id": "7", "range": "₱75,000 - ₱85,000", "min": 75000, "max": 85000},
    {"id": "8", "range": "₱85,000 - ₱95,000", "min": 85000, "max": 95000},
    {"id": "9", "range": "₱95,000 - ₱105,000", "min": 95000, "max": 105000},
    {"id": "10", "range": "₱105,000+", "min": 105000, "max": None},
]
_SALARY_RANGE_LABELS = {r["id"]: r["range"] for r in SALARY_RANGES}

POSTING_SORT_FIELDS = ("position_title", "created_at", "application_deadline", "posting_status")
APPLICATION_SORT_FIELDS = ("application_date", "status")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def salary_range_label(value: Optional[str]) -> Optional[str]:
    """Catalogue ids ("1".."10") become their label; anything else passes through."""
    if not value:
        return value
    return _SALARY_RANGE_LABELS.get(value.strip(), value)


def _ensure_department(db: Session, department_id: int) -> None:
    if not db.query(Department.id).filter(Department.id == department_id).first():
        raise NotFoundError("Department not found")


# ==================== JOB POSTINGS ====================

def _posting_query(db: Session):
    return db.query(JobPosting).options(joinedload(JobPosting.department))


def get_posting(db: Session, posting_id: int) -> JobPosting:
    posting = _posting_query(db).filter(JobPosting.id == posting_id).first()
    if not posting:
        raise NotFoundError("Job posting not found")
    return posting


def list_postings(
    db: Session,
    params: PageParams,
    status: Optional[PostingStatus] = None,
    department_id: Optional[int] = None,
    search: Optional[str] = None,
):
    query = _posting_query(db)
    if status:
        query = query.filter(JobPosting.posting_status == status)
    if department_id:
        query = query.filter(JobPosting.department_id == department_id)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            JobPosting.position_title.ilike(term),
            JobPosting.job_description.ilike(term),
        ))
    query = apply_sort(query, JobPosting, params, POSTING_SORT_FIELDS, "created_at", "desc")
    return paginate(query, params)


def create_posting(db: Session, data: JobPostingCreate, actor: User) -> JobPosting:
    _ensure_department(db, data.department_id)
    fields = data.model_dump()
    fields["salary_range"] = salary_range_label(fields.get("salary_range"))

    posting = JobPosting(**fields, created_by=actor.id)
    db.add(posting)
    db.flush()
    AuditService.log(
        db,
        action="create_job_posting",
        entity_type="job_posting",
        entity_id=posting.id,
        user_id=actor.id,
        user_role=actor.role,
        after_state=fields,
    )
    _commit(db)
    logger.info(f"Job posting {posting.id} '{posting.position_title}' created by {actor.username}")
    return get_posting(db, posting.id)


def update_posting(db: Session, posting_id: int, data: JobPostingUpdate, actor: User) -> JobPosting:
    posting = get_posting(db, posting_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("department_id") is not None:
        _ensure_department(db, changes["department_id"])
    if "salary_range" in changes:
        changes["salary_range"] = salary_range_label(changes["salary_range"])

    before = {field: getattr(posting, field) for field in changes}
    for field, value in changes.items():
        setattr(posting, field, value)

    AuditService.log(
        db,
        action="update_job_posting",
        entity_type="job_posting",
        entity_id=posting.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state=before,
        after_state=changes,
    )
    _commit(db)
    return get_posting(db, posting.id)


def change_posting_status(db: Session, posting_id: int, status: PostingStatus, actor: User) -> JobPosting:
    posting = get_posting(db, posting_id)
    previous = posting.posting_status
    posting.posting_status = status
    AuditService.log(
        db,
        action="change_job_posting_status",
        entity_type="job_posting",
        entity_id=posting.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"posting_status": previous},
        after_state={"posting_status": status},
    )
    _commit(db)
    return get_posting(db, posting.id)


def delete_posting(db: Session, posting_id: int, actor: User) -> None:
    posting = get_posting(db, posting_id)
    if posting.application_count > 0:
        raise BusinessRuleError(
            "Cannot delete a job posting that has applications; close it instead",
            details={"application_count": posting.application_count},
        )
    AuditService.log(
        db,
        action="delete_job_posting",
        entity_type="job_posting",
        entity_id=posting.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"position_title": posting.position_title, "posting_status": posting.posting_status},
    )
    db.delete(posting)
    _commit(db)


# ==================== APPLICATIONS ====================

def _application_query(db: Session):
    return db.query(JobApplication).options(
        joinedload(JobApplication.position),
        joinedload(JobApplication.applicant),
        joinedload(JobApplication.documents),
    )


def get_application(db: Session, application_id: int) -> JobApplication:
    application = _application_query(db).filter(JobApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")
    return application


def list_applications(
    db: Session,
    params: PageParams,
    status: Optional[ApplicationStatus] = None,
    position_id: Optional[int] = None,
):
    query = db.query(JobApplication).options(
        joinedload(JobApplication.position),
        joinedload(JobApplication.applicant),
    )
    if status:
        query = query.filter(JobApplication.status == status)
    if position_id:
        query = query.filter(JobApplication.position_id == position_id)
    query = apply_sort(query, JobApplication, params, APPLICATION_SORT_FIELDS, "application_date", "desc")
    return paginate(query, params)


def change_application_status(
    db: Session,
    application_id: int,
    status: ApplicationStatus,
    actor: User,
    remarks: Optional[str] = None,
) -> JobApplication:
    """Move an application to any pipeline stage and let the applicant know."""
    application = get_application(db, application_id)
    previous = application.status
    application.status = status
    if remarks is not None:
        application.remarks = remarks

    if application.applicant and application.applicant.user_id:
        NotificationService.create_notification(
            db,
            user_id=application.applicant.user_id,
            title="Application status updated",
            message=f"Your application for {application.position_title} is now {status.value.replace('_', ' ')}.",
            notification_type="Job Application",
            commit=False,
        )
    AuditService.log(
        db,
        action="change_application_status",
        entity_type="job_application",
        entity_id=application.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"remarks": remarks},
        before_state={"status": previous},
        after_state={"status": status},
    )
    _commit(db)
    return get_application(db, application.id)


# ==================== DASHBOARD / CATALOGUES ====================

def dashboard(db: Session, recent: int = 5) -> Dict[str, Any]:
    statistics = {
        "total_job_postings": db.query(func.count(JobPosting.id)).scalar(),
        "active_job_postings": db.query(func.count(JobPosting.id))
        .filter(JobPosting.posting_status == PostingStatus.PUBLISHED)
        .scalar(),
        "total_applications": db.query(func.count(JobApplication.id)).scalar(),
        "pending_applications": db.query(func.count(JobApplication.id))
        .filter(JobApplication.status == ApplicationStatus.PENDING)
        .scalar(),
    }
    recent_applications = (
        _application_query(db)
        .order_by(JobApplication.application_date.desc(), JobApplication.id.desc())
        .limit(recent)
        .all()
    )
    return {"statistics": statistics, "recent_applications": recent_applications}


def list_departments(db: Session) -> List[Department]:
    return db.query(Department).order_by(Department.department_name.asc()).all()
