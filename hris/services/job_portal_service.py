"""
Applicant-facing job portal: applicant accounts, the public job board and
the applicant's own applications.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hris.core.exceptions import AuthenticationError, BusinessRuleError, ConflictError, NotFoundError
from hris.models.department import Department
from hris.models.job_applicant import JobApplicant
from hris.models.job_application import (
    FINAL_APPLICATION_STATUSES,
    ApplicationDocument,
    ApplicationStatus,
    JobApplication,
)
from hris.models.job_posting import JobPosting, PostingStatus
from hris.models.notification import Notification
from hris.models.user import User, UserRole
from hris.schemas.job_portal import ApplicantNotification, ApplicantProfileUpdate, ApplicantRegister
from hris.services import user_service
from hris.services.audit import AuditService
from hris.services.notification import NotificationService

logger = logging.getLogger(__name__)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


# ==================== ACCOUNTS ====================

def register_applicant(db: Session, data: ApplicantRegister) -> JobApplicant:
    """Applicant accounts use the email address as their username."""
    email = data.email.lower()
    if db.query(User.id).filter(or_(func.lower(User.email) == email, func.lower(User.username) == email)).first():
        raise ConflictError("Email already registered")

    user = user_service.build_user(db, email, email, data.password, role=UserRole.APPLICANT)
    applicant = JobApplicant(
        user_id=user.id,
        email=email,
        **data.model_dump(exclude={"email", "password"}),
    )
    db.add(applicant)
    db.flush()
    AuditService.log(
        db,
        action="register_applicant",
        entity_type="job_applicant",
        entity_id=applicant.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": email},
    )
    _commit(db)
    db.refresh(applicant)
    return applicant


def login_applicant(
    db: Session,
    email: str,
    password: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Dict[str, Any]:
    # Unknown email and wrong password answer the same way
    result = user_service.login(db, email, password, user_agent, ip_address)
    applicant = result["user"].applicant_profile
    if not applicant:
        raise AuthenticationError("No applicant profile is linked to this account")
    return {**result, "applicant": applicant}


def get_profile(db: Session, user: User) -> JobApplicant:
    applicant = db.query(JobApplicant).filter(JobApplicant.user_id == user.id).first()
    if not applicant:
        raise NotFoundError("Applicant profile not found")
    return applicant


def update_profile(db: Session, user: User, data: ApplicantProfileUpdate) -> JobApplicant:
    applicant = get_profile(db, user)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(applicant, field, value)
    AuditService.log(
        db,
        action="update_applicant_profile",
        entity_type="job_applicant",
        entity_id=applicant.id,
        user_id=user.id,
        user_role=user.role,
        details={"fields": sorted(changes)},
    )
    _commit(db)
    db.refresh(applicant)
    return applicant


def profile_completion(db: Session, user: User) -> Dict[str, Any]:
    applicant = get_profile(db, user)
    required = ("first_name", "last_name", "email", "phone")
    missing = [field for field in required if not getattr(applicant, field)]
    return {"complete": not missing, "missing_fields": missing}


# ==================== PUBLIC JOB BOARD ====================

def list_public_jobs(
    db: Session,
    keywords: Optional[str] = None,
    department: Optional[str] = None,
    salary_range: Optional[str] = None,
) -> List[JobPosting]:
    query = (
        db.query(JobPosting)
        .options(joinedload(JobPosting.department))
        .filter(JobPosting.posting_status == PostingStatus.PUBLISHED)
    )
    if keywords and keywords.strip():
        term = f"%{keywords.strip()}%"
        query = query.filter(or_(
            JobPosting.position_title.ilike(term),
            JobPosting.job_description.ilike(term),
            JobPosting.qualifications.ilike(term),
        ))
    if department and department != "All":
        query = query.join(Department, Department.id == JobPosting.department_id).filter(
            func.lower(Department.department_name) == department.lower()
        )
    if salary_range and salary_range.strip():
        query = query.filter(JobPosting.salary_range == salary_range.strip())
    return query.order_by(JobPosting.created_at.desc(), JobPosting.id.desc()).all()


def get_public_job(db: Session, posting_id: int) -> JobPosting:
    posting = (
        db.query(JobPosting)
        .options(joinedload(JobPosting.department))
        .filter(JobPosting.id == posting_id, JobPosting.posting_status == PostingStatus.PUBLISHED)
        .first()
    )
    if not posting:
        raise NotFoundError("Job not found")
    return posting


def public_departments(db: Session) -> List[str]:
    """Names of departments with at least one published posting."""
    rows = (
        db.query(Department.department_name)
        .join(JobPosting, JobPosting.department_id == Department.id)
        .filter(JobPosting.posting_status == PostingStatus.PUBLISHED)
        .distinct()
        .order_by(Department.department_name.asc())
        .all()
    )
    return [name for (name,) in rows]


def public_salary_ranges(db: Session) -> List[str]:
    rows = (
        db.query(JobPosting.salary_range)
        .filter(
            JobPosting.posting_status == PostingStatus.PUBLISHED,
            JobPosting.salary_range.isnot(None),
        )
        .distinct()
        .all()
    )
    return sorted(r for (r,) in rows if r and r.strip())


# ==================== APPLICATIONS ====================

def _own_application(db: Session, user: User, application_id: int) -> JobApplication:
    applicant = get_profile(db, user)
    application = (
        db.query(JobApplication)
        .options(joinedload(JobApplication.position), joinedload(JobApplication.documents))
        .filter(JobApplication.id == application_id, JobApplication.applicant_id == applicant.id)
        .first()
    )
    if not application:
        raise NotFoundError("Application not found")
    return application


def _require_pending(application: JobApplication, action: str) -> None:
    if application.status != ApplicationStatus.PENDING:
        raise BusinessRuleError(
            f"Cannot {action} an application that is already {application.status.value.replace('_', ' ')}"
        )


def start_application(
    db: Session,
    user: User,
    position_id: int,
    cover_letter: Optional[str] = None,
    today: Optional[date] = None,
) -> JobApplication:
    applicant = get_profile(db, user)
    posting = db.query(JobPosting).filter(JobPosting.id == position_id).first()
    if not posting:
        raise NotFoundError("Job posting not found")
    if not posting.is_open(today):
        raise BusinessRuleError("This job posting is not accepting applications")
    if db.query(JobApplication.id).filter(
        JobApplication.position_id == posting.id,
        JobApplication.applicant_id == applicant.id,
    ).first():
        raise ConflictError("You have already applied for this position")

    application = JobApplication(
        position_id=posting.id,
        applicant_id=applicant.id,
        cover_letter=cover_letter,
        status=ApplicationStatus.PENDING,
    )
    db.add(application)
    db.flush()
    AuditService.log(
        db,
        action="start_job_application",
        entity_type="job_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        details={"position_id": posting.id},
    )
    _commit(db)
    return _own_application(db, user, application.id)


def attach_document(db: Session, user: User, application_id: int, document_type: str, document_path: str) -> JobApplication:
    application = _own_application(db, user, application_id)
    _require_pending(application, "add documents to")
    db.add(ApplicationDocument(
        application_id=application.id,
        document_type=document_type,
        document_path=document_path,
    ))
    _commit(db)
    db.refresh(application)
    return application


def save_answers(db: Session, user: User, application_id: int, answers: Any) -> JobApplication:
    application = _own_application(db, user, application_id)
    _require_pending(application, "answer questions on")
    application.answers = answers
    _commit(db)
    db.refresh(application)
    return application


def submit_application(db: Session, user: User, application_id: int) -> JobApplication:
    application = _own_application(db, user, application_id)
    _require_pending(application, "submit")
    application.status = ApplicationStatus.PRE_SCREENING
    AuditService.log(
        db,
        action="submit_job_application",
        entity_type="job_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        before_state={"status": ApplicationStatus.PENDING},
        after_state={"status": ApplicationStatus.PRE_SCREENING},
    )
    _commit(db)
    db.refresh(application)
    return application


def list_my_applications(db: Session, user: User) -> List[JobApplication]:
    applicant = get_profile(db, user)
    return (
        db.query(JobApplication)
        .options(joinedload(JobApplication.position), joinedload(JobApplication.documents))
        .filter(JobApplication.applicant_id == applicant.id)
        .order_by(JobApplication.application_date.desc(), JobApplication.id.desc())
        .all()
    )


def get_my_application(db: Session, user: User, application_id: int) -> JobApplication:
    return _own_application(db, user, application_id)


def edit_application(db: Session, user: User, application_id: int, cover_letter: Optional[str]) -> JobApplication:
    application = _own_application(db, user, application_id)
    _require_pending(application, "edit")
    application.cover_letter = cover_letter
    _commit(db)
    db.refresh(application)
    return application


def withdraw_application(db: Session, user: User, application_id: int) -> JobApplication:
    application = _own_application(db, user, application_id)
    if application.status in FINAL_APPLICATION_STATUSES:
        raise BusinessRuleError(
            f"Cannot withdraw an application that is already {application.status.value}"
        )
    previous = application.status
    application.status = ApplicationStatus.WITHDRAWN
    application.withdrawn_date = datetime.now(timezone.utc)
    AuditService.log(
        db,
        action="withdraw_job_application",
        entity_type="job_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        before_state={"status": previous},
        after_state={"status": ApplicationStatus.WITHDRAWN},
    )
    _commit(db)
    db.refresh(application)
    return application


def notify_applicant(db: Session, data: ApplicantNotification, actor: User) -> Notification:
    applicant = db.query(JobApplicant).filter(JobApplicant.id == data.applicant_id).first()
    if not applicant:
        raise NotFoundError("Applicant not found")
    notification = NotificationService.create_notification(
        db,
        user_id=applicant.user_id,
        title=data.title,
        message=data.message,
        notification_type=data.notification_type,
        commit=False,
    )
    db.flush()
    AuditService.log(
        db,
        action="notify_applicant",
        entity_type="notification",
        entity_id=notification.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"applicant_id": applicant.id},
    )
    _commit(db)
    db.refresh(notification)
    return notification
