"""
Personnel Service Layer

Personnel records, their record-keeping sub-tables (employment history,
merits and violations, administrative cases, movements, documents) and the
employee self-service views over the caller's own record.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hris.core.exceptions import BusinessRuleError, NotFoundError
from hris.core.pagination import PageParams, apply_sort, paginate
from hris.models.department import Department
from hris.models.job_posting import JobPosting
from hris.models.leave_adjustment import LeaveAdjustment
from hris.models.leave_application import LeaveApplication
from hris.models.leave_monetization import LeaveMonetization
from hris.models.personnel import (
    AdministrativeCase,
    EmployeeDocument,
    EmploymentHistory,
    MeritViolation,
    Personnel,
    PersonnelMovement,
)
from hris.models.user import User, UserStatus
from hris.schemas.personnel import (
    AdministrativeCaseCreate,
    EmployeeDocumentCreate,
    EmploymentHistoryCreate,
    MembershipData,
    MeritViolationCreate,
    PersonnelCreate,
    PersonnelMovementCreate,
    PersonnelUpdate,
)
from hris.schemas.self_service import MyProfileUpdate
from hris.services import user_service
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

PERSONNEL_SORT_FIELDS = ("first_name", "last_name", "designation", "date_hired", "salary", "created_at")
MEMBERSHIP_FIELDS = tuple(MembershipData.model_fields)
USER_FIELDS = ("email", "status")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _personnel_query(db: Session):
    return db.query(Personnel).options(
        joinedload(Personnel.user),
        joinedload(Personnel.department),
    )


def _ensure_department(db: Session, department_id: Optional[int]) -> None:
    if department_id is not None and not db.query(Department.id).filter(Department.id == department_id).first():
        raise NotFoundError("Department not found")


def get_personnel(db: Session, personnel_id: int) -> Personnel:
    personnel = _personnel_query(db).filter(Personnel.id == personnel_id).first()
    if not personnel:
        raise NotFoundError("Personnel not found")
    return personnel


def _filtered_query(
    db: Session,
    search: Optional[str] = None,
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
):
    query = _personnel_query(db).join(User, User.id == Personnel.user_id)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Personnel.first_name.ilike(term),
            Personnel.last_name.ilike(term),
            Personnel.middle_name.ilike(term),
            Personnel.designation.ilike(term),
        ))
    if department_id:
        query = query.filter(Personnel.department_id == department_id)
    if status:
        query = query.filter(User.status == status)
    return query


def list_personnel(
    db: Session,
    params: PageParams,
    search: Optional[str] = None,
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
):
    query = _filtered_query(db, search, department_id, status)
    query = apply_sort(query, Personnel, params, PERSONNEL_SORT_FIELDS, "created_at", "desc")
    return paginate(query, params)


def dashboard_employees(
    db: Session,
    params: PageParams,
    search: Optional[str] = None,
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
):
    """
    Flattened employee cards for the HR dashboard.
    The picture is the account's profile picture, else the first image
    document on file.
    """
    items, pagination = list_personnel(db, params, search, department_id, status)
    cards = []
    for p in items:
        picture = p.user.profile_picture if p.user else None
        if not picture:
            image = next(
                (d for d in p.documents if d.category == "profile" or "image" in (d.file_type or "").lower()),
                None,
            )
            picture = image.file_url if image else None
        cards.append({
            "id": p.id,
            "first_name": p.first_name,
            "last_name": p.last_name,
            "email": p.email,
            "department": p.department_name,
            "position": p.designation,
            "hire_date": p.date_hired,
            "status": p.status,
            "profile_image": picture,
        })
    return cards, pagination


def personnel_stats(db: Session) -> Dict[str, Any]:
    total = db.query(func.count(Personnel.id)).scalar()
    by_status = dict(
        db.query(User.status, func.count(Personnel.id))
        .select_from(Personnel)
        .join(User, User.id == Personnel.user_id)
        .group_by(User.status)
        .all()
    )

    # Breakdowns only count personnel with an active account
    department_stats = [
        {"department_id": dept_id, "department_name": name or "Unassigned", "count": count}
        for dept_id, name, count in (
            db.query(Department.id, Department.department_name, func.count(Personnel.id))
            .select_from(Personnel)
            .join(User, User.id == Personnel.user_id)
            .outerjoin(Department, Department.id == Personnel.department_id)
            .filter(User.status == UserStatus.ACTIVE)
            .group_by(Department.id, Department.department_name)
            .order_by(Department.department_name.asc())
            .all()
        )
    ]
    employment_type_stats = [
        {"employment_type": employment_type, "count": count}
        for employment_type, count in (
            db.query(Personnel.employment_type, func.count(Personnel.id))
            .select_from(Personnel)
            .join(User, User.id == Personnel.user_id)
            .filter(User.status == UserStatus.ACTIVE)
            .group_by(Personnel.employment_type)
            .order_by(Personnel.employment_type.asc())
            .all()
        )
    ]
    return {
        "total": total,
        "active": by_status.get(UserStatus.ACTIVE, 0),
        "inactive": by_status.get(UserStatus.INACTIVE, 0),
        "department_stats": department_stats,
        "employment_type_stats": employment_type_stats,
    }


def create_personnel(db: Session, data: PersonnelCreate, actor: User) -> Personnel:
    """Create the login account and the personnel record in one transaction."""
    _ensure_department(db, data.department_id)
    user = user_service.build_user(db, data.username, data.email, data.password, role=data.role)

    fields = data.model_dump(exclude={"username", "email", "password", "role"})
    personnel = Personnel(user_id=user.id, **fields)
    db.add(personnel)
    db.flush()

    AuditService.log(
        db,
        action="create_personnel",
        entity_type="personnel",
        entity_id=personnel.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"username": user.username, "role": user.role},
        after_state={k: v for k, v in fields.items() if k not in MEMBERSHIP_FIELDS},
    )
    _commit(db)
    logger.info(f"Created personnel {personnel.id} for user {user.username}")
    return get_personnel(db, personnel.id)


def update_personnel(db: Session, personnel_id: int, data: PersonnelUpdate, actor: User) -> Personnel:
    personnel = get_personnel(db, personnel_id)
    changes = data.model_dump(exclude_unset=True)
    if "department_id" in changes:
        _ensure_department(db, changes["department_id"])
    if changes.get("email"):
        user_service.ensure_unique_identity(db, email=changes["email"], exclude_user_id=personnel.user_id)

    before = {}
    for field, value in changes.items():
        if field in USER_FIELDS:
            if value is None:
                continue
            before[field] = getattr(personnel.user, field)
            setattr(personnel.user, field, value.lower() if field == "email" else value)
        else:
            if field not in MEMBERSHIP_FIELDS:
                before[field] = getattr(personnel, field)
            setattr(personnel, field, value)

    AuditService.log(
        db,
        action="update_personnel",
        entity_type="personnel",
        entity_id=personnel.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state=before,
        after_state={k: v for k, v in changes.items() if k not in MEMBERSHIP_FIELDS},
    )
    _commit(db)
    return get_personnel(db, personnel.id)


def _ensure_no_recorded_actions(db: Session, user_id: int) -> None:
    """Approvals and adjustments keep pointing at the account that made them."""
    references = {
        "leave_approvals": db.query(LeaveApplication).filter(LeaveApplication.approved_by == user_id).count(),
        "leave_adjustments": db.query(LeaveAdjustment).filter(LeaveAdjustment.created_by == user_id).count(),
        "monetization_approvals": db.query(LeaveMonetization).filter(LeaveMonetization.approved_by == user_id).count(),
        "job_postings": db.query(JobPosting).filter(JobPosting.created_by == user_id).count(),
    }
    references = {name: count for name, count in references.items() if count}
    if references:
        raise BusinessRuleError(
            "Cannot delete personnel whose account has recorded HR actions; disable the account instead",
            details=references,
        )


def delete_personnel(db: Session, personnel_id: int, actor: User) -> None:
    """Removes the personnel record together with its login account."""
    personnel = get_personnel(db, personnel_id)
    user = personnel.user
    if user:
        _ensure_no_recorded_actions(db, user.id)
    AuditService.log(
        db,
        action="delete_personnel",
        entity_type="personnel",
        entity_id=personnel.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"name": personnel.full_name, "username": user.username if user else None},
    )
    db.delete(personnel)
    if user:
        db.delete(user)
    _commit(db)
    logger.info(f"Deleted personnel {personnel_id}")


# ==================== MEMBERSHIP DATA ====================

def get_membership_data(db: Session, personnel_id: int) -> Dict[str, Optional[str]]:
    personnel = get_personnel(db, personnel_id)
    return {field: getattr(personnel, field) for field in MEMBERSHIP_FIELDS}


def update_membership_data(db: Session, personnel_id: int, data: MembershipData, actor: User) -> Dict[str, Optional[str]]:
    personnel = get_personnel(db, personnel_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(personnel, field, value)
    AuditService.log(
        db,
        action="update_membership_data",
        entity_type="personnel",
        entity_id=personnel.id,
        user_id=actor.id,
        user_role=actor.role,
        # Only which numbers changed; the values themselves stay out of the trail
        details={"fields": sorted(changes)},
    )
    _commit(db)
    return get_membership_data(db, personnel_id)


# ==================== SUB-RECORDS ====================

def _add_record(db: Session, personnel_id: int, model, data, actor: User, action: str, **extra):
    get_personnel(db, personnel_id)
    record = model(personnel_id=personnel_id, **data.model_dump(), **extra)
    db.add(record)
    db.flush()
    AuditService.log(
        db,
        action=action,
        entity_type=model.__tablename__,
        entity_id=record.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"personnel_id": personnel_id},
    )
    _commit(db)
    db.refresh(record)
    return record


def _list_records(db: Session, personnel_id: int, model, order_column) -> List[Any]:
    get_personnel(db, personnel_id)
    return (
        db.query(model)
        .filter(model.personnel_id == personnel_id)
        .order_by(order_column.desc(), model.id.desc())
        .all()
    )


def list_employment_history(db: Session, personnel_id: int) -> List[EmploymentHistory]:
    return _list_records(db, personnel_id, EmploymentHistory, EmploymentHistory.start_date)


def add_employment_history(db: Session, personnel_id: int, data: EmploymentHistoryCreate, actor: User) -> EmploymentHistory:
    return _add_record(db, personnel_id, EmploymentHistory, data, actor, "add_employment_history")


def list_merits_violations(db: Session, personnel_id: int) -> List[MeritViolation]:
    return _list_records(db, personnel_id, MeritViolation, MeritViolation.date_recorded)


def add_merit_violation(db: Session, personnel_id: int, data: MeritViolationCreate, actor: User) -> MeritViolation:
    return _add_record(db, personnel_id, MeritViolation, data, actor, "add_merit_violation")


def list_administrative_cases(db: Session, personnel_id: int) -> List[AdministrativeCase]:
    return _list_records(db, personnel_id, AdministrativeCase, AdministrativeCase.date_filed)


def add_administrative_case(db: Session, personnel_id: int, data: AdministrativeCaseCreate, actor: User) -> AdministrativeCase:
    return _add_record(db, personnel_id, AdministrativeCase, data, actor, "add_administrative_case")


def list_movements(db: Session, personnel_id: int) -> List[PersonnelMovement]:
    return _list_records(db, personnel_id, PersonnelMovement, PersonnelMovement.effective_date)


def add_movement(db: Session, personnel_id: int, data: PersonnelMovementCreate, actor: User) -> PersonnelMovement:
    """
    Record a promotion, transfer or similar movement. The previous post is
    snapshotted from the current record; with apply_to_record the record
    is moved to the new post in the same transaction.
    """
    personnel = get_personnel(db, personnel_id)
    _ensure_department(db, data.new_department_id)

    movement = PersonnelMovement(
        personnel_id=personnel.id,
        movement_type=data.movement_type,
        previous_department_id=personnel.department_id,
        new_department_id=data.new_department_id,
        previous_designation=personnel.designation,
        new_designation=data.new_designation,
        previous_salary=personnel.salary,
        new_salary=data.new_salary,
        effective_date=data.effective_date,
        issued_by=data.issued_by,
        issued_date=data.issued_date,
        remarks=data.remarks,
        document_path=data.document_path,
    )
    db.add(movement)

    if data.apply_to_record:
        if data.new_department_id is not None:
            personnel.department_id = data.new_department_id
        if data.new_designation:
            personnel.designation = data.new_designation
        if data.new_salary is not None:
            personnel.salary = data.new_salary
    db.flush()

    AuditService.log(
        db,
        action="add_personnel_movement",
        entity_type="personnel_movements",
        entity_id=movement.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"personnel_id": personnel.id, "movement_type": data.movement_type, "applied": data.apply_to_record},
    )
    _commit(db)
    db.refresh(movement)
    return movement


def list_documents(db: Session, personnel_id: int, include_private: bool = True) -> List[EmployeeDocument]:
    get_personnel(db, personnel_id)
    query = db.query(EmployeeDocument).filter(EmployeeDocument.personnel_id == personnel_id)
    if not include_private:
        query = query.filter(EmployeeDocument.is_private.is_(False))
    return query.order_by(EmployeeDocument.created_at.desc(), EmployeeDocument.id.desc()).all()


def add_document(db: Session, personnel_id: int, data: EmployeeDocumentCreate, actor: User) -> EmployeeDocument:
    return _add_record(db, personnel_id, EmployeeDocument, data, actor, "register_employee_document")


# ==================== SELF-SERVICE ====================

def get_own_personnel(db: Session, user: User) -> Personnel:
    personnel = _personnel_query(db).filter(Personnel.user_id == user.id).first()
    if not personnel:
        raise NotFoundError("Personnel record not found")
    return personnel


def my_profile(db: Session, user: User) -> Dict[str, Any]:
    """The caller's record grouped into the sections the profile page shows."""
    p = get_own_personnel(db, user)
    return {
        "id": p.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "profile_picture": user.profile_picture,
        "general": {
            "first_name": p.first_name,
            "middle_name": p.middle_name,
            "last_name": p.last_name,
            "date_of_birth": p.date_of_birth,
            "gender": p.gender,
            "civil_status": p.civil_status,
            "contact_number": p.contact_number,
            "address": p.address,
        },
        "employment": {
            "department_id": p.department_id,
            "department_name": p.department_name,
            "designation": p.designation,
            "employment_type": p.employment_type,
            "date_hired": p.date_hired,
            "salary": p.salary,
        },
        "membership": {field: getattr(p, field) for field in MEMBERSHIP_FIELDS},
    }


def update_my_profile(db: Session, user: User, data: MyProfileUpdate) -> Dict[str, Any]:
    personnel = get_own_personnel(db, user)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("email"):
        user_service.ensure_unique_identity(db, email=changes["email"], exclude_user_id=user.id)
        user.email = changes.pop("email").lower()
    else:
        changes.pop("email", None)
    if "profile_picture" in changes:
        user.profile_picture = changes.pop("profile_picture")
    for field, value in changes.items():
        setattr(personnel, field, value)

    AuditService.log(
        db,
        action="update_my_profile",
        entity_type="personnel",
        entity_id=personnel.id,
        user_id=user.id,
        user_role=user.role,
        details={"fields": sorted(data.model_dump(exclude_unset=True))},
    )
    _commit(db)
    return my_profile(db, user)


def list_my_documents(db: Session, user: User) -> List[EmployeeDocument]:
    personnel = get_own_personnel(db, user)
    return list_documents(db, personnel.id)


def add_my_document(db: Session, user: User, data: EmployeeDocumentCreate) -> EmployeeDocument:
    personnel = get_own_personnel(db, user)
    return _add_record(db, personnel.id, EmployeeDocument, data, user, "register_my_document")


def delete_my_document(db: Session, user: User, document_id: int) -> None:
    personnel = get_own_personnel(db, user)
    document = db.query(EmployeeDocument).filter(
        EmployeeDocument.id == document_id,
        EmployeeDocument.personnel_id == personnel.id,
    ).first()
    if not document:
        raise NotFoundError("Document not found")
    AuditService.log(
        db,
        action="delete_my_document",
        entity_type="employee_documents",
        entity_id=document.id,
        user_id=user.id,
        user_role=user.role,
        before_state={"title": document.title, "file_url": document.file_url},
    )
    db.delete(document)
    _commit(db)
