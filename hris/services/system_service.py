"""
System administration: user accounts, departments and the audit trail.
"""
import logging
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hris.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from hris.core.pagination import PageParams, apply_sort, paginate
from hris.models.audit_log import AuditLog
from hris.models.department import Department
from hris.models.user import User, UserRole, UserStatus
from hris.schemas.department import DepartmentCreate, DepartmentUpdate
from hris.schemas.system import UserCreate, UserUpdate
from hris.services import auth as auth_service
from hris.services import user_service
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = ("username", "email", "role", "status", "created_at")
AUDIT_SORT_FIELDS = ("timestamp", "action", "entity_type")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


# ==================== USERS ====================

def list_users(
    db: Session,
    params: PageParams,
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
):
    query = db.query(User).options(joinedload(User.personnel))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(User.username.ilike(term), User.email.ilike(term)))
    if role:
        query = query.filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    query = apply_sort(query, User, params, USER_SORT_FIELDS, "created_at", "desc")
    return paginate(query, params)


def create_user(db: Session, data: UserCreate, actor: User) -> User:
    user = user_service.build_user(db, data.username, data.email, data.password, data.role, data.status)
    AuditService.log(
        db,
        action="create_user",
        entity_type="user",
        entity_id=user.id,
        user_id=actor.id,
        user_role=actor.role,
        after_state={"username": user.username, "email": user.email, "role": user.role, "status": user.status},
    )
    _commit(db)
    db.refresh(user)
    return user


def update_user(db: Session, user_id: int, data: UserUpdate, actor: User) -> User:
    user = user_service.get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("username") or changes.get("email"):
        user_service.ensure_unique_identity(
            db, username=changes.get("username"), email=changes.get("email"), exclude_user_id=user.id
        )
    if changes.get("email"):
        changes["email"] = changes["email"].lower()

    before = {field: getattr(user, field) for field in changes}
    for field, value in changes.items():
        if value is not None:
            setattr(user, field, value)

    AuditService.log(
        db,
        action="update_user",
        entity_type="user",
        entity_id=user.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state=before,
        after_state=changes,
    )
    _commit(db)
    db.refresh(user)
    return user


def disable_user(db: Session, user_id: int, actor: User) -> User:
    """Accounts are never hard-deleted here; they are set Inactive."""
    user = user_service.get_user(db, user_id)
    if user.id == actor.id:
        raise BusinessRuleError("You cannot disable your own account")
    previous = user.status
    user.status = UserStatus.INACTIVE
    AuditService.log(
        db,
        action="disable_user",
        entity_type="user",
        entity_id=user.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"status": previous},
        after_state={"status": UserStatus.INACTIVE},
    )
    _commit(db)
    db.refresh(user)
    return user


def reset_password(db: Session, user_id: int, new_password: str, actor: User) -> None:
    user = user_service.get_user(db, user_id)
    user_service.check_password_policy(new_password, field="new_password")
    user.hashed_password = auth_service.get_password_hash(new_password)
    AuditService.log(
        db,
        action="reset_password",
        entity_type="user",
        entity_id=user.id,
        user_id=actor.id,
        user_role=actor.role,
    )
    _commit(db)


def assign_role(db: Session, user_id: int, role: UserRole, actor: User) -> User:
    user = user_service.get_user(db, user_id)
    previous = user.role
    user.role = role
    AuditService.log(
        db,
        action="assign_role",
        entity_type="user",
        entity_id=user.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"role": previous},
        after_state={"role": role},
    )
    _commit(db)
    db.refresh(user)
    return user


def list_roles() -> List[str]:
    return [role.value for role in UserRole]


# ==================== DEPARTMENTS ====================

def list_departments(db: Session) -> List[Department]:
    return (
        db.query(Department)
        .options(joinedload(Department.personnel))
        .order_by(Department.department_name.asc())
        .all()
    )


def get_department(db: Session, department_id: int) -> Department:
    department = (
        db.query(Department)
        .options(joinedload(Department.personnel))
        .filter(Department.id == department_id)
        .first()
    )
    if not department:
        raise NotFoundError("Department not found")
    return department


def _check_department(db: Session, name: Optional[str], parent_id: Optional[int], exclude_id: Optional[int] = None) -> None:
    if name:
        query = db.query(Department.id).filter(func.lower(Department.department_name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Department.id != exclude_id)
        if query.first():
            raise ConflictError(f"Department '{name}' already exists")
    if parent_id is not None:
        if parent_id == exclude_id:
            raise BusinessRuleError("A department cannot be its own parent")
        if not db.query(Department.id).filter(Department.id == parent_id).first():
            raise NotFoundError("Parent department not found")


def create_department(db: Session, data: DepartmentCreate, actor: User) -> Department:
    _check_department(db, data.department_name, data.parent_department_id)
    department = Department(**data.model_dump())
    db.add(department)
    db.flush()
    AuditService.log(
        db,
        action="create_department",
        entity_type="department",
        entity_id=department.id,
        user_id=actor.id,
        user_role=actor.role,
        after_state=data.model_dump(),
    )
    _commit(db)
    return get_department(db, department.id)


def update_department(db: Session, department_id: int, data: DepartmentUpdate, actor: User) -> Department:
    department = get_department(db, department_id)
    changes = data.model_dump(exclude_unset=True)
    _check_department(db, changes.get("department_name"), changes.get("parent_department_id"), exclude_id=department.id)

    before = {field: getattr(department, field) for field in changes}
    for field, value in changes.items():
        setattr(department, field, value)
    AuditService.log(
        db,
        action="update_department",
        entity_type="department",
        entity_id=department.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state=before,
        after_state=changes,
    )
    _commit(db)
    return get_department(db, department.id)


def delete_department(db: Session, department_id: int, actor: User) -> None:
    department = get_department(db, department_id)
    if department.personnel_count:
        raise BusinessRuleError(
            "Cannot delete a department with personnel assigned",
            details={"personnel_count": department.personnel_count},
        )
    if department.children:
        raise BusinessRuleError("Cannot delete a department that has sub-departments")
    if department.job_postings:
        raise BusinessRuleError(
            "Cannot delete a department that has job postings",
            details={"job_posting_count": len(department.job_postings)},
        )
    AuditService.log(
        db,
        action="delete_department",
        entity_type="department",
        entity_id=department.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"department_name": department.department_name},
    )
    db.delete(department)
    _commit(db)


# ==================== AUDIT LOGS ====================

def list_audit_logs(
    db: Session,
    params: PageParams,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Read-only view of the trail; dates bound the timestamp inclusively."""
    query = db.query(AuditLog)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if start_date:
        query = query.filter(AuditLog.timestamp >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(AuditLog.timestamp <= datetime.combine(end_date, time.max))
    query = apply_sort(query, AuditLog, params, AUDIT_SORT_FIELDS, "timestamp", "desc")
    return paginate(query, params)


def get_audit_log(db: Session, log_id: int) -> AuditLog:
    entry = db.query(AuditLog).filter(AuditLog.id == log_id).first()
    if not entry:
        raise NotFoundError("Audit log entry not found")
    return entry
