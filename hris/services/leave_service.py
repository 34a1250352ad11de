"""
Leave Service Layer

Business logic for leave applications, leave types, balances, monetization,
reports and manual credit adjustments. Routers stay focused on HTTP concerns
and call into the functions below.

Ledger rules:
- used_credits only moves when an application is approved, and only for the
  balance row of the current year.
- total_credits only moves through initialization or an adjustment.
- Monetization requests never touch the balance row.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hris.core.exceptions import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from hris.core.pagination import PageParams, apply_sort, paginate
from hris.models.department import Department
from hris.models.leave_adjustment import AdjustmentType, LeaveAdjustment
from hris.models.leave_application import LeaveApplication, LeaveStatus
from hris.models.leave_balance import LeaveBalance
from hris.models.leave_monetization import LeaveMonetization
from hris.models.leave_type import LeaveType
from hris.models.personnel import Personnel
from hris.models.user import User
from hris.schemas.leave import (
    LeaveAdjustmentCreate,
    LeaveApplicationCreate,
    LeaveApplicationUpdate,
    LeaveBalanceInitialize,
    LeaveMonetizationCreate,
    LeaveTypeCreate,
    LeaveTypeUpdate,
)
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)

APPLICATION_SORT_FIELDS = ("request_date", "start_date", "end_date", "total_days", "status")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _year_bounds(year: int):
    return date(year, 1, 1), date(year, 12, 31)


def calculate_total_days(start_date: date, end_date: date) -> float:
    """Inclusive calendar days; weekends and holidays are not excluded."""
    return float((end_date - start_date).days + 1)


def get_personnel_for_user(db: Session, user: User) -> Personnel:
    personnel = db.query(Personnel).filter(Personnel.user_id == user.id).first()
    if not personnel:
        raise NotFoundError("Personnel record not found")
    return personnel


def get_personnel(db: Session, personnel_id: int) -> Personnel:
    personnel = db.query(Personnel).filter(Personnel.id == personnel_id).first()
    if not personnel:
        raise NotFoundError("Personnel not found")
    return personnel


def get_leave_type(db: Session, leave_type_id: int) -> LeaveType:
    leave_type = db.query(LeaveType).filter(LeaveType.id == leave_type_id).first()
    if not leave_type:
        raise NotFoundError("Leave type not found")
    return leave_type


def _check_request(
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    supporting_document: Optional[str],
) -> float:
    """
    Validate a requested date range against its leave type.

    Returns:
        The total number of days the application covers.
    """
    if end_date < start_date:
        raise ValidationError(
            "Invalid leave application",
            [{"field": "end_date", "message": "End date must be on or after the start date"}],
        )
    if not leave_type.is_active:
        raise BusinessRuleError(f"Leave type '{leave_type.leave_type_name}' is not active")

    total_days = calculate_total_days(start_date, end_date)
    if leave_type.max_days and total_days > leave_type.max_days:
        raise BusinessRuleError(
            f"{leave_type.leave_type_name} allows at most {leave_type.max_days} days per application",
            details={"requested_days": total_days, "max_days": leave_type.max_days},
        )
    if leave_type.requires_document and not supporting_document:
        raise ValidationError(
            "Invalid leave application",
            [{"field": "supporting_document", "message": f"{leave_type.leave_type_name} requires a supporting document"}],
        )
    return total_days


# ==================== APPLICATIONS ====================

def _application_query(db: Session):
    return db.query(LeaveApplication).options(
        joinedload(LeaveApplication.personnel).joinedload(Personnel.department),
        joinedload(LeaveApplication.leave_type),
    )


def get_application(db: Session, application_id: int) -> LeaveApplication:
    application = _application_query(db).filter(LeaveApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Leave application not found")
    return application


def list_applications(
    db: Session,
    params: PageParams,
    status: Optional[LeaveStatus] = None,
    leave_type_id: Optional[int] = None,
    personnel_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Staff view over every application; date filters apply to the start date."""
    query = _application_query(db)
    if status:
        query = query.filter(LeaveApplication.status == status)
    if leave_type_id:
        query = query.filter(LeaveApplication.leave_type_id == leave_type_id)
    if personnel_id:
        query = query.filter(LeaveApplication.personnel_id == personnel_id)
    if start_date:
        query = query.filter(LeaveApplication.start_date >= start_date)
    if end_date:
        query = query.filter(LeaveApplication.start_date <= end_date)

    query = apply_sort(query, LeaveApplication, params, APPLICATION_SORT_FIELDS, "request_date", "desc")
    return paginate(query, params)


def list_my_applications(db: Session, user: User) -> List[LeaveApplication]:
    personnel = get_personnel_for_user(db, user)
    return (
        _application_query(db)
        .filter(LeaveApplication.personnel_id == personnel.id)
        .order_by(LeaveApplication.request_date.desc(), LeaveApplication.id.desc())
        .all()
    )


def list_pending_applications(db: Session) -> List[LeaveApplication]:
    # Oldest first: the approval queue is worked in arrival order
    return (
        _application_query(db)
        .filter(LeaveApplication.status == LeaveStatus.PENDING)
        .order_by(LeaveApplication.request_date.asc(), LeaveApplication.id.asc())
        .all()
    )


def create_application(db: Session, user: User, data: LeaveApplicationCreate) -> LeaveApplication:
    personnel = get_personnel_for_user(db, user)
    leave_type = get_leave_type(db, data.leave_type_id)
    total_days = _check_request(leave_type, data.start_date, data.end_date, data.supporting_document)

    application = LeaveApplication(
        personnel_id=personnel.id,
        leave_type_id=leave_type.id,
        start_date=data.start_date,
        end_date=data.end_date,
        total_days=total_days,
        reason=data.reason,
        supporting_document=data.supporting_document,
        status=LeaveStatus.PENDING,
    )
    db.add(application)
    db.flush()

    AuditService.log(
        db,
        action="create_leave_application",
        entity_type="leave_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        details={"leave_type": leave_type.leave_type_name, "total_days": total_days},
    )
    _commit(db)
    logger.info(f"Leave application {application.id} filed by personnel {personnel.id} ({total_days} days)")
    return get_application(db, application.id)


def _get_own_pending(db: Session, user: User, application_id: int, verb: str) -> LeaveApplication:
    personnel = get_personnel_for_user(db, user)
    application = db.query(LeaveApplication).filter(
        LeaveApplication.id == application_id,
        LeaveApplication.personnel_id == personnel.id,
    ).first()
    if not application:
        raise NotFoundError("Leave application not found")
    if application.status != LeaveStatus.PENDING:
        raise BusinessRuleError(f"Only pending applications can be {verb}")
    return application


def update_application(
    db: Session, user: User, application_id: int, data: LeaveApplicationUpdate
) -> LeaveApplication:
    application = _get_own_pending(db, user, application_id, "updated")
    changes = data.model_dump(exclude_unset=True)

    leave_type = get_leave_type(db, changes.get("leave_type_id") or application.leave_type_id)
    start_date = changes.get("start_date") or application.start_date
    end_date = changes.get("end_date") or application.end_date
    document = changes["supporting_document"] if "supporting_document" in changes else application.supporting_document
    total_days = _check_request(leave_type, start_date, end_date, document)

    before = {
        "leave_type_id": application.leave_type_id,
        "start_date": application.start_date,
        "end_date": application.end_date,
        "total_days": application.total_days,
    }
    for field, value in changes.items():
        setattr(application, field, value)
    application.leave_type_id = leave_type.id
    application.total_days = total_days

    AuditService.log(
        db,
        action="update_leave_application",
        entity_type="leave_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        before_state=before,
        after_state={
            "leave_type_id": leave_type.id,
            "start_date": start_date,
            "end_date": end_date,
            "total_days": total_days,
        },
    )
    _commit(db)
    return get_application(db, application.id)


def cancel_application(db: Session, user: User, application_id: int) -> None:
    application = _get_own_pending(db, user, application_id, "cancelled")
    AuditService.log(
        db,
        action="cancel_leave_application",
        entity_type="leave_application",
        entity_id=application.id,
        user_id=user.id,
        user_role=user.role,
        before_state={"status": application.status, "total_days": application.total_days},
    )
    db.delete(application)
    _commit(db)


def approve_application(
    db: Session,
    application_id: int,
    approver: User,
    comments: Optional[str] = None,
    today: Optional[date] = None,
) -> LeaveApplication:
    """
    Approve a pending application and debit the current year's balance.

    The matching (personnel, leave type, year) balance row has its
    used_credits incremented in SQL. When no such row exists the approval
    still goes through and the ledger is left alone.
    """
    application = db.query(LeaveApplication).filter(LeaveApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Leave application not found")
    if application.status != LeaveStatus.PENDING:
        raise BusinessRuleError(
            f"Only pending applications can be approved (current status: {application.status.value})"
        )

    year = (today or date.today()).year
    application.status = LeaveStatus.APPROVED
    application.approved_by = approver.id
    application.approval_date = datetime.now(timezone.utc)
    application.approval_comments = comments

    updated = db.query(LeaveBalance).filter(
        LeaveBalance.personnel_id == application.personnel_id,
        LeaveBalance.leave_type_id == application.leave_type_id,
        LeaveBalance.year == year,
    ).update(
        {LeaveBalance.used_credits: LeaveBalance.used_credits + application.total_days},
        synchronize_session="fetch",
    )
    if not updated:
        logger.info(
            f"No {year} balance for personnel {application.personnel_id} / leave type "
            f"{application.leave_type_id}; approval recorded without a ledger entry"
        )

    AuditService.log(
        db,
        action="approve_leave_application",
        entity_type="leave_application",
        entity_id=application.id,
        user_id=approver.id,
        user_role=approver.role,
        details={"total_days": application.total_days, "year": year, "balance_updated": bool(updated)},
        before_state={"status": LeaveStatus.PENDING},
        after_state={"status": LeaveStatus.APPROVED},
    )
    _commit(db)
    return get_application(db, application.id)


def reject_application(
    db: Session, application_id: int, approver: User, comments: Optional[str] = None
) -> LeaveApplication:
    application = db.query(LeaveApplication).filter(LeaveApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Leave application not found")
    if application.status != LeaveStatus.PENDING:
        raise BusinessRuleError(
            f"Only pending applications can be rejected (current status: {application.status.value})"
        )

    application.status = LeaveStatus.REJECTED
    application.approved_by = approver.id
    application.approval_date = datetime.now(timezone.utc)
    application.approval_comments = comments

    AuditService.log(
        db,
        action="reject_leave_application",
        entity_type="leave_application",
        entity_id=application.id,
        user_id=approver.id,
        user_role=approver.role,
        details={"comments": comments},
        before_state={"status": LeaveStatus.PENDING},
        after_state={"status": LeaveStatus.REJECTED},
    )
    _commit(db)
    return get_application(db, application.id)


# ==================== LEAVE TYPES ====================

def list_leave_types(db: Session, active_only: bool = False) -> List[LeaveType]:
    query = db.query(LeaveType)
    if active_only:
        query = query.filter(LeaveType.is_active.is_(True))
    return query.order_by(LeaveType.leave_type_name.asc()).all()


def _ensure_unique_type_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(LeaveType).filter(func.lower(LeaveType.leave_type_name) == name.lower())
    if exclude_id is not None:
        query = query.filter(LeaveType.id != exclude_id)
    if query.first():
        raise ConflictError(f"Leave type '{name}' already exists")


def create_leave_type(db: Session, data: LeaveTypeCreate, actor: User) -> LeaveType:
    _ensure_unique_type_name(db, data.leave_type_name)
    leave_type = LeaveType(**data.model_dump())
    db.add(leave_type)
    db.flush()
    AuditService.log(
        db,
        action="create_leave_type",
        entity_type="leave_type",
        entity_id=leave_type.id,
        user_id=actor.id,
        user_role=actor.role,
        after_state=data,
    )
    _commit(db)
    db.refresh(leave_type)
    return leave_type


def update_leave_type(db: Session, leave_type_id: int, data: LeaveTypeUpdate, actor: User) -> LeaveType:
    leave_type = get_leave_type(db, leave_type_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("leave_type_name"):
        _ensure_unique_type_name(db, changes["leave_type_name"], exclude_id=leave_type.id)

    before = {field: getattr(leave_type, field) for field in changes}
    for field, value in changes.items():
        setattr(leave_type, field, value)

    AuditService.log(
        db,
        action="update_leave_type",
        entity_type="leave_type",
        entity_id=leave_type.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state=before,
        after_state=changes,
    )
    _commit(db)
    db.refresh(leave_type)
    return leave_type


def delete_leave_type(db: Session, leave_type_id: int, actor: User) -> None:
    leave_type = get_leave_type(db, leave_type_id)
    in_use = (
        db.query(LeaveApplication.id).filter(LeaveApplication.leave_type_id == leave_type.id).first()
        or db.query(LeaveBalance.id).filter(LeaveBalance.leave_type_id == leave_type.id).first()
        or db.query(LeaveMonetization.id).filter(LeaveMonetization.leave_type_id == leave_type.id).first()
        or db.query(LeaveAdjustment.id).filter(LeaveAdjustment.leave_type_id == leave_type.id).first()
    )
    if in_use:
        raise BusinessRuleError(
            f"Leave type '{leave_type.leave_type_name}' is in use and cannot be deleted; deactivate it instead"
        )

    AuditService.log(
        db,
        action="delete_leave_type",
        entity_type="leave_type",
        entity_id=leave_type.id,
        user_id=actor.id,
        user_role=actor.role,
        before_state={"leave_type_name": leave_type.leave_type_name},
    )
    db.delete(leave_type)
    _commit(db)


# ==================== BALANCES ====================

def _balance_query(db: Session):
    return db.query(LeaveBalance).options(joinedload(LeaveBalance.leave_type))


def list_my_balances(db: Session, user: User, year: Optional[int] = None) -> List[LeaveBalance]:
    personnel = get_personnel_for_user(db, user)
    return list_personnel_balances(db, personnel.id, year)


def list_personnel_balances(db: Session, personnel_id: int, year: Optional[int] = None) -> List[LeaveBalance]:
    get_personnel(db, personnel_id)
    year = year or date.today().year
    return (
        _balance_query(db)
        .filter(LeaveBalance.personnel_id == personnel_id, LeaveBalance.year == year)
        .order_by(LeaveBalance.leave_type_id.asc())
        .all()
    )


def initialize_balance(db: Session, data: LeaveBalanceInitialize, actor: User) -> LeaveBalance:
    """
    Upsert the (personnel, leave type, year) row.

    total_credits and earned_credits are overwritten; used_credits is kept
    on an existing row since it reflects approved applications.
    """
    get_personnel(db, data.personnel_id)
    get_leave_type(db, data.leave_type_id)
    year = data.year or date.today().year

    balance = db.query(LeaveBalance).filter(
        LeaveBalance.personnel_id == data.personnel_id,
        LeaveBalance.leave_type_id == data.leave_type_id,
        LeaveBalance.year == year,
    ).first()

    before = None
    if balance:
        before = {"total_credits": balance.total_credits, "earned_credits": balance.earned_credits}
        balance.total_credits = data.total_credits
        balance.earned_credits = data.earned_credits
    else:
        balance = LeaveBalance(
            personnel_id=data.personnel_id,
            leave_type_id=data.leave_type_id,
            year=year,
            total_credits=data.total_credits,
            used_credits=0.0,
            earned_credits=data.earned_credits,
        )
        db.add(balance)
    db.flush()

    AuditService.log(
        db,
        action="initialize_leave_balance",
        entity_type="leave_balance",
        entity_id=balance.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"personnel_id": data.personnel_id, "leave_type_id": data.leave_type_id, "year": year},
        before_state=before,
        after_state={"total_credits": data.total_credits, "earned_credits": data.earned_credits},
    )
    _commit(db)
    db.refresh(balance)
    return balance


# ==================== MONETIZATION ====================

def _monetization_query(db: Session):
    return db.query(LeaveMonetization).options(
        joinedload(LeaveMonetization.personnel),
        joinedload(LeaveMonetization.leave_type),
    )


def list_monetizations(
    db: Session,
    params: PageParams,
    status: Optional[LeaveStatus] = None,
    personnel_id: Optional[int] = None,
):
    query = _monetization_query(db)
    if status:
        query = query.filter(LeaveMonetization.status == status)
    if personnel_id:
        query = query.filter(LeaveMonetization.personnel_id == personnel_id)
    query = apply_sort(query, LeaveMonetization, params, ("request_date", "days_to_monetize", "status"), "request_date", "desc")
    return paginate(query, params)


def create_monetization(db: Session, user: User, data: LeaveMonetizationCreate) -> LeaveMonetization:
    personnel = get_personnel_for_user(db, user)
    leave_type = get_leave_type(db, data.leave_type_id)

    monetization = LeaveMonetization(
        personnel_id=personnel.id,
        leave_type_id=leave_type.id,
        days_to_monetize=data.days_to_monetize,
        status=LeaveStatus.PENDING,
    )
    db.add(monetization)
    db.flush()
    AuditService.log(
        db,
        action="create_leave_monetization",
        entity_type="leave_monetization",
        entity_id=monetization.id,
        user_id=user.id,
        user_role=user.role,
        details={"leave_type": leave_type.leave_type_name, "days_to_monetize": data.days_to_monetize},
    )
    _commit(db)
    db.refresh(monetization)
    return monetization


def _decide_monetization(
    db: Session,
    monetization_id: int,
    approver: User,
    status: LeaveStatus,
    amount: Optional[float] = None,
) -> LeaveMonetization:
    monetization = db.query(LeaveMonetization).filter(LeaveMonetization.id == monetization_id).first()
    if not monetization:
        raise NotFoundError("Leave monetization request not found")
    if monetization.status != LeaveStatus.PENDING:
        raise BusinessRuleError(
            f"Only pending monetization requests can be decided (current status: {monetization.status.value})"
        )

    monetization.status = status
    monetization.approved_by = approver.id
    monetization.approval_date = datetime.now(timezone.utc)
    if amount is not None:
        monetization.amount = amount

    AuditService.log(
        db,
        action=f"{'approve' if status == LeaveStatus.APPROVED else 'reject'}_leave_monetization",
        entity_type="leave_monetization",
        entity_id=monetization.id,
        user_id=approver.id,
        user_role=approver.role,
        details={"days_to_monetize": monetization.days_to_monetize, "amount": amount},
        before_state={"status": LeaveStatus.PENDING},
        after_state={"status": status},
    )
    _commit(db)
    db.refresh(monetization)
    return monetization


def approve_monetization(
    db: Session, monetization_id: int, approver: User, amount: Optional[float] = None
) -> LeaveMonetization:
    return _decide_monetization(db, monetization_id, approver, LeaveStatus.APPROVED, amount)


def reject_monetization(db: Session, monetization_id: int, approver: User) -> LeaveMonetization:
    return _decide_monetization(db, monetization_id, approver, LeaveStatus.REJECTED)


# ==================== REPORTS ====================

def summary_report(db: Session, year: Optional[int] = None) -> Dict[str, Any]:
    """Application counts by status, and counts / days by leave type and department."""
    year = year or date.today().year
    first_day, last_day = _year_bounds(year)
    in_year = (LeaveApplication.start_date >= first_day, LeaveApplication.start_date <= last_day)

    by_status = {status.value: 0 for status in LeaveStatus}
    for status, count in (
        db.query(LeaveApplication.status, func.count(LeaveApplication.id))
        .filter(*in_year)
        .group_by(LeaveApplication.status)
        .all()
    ):
        by_status[status.value] = count

    by_leave_type = [
        {
            "leave_type_id": leave_type_id,
            "leave_type_name": name,
            "applications": count,
            "approved_days": float(approved_days or 0),
        }
        for leave_type_id, name, count, approved_days in (
            db.query(
                LeaveType.id,
                LeaveType.leave_type_name,
                func.count(LeaveApplication.id),
                func.sum(case((LeaveApplication.status == LeaveStatus.APPROVED, LeaveApplication.total_days), else_=0)),
            )
            .join(LeaveApplication, LeaveApplication.leave_type_id == LeaveType.id)
            .filter(*in_year)
            .group_by(LeaveType.id, LeaveType.leave_type_name)
            .order_by(LeaveType.leave_type_name.asc())
            .all()
        )
    ]

    by_department = [
        {
            "department_id": department_id,
            "department_name": name or "Unassigned",
            "applications": count,
            "total_days": float(total_days or 0),
        }
        for department_id, name, count, total_days in (
            db.query(
                Department.id,
                Department.department_name,
                func.count(LeaveApplication.id),
                func.sum(LeaveApplication.total_days),
            )
            .select_from(LeaveApplication)
            .join(Personnel, Personnel.id == LeaveApplication.personnel_id)
            .outerjoin(Department, Department.id == Personnel.department_id)
            .filter(*in_year)
            .group_by(Department.id, Department.department_name)
            .order_by(Department.department_name.asc())
            .all()
        )
    ]

    return {
        "year": year,
        "total_applications": sum(by_status.values()),
        "by_status": by_status,
        "by_leave_type": by_leave_type,
        "by_department": by_department,
    }


def balance_report(db: Session, year: Optional[int] = None, department_id: Optional[int] = None) -> Dict[str, Any]:
    year = year or date.today().year
    query = (
        db.query(LeaveBalance)
        .join(Personnel, Personnel.id == LeaveBalance.personnel_id)
        .options(
            joinedload(LeaveBalance.personnel).joinedload(Personnel.department),
            joinedload(LeaveBalance.leave_type),
        )
        .filter(LeaveBalance.year == year)
    )
    if department_id:
        query = query.filter(Personnel.department_id == department_id)

    rows = [
        {
            "personnel_id": balance.personnel_id,
            "personnel_name": balance.personnel.full_name,
            "department_name": balance.personnel.department_name,
            "leave_type_id": balance.leave_type_id,
            "leave_type_name": balance.leave_type_name,
            "total_credits": balance.total_credits,
            "used_credits": balance.used_credits,
            "earned_credits": balance.earned_credits,
            "remaining_credits": balance.remaining_credits,
        }
        for balance in query.order_by(Personnel.last_name.asc(), LeaveBalance.leave_type_id.asc()).all()
    ]
    return {
        "year": year,
        "department_id": department_id,
        "totals": {
            "total_credits": sum(r["total_credits"] for r in rows),
            "used_credits": sum(r["used_credits"] for r in rows),
            "remaining_credits": sum(r["remaining_credits"] for r in rows),
        },
        "balances": rows,
    }


# ==================== ADJUSTMENTS ====================

def adjust_balance(
    db: Session,
    data: LeaveAdjustmentCreate,
    actor: User,
    today: Optional[date] = None,
) -> LeaveAdjustment:
    """
    Apply a manual increase or decrease to a balance's total_credits.

    The adjustment record, the balance update and the audit entry are
    committed together or not at all.
    """
    errors = []
    adjustment_type = None
    try:
        adjustment_type = AdjustmentType(str(data.adjustment_type).lower())
    except ValueError:
        errors.append({"field": "adjustment_type", "message": "Adjustment type must be 'increase' or 'decrease'"})
    if data.adjustment_amount is None or data.adjustment_amount <= 0:
        errors.append({"field": "adjustment_amount", "message": "Adjustment amount must be greater than zero"})
    if not data.reason or not data.reason.strip():
        errors.append({"field": "reason", "message": "Reason is required"})
    if errors:
        raise ValidationError("Invalid leave adjustment", errors)

    year = data.year or (today or date.today()).year
    balance = db.query(LeaveBalance).filter(
        LeaveBalance.personnel_id == data.personnel_id,
        LeaveBalance.leave_type_id == data.leave_type_id,
        LeaveBalance.year == year,
    ).first()
    if not balance:
        raise NotFoundError(f"No {year} leave balance found for this personnel and leave type")

    previous_balance = balance.total_credits or 0.0
    if adjustment_type == AdjustmentType.INCREASE:
        new_balance = previous_balance + data.adjustment_amount
    else:
        new_balance = previous_balance - data.adjustment_amount
    if new_balance < 0:
        raise BusinessRuleError(
            "Adjustment would result in a negative balance",
            details={"previous_balance": previous_balance, "adjustment_amount": data.adjustment_amount},
        )

    try:
        adjustment = LeaveAdjustment(
            personnel_id=data.personnel_id,
            leave_type_id=data.leave_type_id,
            year=year,
            adjustment_type=adjustment_type,
            adjustment_amount=data.adjustment_amount,
            reason=data.reason.strip(),
            previous_balance=previous_balance,
            new_balance=new_balance,
            created_by=actor.id,
        )
        db.add(adjustment)
        balance.total_credits = new_balance
        db.flush()

        AuditService.log(
            db,
            action="adjust_leave_balance",
            entity_type="leave_balance",
            entity_id=balance.id,
            user_id=actor.id,
            user_role=actor.role,
            details={
                "adjustment_id": adjustment.id,
                "adjustment_type": adjustment_type,
                "adjustment_amount": data.adjustment_amount,
                "reason": adjustment.reason,
            },
            before_state={"total_credits": previous_balance},
            after_state={"total_credits": new_balance},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Leave adjustment for balance {balance.id} rolled back", exc_info=True)
        raise

    logger.info(
        f"Balance {balance.id} {adjustment_type.value}d by {data.adjustment_amount}: "
        f"{previous_balance} -> {new_balance}"
    )
    db.refresh(adjustment)
    return adjustment


def _adjustment_query(db: Session):
    return db.query(LeaveAdjustment).options(
        joinedload(LeaveAdjustment.personnel),
        joinedload(LeaveAdjustment.leave_type),
        joinedload(LeaveAdjustment.created_by_user),
    )


def list_adjustments(
    db: Session,
    params: PageParams,
    personnel_id: Optional[int] = None,
    leave_type_id: Optional[int] = None,
    adjustment_type: Optional[AdjustmentType] = None,
    year: Optional[int] = None,
):
    query = _adjustment_query(db)
    if personnel_id:
        query = query.filter(LeaveAdjustment.personnel_id == personnel_id)
    if leave_type_id:
        query = query.filter(LeaveAdjustment.leave_type_id == leave_type_id)
    if adjustment_type:
        query = query.filter(LeaveAdjustment.adjustment_type == adjustment_type)
    if year:
        query = query.filter(LeaveAdjustment.year == year)
    query = apply_sort(query, LeaveAdjustment, params, ("created_at", "adjustment_amount", "year"), "created_at", "desc")
    return paginate(query, params)


def list_personnel_adjustments(db: Session, personnel_id: int) -> List[LeaveAdjustment]:
    get_personnel(db, personnel_id)
    return (
        _adjustment_query(db)
        .filter(LeaveAdjustment.personnel_id == personnel_id)
        .order_by(LeaveAdjustment.created_at.desc(), LeaveAdjustment.id.desc())
        .all()
    )
