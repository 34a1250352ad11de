import pytest
from datetime import date
from sqlalchemy.exc import SQLAlchemyError
from hris.core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from hris.models.audit_log import AuditLog
from hris.models.leave_adjustment import AdjustmentType, LeaveAdjustment
from hris.models.leave_application import LeaveStatus
from hris.models.leave_balance import LeaveBalance
from hris.schemas.leave import (
    LeaveAdjustmentCreate,
    LeaveApplicationCreate,
    LeaveMonetizationCreate,
)
from hris.services import leave_service
from hris.services.audit import AuditService

TODAY = date(2025, 3, 3)


def _balance(db_session, personnel_id, leave_type_id, year, total=15.0, used=0.0):
    balance = LeaveBalance(
        personnel_id=personnel_id,
        leave_type_id=leave_type_id,
        year=year,
        total_credits=total,
        used_credits=used,
        earned_credits=0.0,
    )
    db_session.add(balance)
    db_session.commit()
    return balance


def _file(db_session, user, leave_type, start=date(2025, 3, 10), end=date(2025, 3, 12)):
    data = LeaveApplicationCreate(leave_type_id=leave_type.id, start_date=start, end_date=end, reason="Family trip")
    return leave_service.create_application(db_session, user, data)


def test_total_days_is_inclusive():
    assert leave_service.calculate_total_days(date(2025, 3, 10), date(2025, 3, 10)) == 1.0
    assert leave_service.calculate_total_days(date(2025, 3, 10), date(2025, 3, 12)) == 3.0


def test_create_application_computes_days(db_session, employee_user, leave_type):
    application = _file(db_session, employee_user, leave_type)
    assert application.total_days == 3.0
    assert application.status == LeaveStatus.PENDING
    assert application.personnel_id == employee_user.personnel.id


def test_end_before_start_is_rejected(db_session, employee_user, leave_type):
    with pytest.raises(ValidationError) as exc:
        _file(db_session, employee_user, leave_type, start=date(2025, 3, 12), end=date(2025, 3, 10))
    assert exc.value.errors[0]["field"] == "end_date"


def test_max_days_is_enforced(db_session, employee_user, leave_type):
    with pytest.raises(BusinessRuleError):
        _file(db_session, employee_user, leave_type, start=date(2025, 3, 1), end=date(2025, 3, 31))


def test_inactive_leave_type_is_rejected(db_session, employee_user, leave_type):
    leave_type.is_active = False
    db_session.commit()
    with pytest.raises(BusinessRuleError):
        _file(db_session, employee_user, leave_type)


def test_document_required(db_session, employee_user, leave_type):
    leave_type.requires_document = True
    db_session.commit()
    with pytest.raises(ValidationError) as exc:
        _file(db_session, employee_user, leave_type)
    assert exc.value.errors[0]["field"] == "supporting_document"


def test_approve_debits_current_year_balance(db_session, employee_user, hr_user, leave_type):
    """Approval moves used_credits on the current year's row only."""
    personnel_id = employee_user.personnel.id
    current = _balance(db_session, personnel_id, leave_type.id, TODAY.year, used=2.0)
    previous = _balance(db_session, personnel_id, leave_type.id, TODAY.year - 1, used=1.0)
    application = _file(db_session, employee_user, leave_type)

    approved = leave_service.approve_application(db_session, application.id, hr_user, "Enjoy", today=TODAY)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_by == hr_user.id
    assert approved.approval_comments == "Enjoy"
    db_session.refresh(current)
    db_session.refresh(previous)
    assert current.used_credits == 5.0
    assert current.total_credits == 15.0
    assert current.remaining_credits == 10.0
    assert previous.used_credits == 1.0


def test_approve_without_balance_still_approves(db_session, employee_user, hr_user, leave_type):
    application = _file(db_session, employee_user, leave_type)
    approved = leave_service.approve_application(db_session, application.id, hr_user, today=TODAY)
    assert approved.status == LeaveStatus.APPROVED
    assert db_session.query(LeaveBalance).count() == 0
    entry = db_session.query(AuditLog).filter(AuditLog.action == "approve_leave_application").first()
    assert entry.details["balance_updated"] is False


def test_approve_twice_is_refused(db_session, employee_user, hr_user, leave_type):
    application = _file(db_session, employee_user, leave_type)
    leave_service.approve_application(db_session, application.id, hr_user, today=TODAY)
    with pytest.raises(BusinessRuleError):
        leave_service.approve_application(db_session, application.id, hr_user, today=TODAY)


def test_reject_leaves_balance_untouched(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, date.today().year)
    application = _file(db_session, employee_user, leave_type)

    rejected = leave_service.reject_application(db_session, application.id, hr_user, "Short staffed")

    assert rejected.status == LeaveStatus.REJECTED
    db_session.refresh(balance)
    assert balance.used_credits == 0.0
    with pytest.raises(BusinessRuleError):
        leave_service.approve_application(db_session, application.id, hr_user)


def test_decide_unknown_application(db_session, hr_user):
    with pytest.raises(NotFoundError):
        leave_service.approve_application(db_session, 9999, hr_user)
    with pytest.raises(NotFoundError):
        leave_service.reject_application(db_session, 9999, hr_user)


def test_adjust_increase(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, TODAY.year, total=10.0, used=4.0)
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="Increase",
        adjustment_amount=2.5,
        reason="  Overtime offset  ",
    )

    adjustment = leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)

    assert adjustment.adjustment_type == AdjustmentType.INCREASE
    assert adjustment.previous_balance == 10.0
    assert adjustment.new_balance == 12.5
    assert adjustment.reason == "Overtime offset"
    assert adjustment.year == TODAY.year
    db_session.refresh(balance)
    assert balance.total_credits == 12.5
    assert balance.used_credits == 4.0


def test_adjust_writes_audit_entry(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, TODAY.year, total=10.0)
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="increase",
        adjustment_amount=1.5,
        reason="Offset",
    )
    adjustment = leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)

    entry = db_session.query(AuditLog).filter(AuditLog.action == "adjust_leave_balance").one()
    assert entry.entity_type == "leave_balance"
    assert entry.entity_id == balance.id
    assert entry.user_id == hr_user.id
    assert entry.before_state == {"total_credits": 10.0}
    assert entry.after_state == {"total_credits": 11.5}
    assert entry.details["adjustment_id"] == adjustment.id
    assert entry.details["adjustment_type"] == "increase"


def test_adjust_rolls_back_when_audit_write_fails(db_session, employee_user, hr_user, leave_type, monkeypatch):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, TODAY.year, total=10.0)
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="increase",
        adjustment_amount=2,
        reason="Offset",
    )

    def failing_log(db, *args, **kwargs):
        raise SQLAlchemyError("audit store unavailable")

    monkeypatch.setattr(AuditService, "log", failing_log)
    with pytest.raises(SQLAlchemyError):
        leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)

    db_session.refresh(balance)
    assert balance.total_credits == 10.0
    assert db_session.query(LeaveAdjustment).count() == 0
    assert db_session.query(AuditLog).filter(AuditLog.action == "adjust_leave_balance").count() == 0


def test_adjust_decrease(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, 2024, total=10.0)
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        year=2024,
        adjustment_type="decrease",
        adjustment_amount=3,
        reason="Correction",
    )
    adjustment = leave_service.adjust_balance(db_session, data, hr_user)
    assert adjustment.new_balance == 7.0
    db_session.refresh(balance)
    assert balance.total_credits == 7.0


def test_adjust_cannot_go_negative(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, TODAY.year, total=2.0)
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="decrease",
        adjustment_amount=5,
        reason="Correction",
    )
    with pytest.raises(BusinessRuleError):
        leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)
    db_session.refresh(balance)
    assert balance.total_credits == 2.0
    assert db_session.query(LeaveAdjustment).count() == 0


def test_adjust_without_balance(db_session, employee_user, hr_user, leave_type):
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="increase",
        adjustment_amount=1,
        reason="Bonus",
    )
    with pytest.raises(NotFoundError):
        leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)


def test_adjust_validates_every_field(db_session, employee_user, hr_user, leave_type):
    data = LeaveAdjustmentCreate(
        personnel_id=employee_user.personnel.id,
        leave_type_id=leave_type.id,
        adjustment_type="bump",
        adjustment_amount=0,
        reason="   ",
    )
    with pytest.raises(ValidationError) as exc:
        leave_service.adjust_balance(db_session, data, hr_user, today=TODAY)
    assert {e["field"] for e in exc.value.errors} == {"adjustment_type", "adjustment_amount", "reason"}


def test_monetization_does_not_touch_balance(db_session, employee_user, hr_user, leave_type):
    balance = _balance(db_session, employee_user.personnel.id, leave_type.id, date.today().year, total=15.0)
    request = leave_service.create_monetization(
        db_session, employee_user, LeaveMonetizationCreate(leave_type_id=leave_type.id, days_to_monetize=5)
    )
    approved = leave_service.approve_monetization(db_session, request.id, hr_user, amount=7500.0)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.amount == 7500.0
    db_session.refresh(balance)
    assert balance.total_credits == 15.0
    assert balance.used_credits == 0.0
    with pytest.raises(BusinessRuleError):
        leave_service.reject_monetization(db_session, request.id, hr_user)


def test_initialize_balance_keeps_used_credits(db_session, employee_user, hr_user, leave_type):
    from hris.schemas.leave import LeaveBalanceInitialize

    personnel_id = employee_user.personnel.id
    existing = _balance(db_session, personnel_id, leave_type.id, 2025, total=10.0, used=3.0)
    data = LeaveBalanceInitialize(personnel_id=personnel_id, leave_type_id=leave_type.id, year=2025, total_credits=20.0)

    balance = leave_service.initialize_balance(db_session, data, hr_user)

    assert balance.id == existing.id
    assert balance.total_credits == 20.0
    assert balance.used_credits == 3.0


def test_delete_leave_type_in_use(db_session, employee_user, hr_user, leave_type):
    _file(db_session, employee_user, leave_type)
    with pytest.raises(BusinessRuleError):
        leave_service.delete_leave_type(db_session, leave_type.id, hr_user)
