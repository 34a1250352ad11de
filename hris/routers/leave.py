"""
Leave management endpoints.

Employees file and manage their own applications and monetization requests;
staff (Admin/HR) decide them, maintain leave types and balances, adjust
credits and pull reports.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.pagination import PageParams, page_params
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.leave_adjustment import AdjustmentType
from hris.models.leave_application import LeaveStatus
from hris.models.user import User
from hris.routers.auth_deps import get_current_user, require_staff
from hris.schemas.leave import (
    LeaveAdjustmentCreate,
    LeaveAdjustmentResponse,
    LeaveApplicationCreate,
    LeaveApplicationResponse,
    LeaveApplicationUpdate,
    LeaveBalanceInitialize,
    LeaveBalanceResponse,
    LeaveDecision,
    LeaveMonetizationApprove,
    LeaveMonetizationCreate,
    LeaveMonetizationResponse,
    LeaveTypeCreate,
    LeaveTypeResponse,
    LeaveTypeUpdate,
)
from hris.services import leave_service

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


def _many(schema, rows):
    return [schema.model_validate(r) for r in rows]


# ==================== APPLICATIONS ====================

@router.get("/applications")
def list_applications(
    params: PageParams = Depends(page_params),
    status: Optional[LeaveStatus] = None,
    leave_type_id: Optional[int] = None,
    personnel_id: Optional[int] = None,
    start_date: Optional[date] = Query(None, description="Applications starting on or after"),
    end_date: Optional[date] = Query(None, description="Applications ending on or before"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = leave_service.list_applications(
        db, params, status, leave_type_id, personnel_id, start_date, end_date
    )
    return ApiResponse.ok(data=_many(LeaveApplicationResponse, items), pagination=pagination).to_dict()


@router.get("/applications/my")
def my_applications(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = leave_service.list_my_applications(db, current_user)
    return ApiResponse.ok(data=_many(LeaveApplicationResponse, rows)).to_dict()


@router.get("/applications/pending")
def pending_applications(db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = leave_service.list_pending_applications(db)
    return ApiResponse.ok(data=_many(LeaveApplicationResponse, rows)).to_dict()


@router.post("/applications", status_code=status.HTTP_201_CREATED)
def create_application(
    data: LeaveApplicationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    application = leave_service.create_application(db, current_user, data)
    return ApiResponse.ok(
        data=LeaveApplicationResponse.model_validate(application),
        message="Leave application submitted successfully",
    ).to_dict()


@router.put("/applications/{application_id}")
def update_application(
    application_id: int,
    data: LeaveApplicationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    application = leave_service.update_application(db, current_user, application_id, data)
    return ApiResponse.ok(
        data=LeaveApplicationResponse.model_validate(application),
        message="Leave application updated successfully",
    ).to_dict()


@router.delete("/applications/{application_id}")
def cancel_application(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    leave_service.cancel_application(db, current_user, application_id)
    return ApiResponse.ok(message="Leave application cancelled successfully").to_dict()


@router.put("/applications/{application_id}/approve")
def approve_application(
    application_id: int,
    decision: Optional[LeaveDecision] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    comments = decision.comments if decision else None
    application = leave_service.approve_application(db, application_id, current_user, comments)
    return ApiResponse.ok(
        data=LeaveApplicationResponse.model_validate(application),
        message="Leave application approved successfully",
    ).to_dict()


@router.put("/applications/{application_id}/reject")
def reject_application(
    application_id: int,
    decision: Optional[LeaveDecision] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    comments = decision.comments if decision else None
    application = leave_service.reject_application(db, application_id, current_user, comments)
    return ApiResponse.ok(
        data=LeaveApplicationResponse.model_validate(application),
        message="Leave application rejected",
    ).to_dict()


# ==================== LEAVE TYPES ====================

@router.get("/types")
def list_leave_types(
    active_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = leave_service.list_leave_types(db, active_only)
    return ApiResponse.ok(data=_many(LeaveTypeResponse, rows)).to_dict()


@router.post("/types", status_code=status.HTTP_201_CREATED)
def create_leave_type(
    data: LeaveTypeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    leave_type = leave_service.create_leave_type(db, data, current_user)
    return ApiResponse.ok(data=LeaveTypeResponse.model_validate(leave_type), message="Leave type created").to_dict()


@router.put("/types/{leave_type_id}")
def update_leave_type(
    leave_type_id: int,
    data: LeaveTypeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    leave_type = leave_service.update_leave_type(db, leave_type_id, data, current_user)
    return ApiResponse.ok(data=LeaveTypeResponse.model_validate(leave_type), message="Leave type updated").to_dict()


@router.delete("/types/{leave_type_id}")
def delete_leave_type(leave_type_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    leave_service.delete_leave_type(db, leave_type_id, current_user)
    return ApiResponse.ok(message="Leave type deleted").to_dict()


# ==================== BALANCES ====================

@router.get("/balance/my")
def my_balances(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = leave_service.list_my_balances(db, current_user, year)
    return ApiResponse.ok(data=_many(LeaveBalanceResponse, rows)).to_dict()


@router.get("/balance/{personnel_id}")
def personnel_balances(
    personnel_id: int,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    rows = leave_service.list_personnel_balances(db, personnel_id, year)
    return ApiResponse.ok(data=_many(LeaveBalanceResponse, rows)).to_dict()


@router.post("/balance/initialize")
def initialize_balance(
    data: LeaveBalanceInitialize,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    balance = leave_service.initialize_balance(db, data, current_user)
    return ApiResponse.ok(
        data=LeaveBalanceResponse.model_validate(balance), message="Leave balance initialized"
    ).to_dict()


# ==================== MONETIZATION ====================

@router.get("/monetization")
def list_monetizations(
    params: PageParams = Depends(page_params),
    status: Optional[LeaveStatus] = None,
    personnel_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = leave_service.list_monetizations(db, params, status, personnel_id)
    return ApiResponse.ok(data=_many(LeaveMonetizationResponse, items), pagination=pagination).to_dict()


@router.post("/monetization", status_code=status.HTTP_201_CREATED)
def create_monetization(
    data: LeaveMonetizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    monetization = leave_service.create_monetization(db, current_user, data)
    return ApiResponse.ok(
        data=LeaveMonetizationResponse.model_validate(monetization),
        message="Monetization request submitted",
    ).to_dict()


@router.put("/monetization/{monetization_id}/approve")
def approve_monetization(
    monetization_id: int,
    data: Optional[LeaveMonetizationApprove] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    amount = data.amount if data else None
    monetization = leave_service.approve_monetization(db, monetization_id, current_user, amount)
    return ApiResponse.ok(
        data=LeaveMonetizationResponse.model_validate(monetization),
        message="Monetization request approved",
    ).to_dict()


@router.put("/monetization/{monetization_id}/reject")
def reject_monetization(
    monetization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    monetization = leave_service.reject_monetization(db, monetization_id, current_user)
    return ApiResponse.ok(
        data=LeaveMonetizationResponse.model_validate(monetization),
        message="Monetization request rejected",
    ).to_dict()


# ==================== REPORTS ====================

@router.get("/reports/summary")
def summary_report(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    return ApiResponse.ok(data=leave_service.summary_report(db, year)).to_dict()


@router.get("/reports/balance")
def balance_report(
    year: Optional[int] = None,
    department_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    return ApiResponse.ok(data=leave_service.balance_report(db, year, department_id)).to_dict()


# ==================== ADJUSTMENTS ====================

@router.post("/adjustments", status_code=status.HTTP_201_CREATED)
def create_adjustment(
    data: LeaveAdjustmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    adjustment = leave_service.adjust_balance(db, data, current_user)
    return ApiResponse.ok(
        data=LeaveAdjustmentResponse.model_validate(adjustment),
        message="Leave balance adjusted successfully",
    ).to_dict()


@router.get("/adjustments")
def list_adjustments(
    params: PageParams = Depends(page_params),
    personnel_id: Optional[int] = None,
    leave_type_id: Optional[int] = None,
    adjustment_type: Optional[AdjustmentType] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = leave_service.list_adjustments(
        db, params, personnel_id, leave_type_id, adjustment_type, year
    )
    return ApiResponse.ok(data=_many(LeaveAdjustmentResponse, items), pagination=pagination).to_dict()


@router.get("/adjustments/{personnel_id}")
def personnel_adjustments(
    personnel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    rows = leave_service.list_personnel_adjustments(db, personnel_id)
    return ApiResponse.ok(data=_many(LeaveAdjustmentResponse, rows)).to_dict()
