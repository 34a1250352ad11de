from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime
from hris.core.schemas import reject_null
from hris.models.leave_application import LeaveStatus
from hris.models.leave_adjustment import AdjustmentType


# --- Leave types ---

class LeaveTypeCreate(BaseModel):
    leave_type_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    requires_document: bool = False
    max_days: Optional[int] = Field(None, ge=1)
    is_active: bool = True


class LeaveTypeUpdate(BaseModel):
    leave_type_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    requires_document: Optional[bool] = None
    max_days: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("leave_type_name", "requires_document", "is_active", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class LeaveTypeResponse(LeaveTypeCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


# --- Applications ---

class LeaveApplicationCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None
    supporting_document: Optional[str] = None


class LeaveApplicationUpdate(BaseModel):
    leave_type_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    supporting_document: Optional[str] = None

    @field_validator("leave_type_id", "start_date", "end_date", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class LeaveDecision(BaseModel):
    comments: Optional[str] = None


class LeaveApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    personnel_name: Optional[str] = None
    department_name: Optional[str] = None
    leave_type_id: int
    leave_type_name: Optional[str] = None
    start_date: date
    end_date: date
    total_days: float
    reason: Optional[str] = None
    supporting_document: Optional[str] = None
    status: LeaveStatus
    request_date: Optional[datetime] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    approval_comments: Optional[str] = None


# --- Balances ---

class LeaveBalanceInitialize(BaseModel):
    personnel_id: int
    leave_type_id: int
    year: Optional[int] = Field(None, ge=1900, le=9999)
    total_credits: float = Field(..., ge=0)
    earned_credits: float = Field(0.0, ge=0)


class LeaveBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    leave_type_id: int
    leave_type_name: Optional[str] = None
    year: int
    total_credits: float
    used_credits: float
    earned_credits: float
    remaining_credits: float
    last_updated: Optional[datetime] = None


# --- Monetization ---

class LeaveMonetizationCreate(BaseModel):
    leave_type_id: int
    days_to_monetize: float = Field(..., gt=0)


class LeaveMonetizationApprove(BaseModel):
    amount: Optional[float] = Field(None, ge=0)


class LeaveMonetizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    personnel_name: Optional[str] = None
    leave_type_id: int
    leave_type_name: Optional[str] = None
    days_to_monetize: float
    amount: Optional[float] = None
    status: LeaveStatus
    request_date: Optional[datetime] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None


# --- Adjustments ---

class LeaveAdjustmentCreate(BaseModel):
    # adjustment_type, amount and reason are checked by leave_service.adjust_balance
    personnel_id: int
    leave_type_id: int
    year: Optional[int] = None
    adjustment_type: str
    adjustment_amount: float
    reason: Optional[str] = None


class LeaveAdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    personnel_name: Optional[str] = None
    leave_type_id: int
    leave_type_name: Optional[str] = None
    year: int
    adjustment_type: AdjustmentType
    adjustment_amount: float
    reason: str
    previous_balance: float
    new_balance: float
    created_by: int
    created_by_username: Optional[str] = None
    created_at: Optional[datetime] = None
