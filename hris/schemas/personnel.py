from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime
from hris.core.schemas import reject_null
from hris.models.user import UserRole, UserStatus


class PersonnelBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    civil_status: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    department_id: Optional[int] = None
    designation: Optional[str] = None
    employment_type: str = "Regular"
    date_hired: Optional[date] = None
    salary: float = Field(0.0, ge=0)


class MembershipData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gsis_number: Optional[str] = None
    pagibig_number: Optional[str] = None
    philhealth_number: Optional[str] = None
    sss_number: Optional[str] = None
    tin_number: Optional[str] = None


class PersonnelCreate(PersonnelBase, MembershipData):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str
    role: UserRole = UserRole.EMPLOYEE


class PersonnelUpdate(MembershipData):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    civil_status: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    department_id: Optional[int] = None
    designation: Optional[str] = None
    employment_type: Optional[str] = None
    date_hired: Optional[date] = None
    salary: Optional[float] = Field(None, ge=0)
    email: Optional[EmailStr] = None
    status: Optional[UserStatus] = None

    @field_validator("first_name", "last_name", "employment_type", "salary", "status", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class PersonnelResponse(PersonnelBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    username: Optional[str] = None
    email: Optional[str] = None
    status: Optional[UserStatus] = None
    department_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Sub-records ---

class EmploymentHistoryCreate(BaseModel):
    organization: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None
    employment_type: str


class EmploymentHistoryResponse(EmploymentHistoryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    created_at: Optional[datetime] = None


class MeritViolationCreate(BaseModel):
    record_type: str = Field(..., pattern="^(Merit|Violation)$")
    description: str = Field(..., min_length=1)
    date_recorded: date
    documented_by: str
    document_path: Optional[str] = None


class MeritViolationResponse(MeritViolationCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    created_at: Optional[datetime] = None


class AdministrativeCaseCreate(BaseModel):
    case_title: str = Field(..., min_length=1)
    case_description: str = Field(..., min_length=1)
    case_status: str = "Open"
    date_filed: date
    filed_by: str
    document_path: Optional[str] = None


class AdministrativeCaseResponse(AdministrativeCaseCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    created_at: Optional[datetime] = None


class PersonnelMovementCreate(BaseModel):
    movement_type: str = Field(..., min_length=1)  # Promotion, Transfer, Reassignment, ...
    new_department_id: Optional[int] = None
    new_designation: Optional[str] = None
    new_salary: Optional[float] = Field(None, ge=0)
    effective_date: date
    issued_by: str
    issued_date: date
    remarks: Optional[str] = None
    document_path: Optional[str] = None
    apply_to_record: bool = True


class PersonnelMovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    movement_type: str
    previous_department_id: Optional[int] = None
    new_department_id: Optional[int] = None
    previous_designation: Optional[str] = None
    new_designation: Optional[str] = None
    previous_salary: Optional[float] = None
    new_salary: Optional[float] = None
    effective_date: date
    issued_by: str
    issued_date: date
    remarks: Optional[str] = None
    document_path: Optional[str] = None
    created_at: Optional[datetime] = None


class EmployeeDocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    file_url: str = Field(..., min_length=1)
    file_type: str = Field(..., min_length=1)
    file_size: Optional[int] = Field(None, ge=0)
    category: str = "general"
    is_private: bool = False


class EmployeeDocumentResponse(EmployeeDocumentCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_id: int
    created_at: Optional[datetime] = None
