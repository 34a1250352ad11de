from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from hris.core.schemas import reject_null


class DepartmentBase(BaseModel):
    department_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    department_head: Optional[str] = None
    parent_department_id: Optional[int] = None


class DepartmentCreate(DepartmentBase):
    pass


class DepartmentUpdate(BaseModel):
    department_name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    department_head: Optional[str] = None
    parent_department_id: Optional[int] = None

    @field_validator("department_name", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class DepartmentResponse(DepartmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    personnel_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DepartmentMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    designation: Optional[str] = None
    employment_type: Optional[str] = None


class DepartmentDetail(DepartmentResponse):
    personnel: List[DepartmentMember] = []
