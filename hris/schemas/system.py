from typing import Any, Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from hris.models.user import UserRole, UserStatus


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str
    role: UserRole = UserRole.EMPLOYEE
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    status: Optional[UserStatus] = None
    profile_picture: Optional[str] = None


class UserPasswordReset(BaseModel):
    new_password: str


class UserRoleAssign(BaseModel):
    role: UserRole


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_role: Optional[str] = None
    details: Optional[Any] = None
    before_state: Optional[Any] = None
    after_state: Optional[Any] = None
    ip_address: Optional[str] = None
    timestamp: Optional[datetime] = None
