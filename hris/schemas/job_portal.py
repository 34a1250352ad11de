from typing import Any, Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime


class ApplicantRegister(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    phone: Optional[str] = None
    current_employer: Optional[str] = None
    highest_education: Optional[str] = None


class ApplicantLogin(BaseModel):
    email: EmailStr
    password: str


class ApplicantProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    phone: Optional[str] = None
    current_employer: Optional[str] = None
    highest_education: Optional[str] = None


class ApplicantProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    current_employer: Optional[str] = None
    highest_education: Optional[str] = None
    is_profile_complete: bool = False
    created_at: Optional[datetime] = None


class ApplicationStart(BaseModel):
    position_id: int
    cover_letter: Optional[str] = None


class ApplicationDocumentCreate(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=100)
    document_path: str = Field(..., min_length=1)


class ApplicationAnswers(BaseModel):
    answers: Any


class ApplicationEdit(BaseModel):
    cover_letter: Optional[str] = None


class ApplicantNotification(BaseModel):
    applicant_id: int
    message: str = Field(..., min_length=1)
    title: str = "Job Application Update"
    notification_type: str = "Job Application"
