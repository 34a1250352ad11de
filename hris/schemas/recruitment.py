from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import date, datetime
from hris.core.schemas import reject_null
from hris.models.job_posting import PostingStatus
from hris.models.job_application import ApplicationStatus


class JobPostingBase(BaseModel):
    position_title: str = Field(..., min_length=1, max_length=200)
    department_id: int
    job_description: str = Field(..., min_length=1)
    qualifications: str = Field(..., min_length=1)
    technical_competencies: Optional[str] = None
    # Either a catalogue id ("1".."10") or a free-text label
    salary_range: Optional[str] = None
    employment_type: Optional[str] = None
    num_vacancies: int = Field(1, ge=1)
    application_deadline: Optional[date] = None


class JobPostingCreate(JobPostingBase):
    posting_status: PostingStatus = PostingStatus.DRAFT


class JobPostingUpdate(BaseModel):
    position_title: Optional[str] = Field(None, min_length=1, max_length=200)
    department_id: Optional[int] = None
    job_description: Optional[str] = Field(None, min_length=1)
    qualifications: Optional[str] = Field(None, min_length=1)
    technical_competencies: Optional[str] = None
    salary_range: Optional[str] = None
    employment_type: Optional[str] = None
    num_vacancies: Optional[int] = Field(None, ge=1)
    application_deadline: Optional[date] = None
    posting_status: Optional[PostingStatus] = None

    @field_validator(
        "position_title", "department_id", "job_description", "qualifications", "num_vacancies", "posting_status",
        mode="before",
    )
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class JobPostingStatusUpdate(BaseModel):
    posting_status: PostingStatus


class JobPostingResponse(JobPostingBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    department_name: Optional[str] = None
    posting_status: PostingStatus
    created_by: Optional[int] = None
    application_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_type: str
    document_path: str
    uploaded_at: Optional[datetime] = None


class JobApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position_id: int
    position_title: Optional[str] = None
    applicant_id: int
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    cover_letter: Optional[str] = None
    answers: Optional[Any] = None
    remarks: Optional[str] = None
    status: ApplicationStatus
    application_date: Optional[datetime] = None
    withdrawn_date: Optional[datetime] = None
    documents: List[ApplicationDocumentResponse] = []


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    remarks: Optional[str] = None


class SalaryRange(BaseModel):
    id: str
    range: str
    min: int
    max: Optional[int] = None


class RecruitmentDashboard(BaseModel):
    statistics: Dict[str, int]
    recent_applications: List[JobApplicationResponse]
