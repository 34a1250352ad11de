from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
import enum
from datetime import date


class PostingStatus(str, enum.Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    CLOSED = "Closed"
    FILLED = "Filled"


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, index=True)
    position_title = Column(String(200), index=True, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    job_description = Column(Text, nullable=False)
    qualifications = Column(Text, nullable=False)
    technical_competencies = Column(Text, nullable=True)
    salary_range = Column(String(100), nullable=True)
    employment_type = Column(String(50), nullable=True)
    num_vacancies = Column(Integer, default=1, nullable=False)
    application_deadline = Column(Date, nullable=True)
    posting_status = Column(Enum(PostingStatus, values_callable=lambda e: [m.value for m in e]), default=PostingStatus.DRAFT, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    department = relationship("Department", back_populates="job_postings")
    applications = relationship("JobApplication", back_populates="position")

    @property
    def department_name(self):
        return self.department.department_name if self.department else None

    @property
    def application_count(self) -> int:
        return len(self.applications)

    def is_open(self, today=None) -> bool:
        """Published and not past its application deadline."""
        if self.posting_status != PostingStatus.PUBLISHED:
            return False
        if self.application_deadline is None:
            return True
        return self.application_deadline >= (today or date.today())
