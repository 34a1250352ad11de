from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
import enum


class ApplicationStatus(str, enum.Enum):
    PENDING = "Pending"
    PRE_SCREENING = "Pre_Screening"
    FOR_INTERVIEW = "For_Interview"
    FOR_EXAMINATION = "For_Examination"
    SHORTLISTED = "Shortlisted"
    SELECTED = "Selected"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    HIRED = "Hired"


# Applicants can no longer withdraw or edit once the process has concluded
FINAL_APPLICATION_STATUSES = {ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN, ApplicationStatus.HIRED}


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("position_id", "applicant_id", name="uq_job_application_position_applicant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    position_id = Column(Integer, ForeignKey("job_postings.id"), nullable=False, index=True)
    applicant_id = Column(Integer, ForeignKey("job_applicants.id", ondelete="CASCADE"), nullable=False, index=True)
    cover_letter = Column(Text, nullable=True)
    answers = Column(JSON, nullable=True)
    remarks = Column(Text, nullable=True)
    status = Column(Enum(ApplicationStatus, values_callable=lambda e: [m.value for m in e]), default=ApplicationStatus.PENDING, nullable=False, index=True)
    application_date = Column(DateTime(timezone=True), server_default=func.now())
    withdrawn_date = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    position = relationship("JobPosting", back_populates="applications")
    applicant = relationship("JobApplicant", back_populates="applications")
    documents = relationship("ApplicationDocument", back_populates="application", cascade="all, delete-orphan")

    @property
    def position_title(self):
        return self.position.position_title if self.position else None

    @property
    def applicant_name(self):
        if not self.applicant:
            return None
        return f"{self.applicant.first_name or ''} {self.applicant.last_name or ''}".strip()

    @property
    def applicant_email(self):
        return self.applicant.email if self.applicant else None


class ApplicationDocument(Base):
    __tablename__ = "application_documents"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("job_applications.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(100), nullable=False)
    document_path = Column(String, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())

    application = relationship("JobApplication", back_populates="documents")
