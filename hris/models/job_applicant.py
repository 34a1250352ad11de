from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base


class JobApplicant(Base):
    __tablename__ = "job_applicants"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    email = Column(String(255), index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    current_employer = Column(String(200), nullable=True)
    highest_education = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="applicant_profile")
    applications = relationship("JobApplication", back_populates="applicant", cascade="all, delete-orphan")

    @property
    def is_profile_complete(self) -> bool:
        return bool(self.first_name and self.last_name and self.email and self.phone)
