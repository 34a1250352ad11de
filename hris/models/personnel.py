"""
Personnel (HR profile) and its record-keeping sub-tables.
"""
from sqlalchemy import Column, Integer, String, Date, Float, DateTime, ForeignKey, Text, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hris.database import Base
from hris.models.types import EncryptedString


class Personnel(Base):
    __tablename__ = "personnel"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    first_name = Column(String(100), nullable=False, index=True)
    last_name = Column(String(100), nullable=False, index=True)
    middle_name = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    civil_status = Column(String(30), nullable=True)
    contact_number = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    designation = Column(String(150), nullable=True)
    employment_type = Column(String(50), nullable=False, default="Regular")
    date_hired = Column(Date, nullable=True)
    salary = Column(Float, nullable=False, default=0.0)

    # Government membership numbers, encrypted at rest
    gsis_number = Column(EncryptedString, nullable=True)
    pagibig_number = Column(EncryptedString, nullable=True)
    philhealth_number = Column(EncryptedString, nullable=True)
    sss_number = Column(EncryptedString, nullable=True)
    tin_number = Column(EncryptedString, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="personnel")
    department = relationship("Department", back_populates="personnel")
    leave_balances = relationship("LeaveBalance", back_populates="personnel", cascade="all, delete-orphan")
    leave_applications = relationship("LeaveApplication", back_populates="personnel", cascade="all, delete-orphan")
    leave_adjustments = relationship("LeaveAdjustment", back_populates="personnel", cascade="all, delete-orphan")
    leave_monetizations = relationship("LeaveMonetization", back_populates="personnel", cascade="all, delete-orphan")
    employment_history = relationship("EmploymentHistory", back_populates="personnel", cascade="all, delete-orphan")
    merits_violations = relationship("MeritViolation", back_populates="personnel", cascade="all, delete-orphan")
    administrative_cases = relationship("AdministrativeCase", back_populates="personnel", cascade="all, delete-orphan")
    movements = relationship("PersonnelMovement", back_populates="personnel", cascade="all, delete-orphan")
    documents = relationship("EmployeeDocument", back_populates="personnel", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Personnel {self.last_name}, {self.first_name}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def department_name(self):
        return self.department.department_name if self.department else None

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def status(self):
        return self.user.status if self.user else None


class EmploymentHistory(Base):
    __tablename__ = "employment_history"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    organization = Column(String(200), nullable=False)
    position = Column(String(150), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    employment_type = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="employment_history")


class MeritViolation(Base):
    __tablename__ = "merits_violations"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    record_type = Column(String(20), nullable=False)  # "Merit" | "Violation"
    description = Column(Text, nullable=False)
    date_recorded = Column(Date, nullable=False)
    documented_by = Column(String(150), nullable=False)
    document_path = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="merits_violations")


class AdministrativeCase(Base):
    __tablename__ = "administrative_cases"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    case_title = Column(String(200), nullable=False)
    case_description = Column(Text, nullable=False)
    case_status = Column(String(30), nullable=False, default="Open")
    date_filed = Column(Date, nullable=False)
    filed_by = Column(String(150), nullable=False)
    document_path = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="administrative_cases")


class PersonnelMovement(Base):
    """Promotion, transfer, reassignment or similar change of post."""
    __tablename__ = "personnel_movements"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type = Column(String(50), nullable=False)
    previous_department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    new_department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    previous_designation = Column(String(150), nullable=True)
    new_designation = Column(String(150), nullable=True)
    previous_salary = Column(Float, nullable=True)
    new_salary = Column(Float, nullable=True)
    effective_date = Column(Date, nullable=False)
    issued_by = Column(String(150), nullable=False)
    issued_date = Column(Date, nullable=False)
    remarks = Column(Text, nullable=True)
    document_path = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="movements")


class EmployeeDocument(Base):
    __tablename__ = "employee_documents"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String, nullable=False)
    file_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=True)
    category = Column(String(50), nullable=False, default="general")
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="documents")
