from sqlalchemy import Column, Integer, String, Date, Float, Enum, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
import enum


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveApplication(Base):
    __tablename__ = "leave_applications"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Float, nullable=False)
    reason = Column(Text, nullable=True)
    supporting_document = Column(String, nullable=True)
    status = Column(Enum(LeaveStatus, values_callable=lambda e: [m.value for m in e]), default=LeaveStatus.PENDING, nullable=False, index=True)
    request_date = Column(DateTime(timezone=True), server_default=func.now())

    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    approval_comments = Column(Text, nullable=True)

    personnel = relationship("Personnel", back_populates="leave_applications")
    leave_type = relationship("LeaveType", back_populates="applications")
    approver = relationship("User", foreign_keys=[approved_by])

    @property
    def leave_type_name(self):
        return self.leave_type.leave_type_name if self.leave_type else None

    @property
    def personnel_name(self):
        return self.personnel.full_name if self.personnel else None

    @property
    def department_name(self):
        return self.personnel.department_name if self.personnel else None
