from sqlalchemy import Column, Integer, Float, Enum, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
from hris.models.leave_application import LeaveStatus


class LeaveMonetization(Base):
    """Request to convert unused leave days to cash."""
    __tablename__ = "leave_monetizations"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False)
    days_to_monetize = Column(Float, nullable=False)
    amount = Column(Float, nullable=True)
    status = Column(Enum(LeaveStatus, values_callable=lambda e: [m.value for m in e]), default=LeaveStatus.PENDING, nullable=False, index=True)
    request_date = Column(DateTime(timezone=True), server_default=func.now())
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)

    personnel = relationship("Personnel", back_populates="leave_monetizations")
    leave_type = relationship("LeaveType")
    approver = relationship("User", foreign_keys=[approved_by])

    @property
    def leave_type_name(self):
        return self.leave_type.leave_type_name if self.leave_type else None

    @property
    def personnel_name(self):
        return self.personnel.full_name if self.personnel else None
