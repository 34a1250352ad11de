from sqlalchemy import Column, Integer, Float, Enum, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base
import enum


class AdjustmentType(str, enum.Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class LeaveAdjustment(Base):
    """Append-only audit record of a manual change to a balance's total_credits."""
    __tablename__ = "leave_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    adjustment_type = Column(Enum(AdjustmentType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    adjustment_amount = Column(Float, nullable=False)
    reason = Column(Text, nullable=False)
    previous_balance = Column(Float, nullable=False)
    new_balance = Column(Float, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    personnel = relationship("Personnel", back_populates="leave_adjustments")
    leave_type = relationship("LeaveType")
    created_by_user = relationship("User", foreign_keys=[created_by])

    @property
    def created_by_username(self) -> str:
        return self.created_by_user.username if self.created_by_user else None

    @property
    def leave_type_name(self):
        return self.leave_type.leave_type_name if self.leave_type else None

    @property
    def personnel_name(self):
        return self.personnel.full_name if self.personnel else None
