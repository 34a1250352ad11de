from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base


class LeaveBalance(Base):
    """
    Credit ledger row for one (personnel, leave type, year).

    used_credits only moves when an application is approved; total_credits
    only moves through initialization or a LeaveAdjustment.
    """
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("personnel_id", "leave_type_id", "year", name="uq_leave_balance_personnel_type_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    personnel_id = Column(Integer, ForeignKey("personnel.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    total_credits = Column(Float, nullable=False, default=0.0)
    used_credits = Column(Float, nullable=False, default=0.0)
    earned_credits = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    personnel = relationship("Personnel", back_populates="leave_balances")
    leave_type = relationship("LeaveType", back_populates="balances")

    @property
    def remaining_credits(self) -> float:
        return (self.total_credits or 0.0) - (self.used_credits or 0.0)

    @property
    def leave_type_name(self):
        return self.leave_type.leave_type_name if self.leave_type else None
