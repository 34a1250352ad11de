from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hris.database import Base


class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    leave_type_name = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    requires_document = Column(Boolean, default=False, nullable=False)
    max_days = Column(Integer, nullable=True)  # Per application; None means unbounded
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    balances = relationship("LeaveBalance", back_populates="leave_type")
    applications = relationship("LeaveApplication", back_populates="leave_type")
