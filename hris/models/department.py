"""
Department Model with Hierarchy Support.
Supports parent-child relationships for organizational structure.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hris.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    department_name = Column(String(150), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Free-text name of the head; not every head has a login
    department_head = Column(String(150), nullable=True)

    # Hierarchy support: parent department for nested structures
    parent_department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    parent = relationship("Department", remote_side=[id], back_populates="children")
    children = relationship("Department", back_populates="parent")
    personnel = relationship("Personnel", back_populates="department")
    job_postings = relationship("JobPosting", back_populates="department")

    def __repr__(self):
        return f"<Department {self.department_name}>"

    @property
    def personnel_count(self) -> int:
        return len(self.personnel)
