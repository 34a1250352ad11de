"""
User account model.
One login per person; role is a single allow-list key checked by require_role.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hris.database import Base


class UserRole(str, enum.Enum):
    """
    Roles understood by the route guards.

    - ADMIN: System administration plus everything HR can do
    - HR: Personnel, leave and recruitment management
    - EMPLOYEE: Self-service (own profile, own leave)
    - APPLICANT: External job portal account
    """
    ADMIN = "Admin"
    HR = "HR"
    EMPLOYEE = "Employee"
    APPLICANT = "Applicant"


class UserStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), default=UserRole.EMPLOYEE, nullable=False)
    status = Column(Enum(UserStatus, values_callable=lambda e: [m.value for m in e]), default=UserStatus.ACTIVE, nullable=False)
    profile_picture = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    personnel = relationship("Personnel", back_populates="user", uselist=False)
    applicant_profile = relationship("JobApplicant", back_populates="user", uselist=False)
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def personnel_id(self):
        return self.personnel.id if self.personnel else None


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    refresh_token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_revoked = Column(Boolean, default=False, nullable=False)

    # Session metadata
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)

    user = relationship("User", back_populates="sessions")
