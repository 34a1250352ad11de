# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, department, personnel,
    leave_type, leave_balance, leave_application, leave_adjustment, leave_monetization,
    job_posting, job_applicant, job_application,
    audit_log, notification
)

# Explicit class exports for cleaner imports
from .user import User, UserRole, UserStatus, UserSession
from .department import Department
from .personnel import (
    Personnel, EmploymentHistory, MeritViolation, AdministrativeCase,
    PersonnelMovement, EmployeeDocument,
)
from .leave_type import LeaveType
from .leave_balance import LeaveBalance
from .leave_application import LeaveApplication, LeaveStatus
from .leave_adjustment import LeaveAdjustment, AdjustmentType
from .leave_monetization import LeaveMonetization
from .job_posting import JobPosting, PostingStatus
from .job_applicant import JobApplicant
from .job_application import JobApplication, ApplicationDocument, ApplicationStatus
from .audit_log import AuditLog
from .notification import Notification

__all__ = [
    "User", "UserRole", "UserStatus", "UserSession",
    "Department",
    "Personnel", "EmploymentHistory", "MeritViolation", "AdministrativeCase",
    "PersonnelMovement", "EmployeeDocument",
    "LeaveType", "LeaveBalance", "LeaveApplication", "LeaveStatus",
    "LeaveAdjustment", "AdjustmentType", "LeaveMonetization",
    "JobPosting", "PostingStatus", "JobApplicant",
    "JobApplication", "ApplicationDocument", "ApplicationStatus",
    "AuditLog", "Notification",
]
