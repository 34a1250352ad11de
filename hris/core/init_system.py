import logging

from sqlalchemy.exc import SQLAlchemyError

from hris.core.config import settings
from hris.database import SessionLocal
from hris.models.leave_type import LeaveType
from hris.models.user import User, UserRole, UserStatus
from hris.services import auth as auth_service

logger = logging.getLogger(__name__)

# name -> (max_days, description)
DEFAULT_LEAVE_TYPES = {
    "Vacation Leave": (15, "Annual vacation leave"),
    "Sick Leave": (15, "Medical leave"),
    "Maternity Leave": (105, "Maternity leave"),
    "Paternity Leave": (7, "Paternity leave"),
    "Personal Leave": (3, "Personal leave"),
}


def ensure_default_admin(db) -> bool:
    bootstrap = settings.bootstrap
    existing = db.query(User).filter(
        (User.username == bootstrap.admin_username) | (User.email == bootstrap.admin_email.lower())
    ).first()
    if existing:
        return False
    db.add(User(
        username=bootstrap.admin_username,
        email=bootstrap.admin_email.lower(),
        hashed_password=auth_service.get_password_hash(bootstrap.admin_password),
        role=UserRole.ADMIN,
        status=UserStatus.ACTIVE,
    ))
    logger.info(f"Created default Admin: {bootstrap.admin_username} (change the password immediately)")
    return True


def ensure_default_leave_types(db) -> int:
    existing = {name for (name,) in db.query(LeaveType.leave_type_name).all()}
    created = 0
    for name, (max_days, description) in DEFAULT_LEAVE_TYPES.items():
        if name in existing:
            continue
        db.add(LeaveType(
            leave_type_name=name,
            description=description,
            max_days=max_days,
            is_active=True,
        ))
        created += 1
    return created


def init_system_data():
    """
    Creates the default admin account and the standard leave types when
    they are missing. Safe to run on every start.
    """
    if not settings.bootstrap.enabled:
        logger.info("System bootstrap disabled (BOOTSTRAP_DATA=false)")
        return

    db = SessionLocal()
    try:
        admin_created = ensure_default_admin(db)
        leave_types_created = ensure_default_leave_types(db)
        db.commit()
        logger.info(
            "System bootstrap complete",
            extra={"admin_created": admin_created, "leave_types_created": leave_types_created},
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error during system initialization: {str(e)}", exc_info=True)
        raise
    finally:
        db.close()
