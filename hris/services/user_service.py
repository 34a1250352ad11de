"""
Account lifecycle: creation, credential checks and refresh-token sessions.
Shared by the auth, job-portal and system-administration routers.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hris.core.exceptions import AuthenticationError, BusinessRuleError, ConflictError, NotFoundError, ValidationError
from hris.core.security import password_policy_errors
from hris.models.personnel import Personnel
from hris.models.user import User, UserRole, UserSession, UserStatus
from hris.services import auth as auth_service
from hris.services.audit import AuditService

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def check_password_policy(password: str, field: str = "password") -> None:
    problems = password_policy_errors(password)
    if problems:
        raise ValidationError(
            "Password does not meet the security policy",
            [{"field": field, "message": p} for p in problems],
        )


def ensure_unique_identity(
    db: Session,
    username: Optional[str] = None,
    email: Optional[str] = None,
    exclude_user_id: Optional[int] = None,
) -> None:
    conditions = []
    if username:
        conditions.append(func.lower(User.username) == username.lower())
    if email:
        conditions.append(func.lower(User.email) == email.lower())
    if not conditions:
        return
    query = db.query(User).filter(or_(*conditions))
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Username or email already exists")


def build_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.EMPLOYEE,
    status: UserStatus = UserStatus.ACTIVE,
) -> User:
    """
    Validate and stage a new account in the session without committing,
    so callers can attach a profile in the same transaction.
    """
    check_password_policy(password)
    ensure_unique_identity(db, username=username, email=email)
    user = User(
        username=username,
        email=email.lower(),
        hashed_password=auth_service.get_password_hash(password),
        role=role,
        status=status,
    )
    db.add(user)
    db.flush()
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def authenticate(db: Session, identifier: str, password: str, request_ip: Optional[str] = None) -> User:
    """Resolve a username or email plus password to an active user."""
    user = db.query(User).filter(
        or_(User.username == identifier, func.lower(User.email) == identifier.lower())
    ).first()
    if not user or not auth_service.verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for '{identifier}'")
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=user.id if user else None,
            user_id=None,
            user_role=None,
            details={"identifier": identifier, "reason": "invalid_credentials"},
            ip_address=request_ip,
        )
        db.commit()
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is inactive")
    return user


def _token_claims(user: User) -> Dict[str, Any]:
    return {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role.value,
    }


def issue_tokens(
    db: Session,
    user: User,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Dict[str, Any]:
    """Mint an access/refresh pair and persist the refresh token as a session."""
    access_token = auth_service.create_access_token(data=_token_claims(user))
    refresh_token = auth_service.create_refresh_token(data={"sub": str(user.id)})
    db.add(UserSession(
        user_id=user.id,
        refresh_token=refresh_token,
        expires_at=auth_service.refresh_token_expiry(),
        user_agent=user_agent,
        ip_address=ip_address,
    ))
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": auth_service.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def access_token_for(user: User) -> Dict[str, Any]:
    return {
        "access_token": auth_service.create_access_token(data=_token_claims(user)),
        "token_type": "bearer",
        "expires_in": auth_service.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def login(
    db: Session,
    identifier: str,
    password: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Dict[str, Any]:
    user = authenticate(db, identifier, password, ip_address)
    tokens = issue_tokens(db, user, user_agent, ip_address)
    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        ip_address=ip_address,
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    return {**tokens, "user": user}


def rotate_refresh_token(
    db: Session,
    refresh_token: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Dict[str, Any]:
    """Revoke the presented refresh token and hand out a fresh pair."""
    payload = auth_service.decode_refresh_token(refresh_token)
    if payload is None or payload.get("error") or payload.get("type") != "refresh":
        raise AuthenticationError("Invalid refresh token")

    session = db.query(UserSession).filter(
        UserSession.refresh_token == refresh_token,
        UserSession.is_revoked.is_(False),
    ).first()
    if not session or _as_utc(session.expires_at) <= datetime.now(timezone.utc):
        raise AuthenticationError("Session expired or revoked")

    user = session.user
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    session.is_revoked = True
    tokens = issue_tokens(db, user, user_agent, ip_address)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return tokens


def revoke_refresh_token(db: Session, user: User, refresh_token: Optional[str] = None) -> int:
    """
    Revoke one refresh token, or every open session of the user when no
    token is given. Returns the number of sessions revoked.
    """
    query = db.query(UserSession).filter(
        UserSession.user_id == user.id,
        UserSession.is_revoked.is_(False),
    )
    if refresh_token:
        query = query.filter(UserSession.refresh_token == refresh_token)
    revoked = query.update({UserSession.is_revoked: True}, synchronize_session="fetch")
    AuditService.log(
        db,
        action="logout",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"sessions_revoked": revoked},
    )
    db.commit()
    return revoked


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not auth_service.verify_password(current_password, user.hashed_password):
        raise BusinessRuleError("Current password is incorrect")
    check_password_policy(new_password, field="new_password")
    user.hashed_password = auth_service.get_password_hash(new_password)
    AuditService.log(
        db,
        action="change_password",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"status": "success"},
    )
    db.commit()


def register_employee(db: Session, data) -> User:
    """Self-registration: an Employee account plus a blank personnel profile."""
    user = build_user(db, data.username, data.email, data.password, role=UserRole.EMPLOYEE)
    db.add(Personnel(
        user_id=user.id,
        first_name=data.first_name or "",
        last_name=data.last_name or "",
        middle_name=data.middle_name,
        employment_type="Regular",
        salary=0.0,
    ))
    AuditService.log(
        db,
        action="register",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"username": user.username, "email": user.email},
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info(f"Registered employee account {user.username}")
    return user
