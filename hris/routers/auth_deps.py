"""
Role-based access dependencies.
Resolve the bearer token to a user and gate endpoints on an allow-list of roles.
"""
import logging
from typing import Callable, List

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from hris.core.exceptions import AccessDeniedError
from hris.database import get_db
from hris.models.user import User, UserRole
from hris.schemas.auth import TokenData
from hris.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the current user from the JWT token.
    """
    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise _unauthorized("Could not validate credentials")

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise _unauthorized("TOKEN_EXPIRED")

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise _unauthorized("Invalid token type")

    try:
        token_data = TokenData(
            user_id=int(payload.get("sub")),
            username=payload.get("username"),
            role=payload.get("role"),
        )
    except (TypeError, ValueError):
        logger.warning("Authentication failed: Missing or malformed subject in token")
        raise _unauthorized("Could not validate credentials")

    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        logger.warning(f"Authentication failed: User {token_data.user_id} not found in database")
        raise _unauthorized("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: User {user.username} is inactive")
        raise _unauthorized("User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise AccessDeniedError(f"Access denied. Required roles: {[r.value for r in allowed_roles]}")
        return current_user
    return role_checker


def require_staff():
    """Shorthand for Admin or HR."""
    return require_role([UserRole.ADMIN, UserRole.HR])


def require_admin():
    """Shorthand for requiring the Admin role only."""
    return require_role([UserRole.ADMIN])


def require_applicant():
    return require_role([UserRole.APPLICANT])
