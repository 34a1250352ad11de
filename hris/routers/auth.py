import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hris.core.config import settings
from hris.core.limiter import limiter
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User
from hris.routers.auth_deps import get_current_user
from hris.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    PasswordChange,
    RefreshTokenRequest,
    RegisterRequest,
    Token,
    UserResponse,
)
from hris.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
def register(request: Request, data: RegisterRequest, db: Session = Depends(get_db)):
    user = user_service.register_employee(db, data)
    token = user_service.access_token_for(user)
    return ApiResponse.ok(
        data={"user": UserResponse.model_validate(user), **token},
        message="Registration successful",
    ).to_dict()


@router.post("/login")
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body instead of OAuth2 form-data for frontend compatibility
    result = user_service.login(
        db,
        login_data.username,
        login_data.password,
        user_agent=request.headers.get("user-agent"),
        ip_address=_client_ip(request),
    )
    token = Token(**{**result, "user": UserResponse.model_validate(result["user"])})
    return ApiResponse.ok(data=token, message="Login successful").to_dict()


@router.post("/refresh-token")
def refresh_token(request: Request, data: RefreshTokenRequest, db: Session = Depends(get_db)):
    tokens = user_service.rotate_refresh_token(
        db,
        data.refresh_token,
        user_agent=request.headers.get("user-agent"),
        ip_address=_client_ip(request),
    )
    return ApiResponse.ok(data=Token(**tokens), message="Token refreshed").to_dict()


@router.post("/logout")
def logout(
    data: LogoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Without a refresh token every open session of the caller is revoked."""
    revoked = user_service.revoke_refresh_token(db, current_user, data.refresh_token)
    return ApiResponse.ok(data={"sessions_revoked": revoked}, message="Successfully logged out").to_dict()


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(data=UserResponse.model_validate(current_user)).to_dict()


@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Securely update current user's password."""
    user_service.change_password(db, current_user, data.current_password, data.new_password)
    return ApiResponse.ok(message="Password updated successfully").to_dict()
