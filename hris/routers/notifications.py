from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User
from hris.routers.auth_deps import get_current_user
from hris.schemas.notification import NotificationResponse
from hris.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/")
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rows = NotificationService.list_for_user(db, current_user.id, unread_only)
    return ApiResponse.ok(data=[NotificationResponse.model_validate(n) for n in rows]).to_dict()


@router.patch("/{notification_id}/read")
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = NotificationService.mark_read(db, current_user.id, notification_id)
    return ApiResponse.ok(data=NotificationResponse.model_validate(notification)).to_dict()


@router.post("/mark-all-read")
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    updated = NotificationService.mark_all_read(db, current_user.id)
    return ApiResponse.ok(data={"updated": updated}, message="All notifications marked as read").to_dict()
