from typing import List, Optional

from sqlalchemy.orm import Session

from hris.core.exceptions import NotFoundError
from hris.models.notification import Notification


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        notification_type: str = "info",
        link: Optional[str] = None,
        commit: bool = True,
    ) -> Notification:
        """
        Internal utility for creating notifications.
        Pass commit=False to fold the notification into a larger transaction.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            link=link,
        )
        db.add(notification)
        if commit:
            db.commit()
            db.refresh(notification)
        return notification

    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        updated = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        ).update({Notification.is_read: True}, synchronize_session="fetch")
        db.commit()
        return updated
