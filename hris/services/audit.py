import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy.orm import Session

from hris.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def _sanitize(obj: Any) -> Any:
    """Make nested pydantic models, enums and dates JSON-column safe."""
    if hasattr(obj, "model_dump"):
        return _sanitize(obj.model_dump())
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    return obj


class AuditService:
    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[Any],
        details: Optional[dict] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """
        Create an audit log entry in the caller's session.
        Strictly append-only. Nothing is committed here so the entry
        shares the fate of the action it describes.
        """
        db_log = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            user_role=_sanitize(user_role),
            details=_sanitize(details),
            before_state=_sanitize(before_state),
            after_state=_sanitize(after_state),
            ip_address=ip_address,
        )
        self.db.add(db_log)
        try:
            self.db.flush()
        except Exception as e:
            logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            raise
        return db_log

    @staticmethod
    def log(db: Session, *args, **kwargs) -> AuditLog:
        return AuditService(db).log_action(*args, **kwargs)
