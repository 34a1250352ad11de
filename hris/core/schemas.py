from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class FieldError(BaseModel):
    field: str
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope: {success, data|error, message} plus optional pagination."""

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None
    errors: Optional[List[FieldError]] = None
    details: Optional[Dict[str, Any]] = None
    pagination: Optional[Pagination] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values; unset envelope keys are dropped."""
        payload = self.model_dump(mode="json")
        return {k: v for k, v in payload.items() if v is not None or (k == "data" and self.success)}

    @classmethod
    def ok(
        cls,
        data: Optional[T] = None,
        message: Optional[str] = None,
        pagination: Optional[Pagination] = None,
    ) -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message, pagination=pagination)

    @classmethod
    def fail(
        cls,
        message: str,
        code: str = "ERROR",
        errors: Optional[List[Dict[str, str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ApiResponse[T]":
        return cls(
            success=False,
            message=message,
            error=code,
            errors=[FieldError(**e) for e in errors] if errors else None,
            details=details or None,
        )


def reject_null(value: Any) -> Any:
    """Partial updates may omit a required column but never clear it."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
