"""
Placeholder modules that are mounted but not built yet.
Each answers an authenticated GET / with a "coming soon" envelope.
"""
from fastapi import APIRouter, Depends

from hris.core.schemas import ApiResponse
from hris.models.user import User
from hris.routers.auth_deps import get_current_user

PLACEHOLDER_MODULES = {
    "/payroll": "Payroll Management",
    "/timekeeping": "Timekeeping & Attendance",
    "/performance": "Performance Management",
    "/reports": "Report Generation",
    "/health-wellness": "Health & Wellness",
}


def placeholder_router(prefix: str, title: str) -> APIRouter:
    router = APIRouter(prefix=prefix)

    @router.get("/")
    def module_root(current_user: User = Depends(get_current_user)):
        return ApiResponse.ok(message=f"{title} module - Coming soon").to_dict()

    return router


routers = [placeholder_router(prefix, title) for prefix, title in PLACEHOLDER_MODULES.items()]
