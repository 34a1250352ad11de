from fastapi import APIRouter
from hris.routers import (
    auth, personnel, leave, job_portal, recruitment, system,
    self_service, notifications, stubs
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(personnel.router, tags=["Personnel"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(job_portal.router, tags=["Job Portal"])
api_router.include_router(recruitment.router, tags=["Recruitment"])
api_router.include_router(system.router, tags=["System Administration"])
api_router.include_router(self_service.router, tags=["Employee Self-Service"])
api_router.include_router(notifications.router, tags=["Notifications"])
for placeholder in stubs.routers:
    api_router.include_router(placeholder, tags=["Coming Soon"])
