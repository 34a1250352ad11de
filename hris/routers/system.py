"""
System administration endpoints.
Users, roles and audit logs are Admin only; departments are shared with HR.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.pagination import PageParams, page_params
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User, UserRole, UserStatus
from hris.routers.auth_deps import get_current_user, require_admin, require_staff
from hris.schemas.auth import UserResponse
from hris.schemas.department import DepartmentCreate, DepartmentDetail, DepartmentResponse, DepartmentUpdate
from hris.schemas.system import AuditLogResponse, UserCreate, UserPasswordReset, UserRoleAssign, UserUpdate
from hris.services import system_service, user_service

router = APIRouter(
    prefix="/system",
    tags=["system"]
)


@router.get("/")
def system_root(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(message="System Administration module - API root").to_dict()


# ==================== USERS ====================

@router.get("/users")
def list_users(
    params: PageParams = Depends(page_params),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    items, pagination = system_service.list_users(db, params, search, role, status)
    return ApiResponse.ok(
        data=[UserResponse.model_validate(u) for u in items], pagination=pagination
    ).to_dict()


@router.get("/users/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin())):
    return ApiResponse.ok(data=UserResponse.model_validate(user_service.get_user(db, user_id))).to_dict()


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin())):
    user = system_service.create_user(db, data, current_user)
    return ApiResponse.ok(data=UserResponse.model_validate(user), message="User created successfully").to_dict()


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    user = system_service.update_user(db, user_id, data, current_user)
    return ApiResponse.ok(data=UserResponse.model_validate(user), message="User updated successfully").to_dict()


@router.delete("/users/{user_id}")
def disable_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin())):
    user = system_service.disable_user(db, user_id, current_user)
    return ApiResponse.ok(data=UserResponse.model_validate(user), message="User disabled successfully").to_dict()


@router.patch("/users/{user_id}/password")
def reset_password(
    user_id: int,
    data: UserPasswordReset,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    system_service.reset_password(db, user_id, data.new_password, current_user)
    return ApiResponse.ok(message="Password changed successfully").to_dict()


@router.patch("/users/{user_id}/roles")
def assign_role(
    user_id: int,
    data: UserRoleAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    user = system_service.assign_role(db, user_id, data.role, current_user)
    return ApiResponse.ok(data=UserResponse.model_validate(user), message="Role assigned successfully").to_dict()


# ==================== ROLES ====================

@router.get("/roles")
def list_roles(current_user: User = Depends(require_admin())):
    return ApiResponse.ok(data=system_service.list_roles()).to_dict()


# ==================== DEPARTMENTS ====================

@router.get("/departments")
def list_departments(db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = system_service.list_departments(db)
    return ApiResponse.ok(data=[DepartmentResponse.model_validate(d) for d in rows]).to_dict()


@router.get("/departments/{department_id}")
def get_department(department_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    department = system_service.get_department(db, department_id)
    return ApiResponse.ok(data=DepartmentDetail.model_validate(department)).to_dict()


@router.post("/departments", status_code=status.HTTP_201_CREATED)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    department = system_service.create_department(db, data, current_user)
    return ApiResponse.ok(
        data=DepartmentResponse.model_validate(department), message="Department created successfully"
    ).to_dict()


@router.put("/departments/{department_id}")
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    department = system_service.update_department(db, department_id, data, current_user)
    return ApiResponse.ok(
        data=DepartmentResponse.model_validate(department), message="Department updated successfully"
    ).to_dict()


@router.delete("/departments/{department_id}")
def delete_department(department_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    system_service.delete_department(db, department_id, current_user)
    return ApiResponse.ok(message="Department deleted successfully").to_dict()


# ==================== AUDIT LOGS ====================

@router.get("/audit-logs")
def list_audit_logs(
    params: PageParams = Depends(page_params),
    user_id: Optional[int] = None,
    action: Optional[str] = Query(None, description="Filter by action name"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g. 'leave_application')"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """
    Get audit logs. READ-ONLY.
    """
    items, pagination = system_service.list_audit_logs(
        db, params, user_id, action, entity_type, start_date, end_date
    )
    return ApiResponse.ok(
        data=[AuditLogResponse.model_validate(entry) for entry in items], pagination=pagination
    ).to_dict()


@router.get("/audit-logs/{log_id}")
def get_audit_log(log_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin())):
    return ApiResponse.ok(data=AuditLogResponse.model_validate(system_service.get_audit_log(db, log_id))).to_dict()
