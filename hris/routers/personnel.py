"""
Personnel management (staff only): the 201 file and its sub-records.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hris.core.pagination import PageParams, page_params
from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User, UserStatus
from hris.routers.auth_deps import require_staff
from hris.schemas.personnel import (
    AdministrativeCaseCreate,
    AdministrativeCaseResponse,
    EmployeeDocumentCreate,
    EmployeeDocumentResponse,
    EmploymentHistoryCreate,
    EmploymentHistoryResponse,
    MembershipData,
    MeritViolationCreate,
    MeritViolationResponse,
    PersonnelCreate,
    PersonnelMovementCreate,
    PersonnelMovementResponse,
    PersonnelResponse,
    PersonnelUpdate,
)
from hris.services import personnel_service

router = APIRouter(
    prefix="/personnel",
    tags=["personnel"],
)


def _many(schema, rows):
    return [schema.model_validate(r) for r in rows]


@router.get("")
def list_personnel(
    params: PageParams = Depends(page_params),
    search: Optional[str] = Query(None, description="Matches names and designation"),
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    items, pagination = personnel_service.list_personnel(db, params, search, department_id, status)
    return ApiResponse.ok(data=_many(PersonnelResponse, items), pagination=pagination).to_dict()


# Fixed paths are declared before /{personnel_id}
@router.get("/stats")
def personnel_stats(db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    return ApiResponse.ok(data=personnel_service.personnel_stats(db)).to_dict()


@router.get("/dashboard-employees")
def dashboard_employees(
    params: PageParams = Depends(page_params),
    search: Optional[str] = None,
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    cards, pagination = personnel_service.dashboard_employees(db, params, search, department_id, status)
    return ApiResponse.ok(data=cards, pagination=pagination).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_personnel(
    data: PersonnelCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    personnel = personnel_service.create_personnel(db, data, current_user)
    return ApiResponse.ok(
        data=PersonnelResponse.model_validate(personnel), message="Personnel created successfully"
    ).to_dict()


@router.get("/{personnel_id}")
def get_personnel(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    personnel = personnel_service.get_personnel(db, personnel_id)
    return ApiResponse.ok(data=PersonnelResponse.model_validate(personnel)).to_dict()


@router.put("/{personnel_id}")
def update_personnel(
    personnel_id: int,
    data: PersonnelUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    personnel = personnel_service.update_personnel(db, personnel_id, data, current_user)
    return ApiResponse.ok(
        data=PersonnelResponse.model_validate(personnel), message="Personnel updated successfully"
    ).to_dict()


@router.delete("/{personnel_id}")
def delete_personnel(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    personnel_service.delete_personnel(db, personnel_id, current_user)
    return ApiResponse.ok(message="Personnel deleted successfully").to_dict()


# --- Membership data (government IDs) ---

@router.get("/{personnel_id}/membership-data")
def get_membership(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    return ApiResponse.ok(data=personnel_service.get_membership_data(db, personnel_id)).to_dict()


@router.patch("/{personnel_id}/membership-data")
def update_membership(
    personnel_id: int,
    data: MembershipData,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    membership = personnel_service.update_membership_data(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=membership, message="Membership data updated").to_dict()


# --- Sub-records ---

@router.get("/{personnel_id}/employment-history")
def list_employment_history(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = personnel_service.list_employment_history(db, personnel_id)
    return ApiResponse.ok(data=_many(EmploymentHistoryResponse, rows)).to_dict()


@router.post("/{personnel_id}/employment-history", status_code=status.HTTP_201_CREATED)
def add_employment_history(
    personnel_id: int,
    data: EmploymentHistoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    record = personnel_service.add_employment_history(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=EmploymentHistoryResponse.model_validate(record)).to_dict()


@router.get("/{personnel_id}/merits-violations")
def list_merits_violations(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = personnel_service.list_merits_violations(db, personnel_id)
    return ApiResponse.ok(data=_many(MeritViolationResponse, rows)).to_dict()


@router.post("/{personnel_id}/merits-violations", status_code=status.HTTP_201_CREATED)
def add_merit_violation(
    personnel_id: int,
    data: MeritViolationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    record = personnel_service.add_merit_violation(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=MeritViolationResponse.model_validate(record)).to_dict()


@router.get("/{personnel_id}/admin-cases")
def list_administrative_cases(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = personnel_service.list_administrative_cases(db, personnel_id)
    return ApiResponse.ok(data=_many(AdministrativeCaseResponse, rows)).to_dict()


@router.post("/{personnel_id}/admin-cases", status_code=status.HTTP_201_CREATED)
def add_administrative_case(
    personnel_id: int,
    data: AdministrativeCaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    record = personnel_service.add_administrative_case(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=AdministrativeCaseResponse.model_validate(record)).to_dict()


@router.get("/{personnel_id}/movements")
def list_movements(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = personnel_service.list_movements(db, personnel_id)
    return ApiResponse.ok(data=_many(PersonnelMovementResponse, rows)).to_dict()


@router.post("/{personnel_id}/movements", status_code=status.HTTP_201_CREATED)
def add_movement(
    personnel_id: int,
    data: PersonnelMovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    """Records a promotion/transfer; with apply_to_record the 201 file is updated too."""
    record = personnel_service.add_movement(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=PersonnelMovementResponse.model_validate(record)).to_dict()


@router.get("/{personnel_id}/documents")
def list_documents(personnel_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff())):
    rows = personnel_service.list_documents(db, personnel_id)
    return ApiResponse.ok(data=_many(EmployeeDocumentResponse, rows)).to_dict()


@router.post("/{personnel_id}/documents", status_code=status.HTTP_201_CREATED)
def add_document(
    personnel_id: int,
    data: EmployeeDocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    record = personnel_service.add_document(db, personnel_id, data, current_user)
    return ApiResponse.ok(data=EmployeeDocumentResponse.model_validate(record), message="Document registered").to_dict()
