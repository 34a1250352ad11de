from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hris.core.schemas import ApiResponse
from hris.database import get_db
from hris.models.user import User
from hris.routers.auth_deps import get_current_user
from hris.schemas.personnel import EmployeeDocumentCreate, EmployeeDocumentResponse
from hris.schemas.self_service import MyProfileUpdate
from hris.services import personnel_service

router = APIRouter(
    prefix="/employee-self-service",
    tags=["employee-self-service"]
)


@router.get("/")
def self_service_root(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(message="Employee Self-Service module - API root").to_dict()


@router.get("/my-profile")
def get_my_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(data=personnel_service.my_profile(db, current_user)).to_dict()


@router.put("/my-profile")
def update_my_profile(
    data: MyProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = personnel_service.update_my_profile(db, current_user, data)
    return ApiResponse.ok(data=profile, message="Profile updated successfully").to_dict()


@router.get("/my-documents")
def get_my_documents(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = personnel_service.list_my_documents(db, current_user)
    return ApiResponse.ok(data=[EmployeeDocumentResponse.model_validate(d) for d in rows]).to_dict()


@router.post("/upload-document", status_code=status.HTTP_201_CREATED)
def register_document(
    data: EmployeeDocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Registers a reference to a stored file; the bytes live elsewhere."""
    document = personnel_service.add_my_document(db, current_user, data)
    return ApiResponse.ok(
        data=EmployeeDocumentResponse.model_validate(document), message="Document uploaded successfully"
    ).to_dict()


@router.delete("/documents/{document_id}")
def delete_document(document_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    personnel_service.delete_my_document(db, current_user, document_id)
    return ApiResponse.ok(message="Document deleted successfully").to_dict()
