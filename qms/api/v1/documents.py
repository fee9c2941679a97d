"""
QMS Document API Routes
File attachment upload, listing, download and removal
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, STAFF_ROLES, UPLOAD_ROLES, RoleChecker, get_db, success
from qms.core.config import settings
from qms.core.exceptions import ValidationError
from qms.models.auth import User
from qms.models.enums import AttachmentEntity
from qms.schemas.common import ApiResponse
from qms.schemas.document import DocumentResponse
from qms.services.document_service import DocumentService

router = APIRouter()


@router.post("/upload", response_model=ApiResponse[DocumentResponse], status_code=status.HTTP_201_CREATED)
def upload_document(
    entity_type: AttachmentEntity = Form(...),
    entity_id: int = Form(...),
    description: Optional[str] = Form(None),
    file: UploadFile = File(...),
    current_user: User = Depends(RoleChecker(UPLOAD_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Attach a file to a record.

    Files over the size cap or outside the extension and content type
    allow-lists are rejected.
    """
    # One byte past the cap is enough to reject without reading the whole upload
    content = file.file.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB")

    document = DocumentService(db, current_user).upload(
        entity_type,
        entity_id,
        file_name=file.filename,
        content_type=file.content_type,
        content=content,
        description=description,
    )
    return success(document, "Document uploaded successfully")


@router.get("/download/{document_id}")
def download_document(
    document_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    service = DocumentService(db, current_user)
    document = service.get(document_id)
    return FileResponse(
        path=service.file_path(document),
        filename=document.file_name,
        media_type=document.mime_type,
    )


@router.get("/{entity_type}/{entity_id}", response_model=ApiResponse[List[DocumentResponse]])
def list_documents(
    entity_type: AttachmentEntity,
    entity_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    return success(DocumentService(db, current_user).list(entity_type, entity_id))


@router.delete("/{document_id}", response_model=ApiResponse[None])
def delete_document(
    document_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    DocumentService(db, current_user).delete(document_id)
    return success(message="Document deleted successfully")
