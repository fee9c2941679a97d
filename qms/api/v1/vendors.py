"""
QMS Vendor API Routes
Vendor management endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, PROCUREMENT_ROLES, RoleChecker, get_cursor_params, get_db, success
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import PartyStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.party import VendorCreate, VendorResponse, VendorUpdate
from qms.services.party_service import VendorService

router = APIRouter()

VENDOR_READ_ROLES = ["admin", "procurement", "finance", "sales", "auditor"]


@router.get("", response_model=ApiResponse[CursorPageSchema[VendorResponse]])
def list_vendors(
    status_filter: Optional[PartyStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(VENDOR_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = VendorService(db, current_user).list(params, status=status_filter, search=search)
    return success(page)


@router.get("/{vendor_id}", response_model=ApiResponse[VendorResponse])
def get_vendor(
    vendor_id: int,
    current_user: User = Depends(RoleChecker(VENDOR_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(VendorService(db, current_user).get(vendor_id))


@router.post("", response_model=ApiResponse[VendorResponse], status_code=status.HTTP_201_CREATED)
def create_vendor(
    vendor_in: VendorCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    vendor = VendorService(db, current_user).create(vendor_in)
    return success(vendor, "Vendor created successfully")


@router.put("/{vendor_id}", response_model=ApiResponse[VendorResponse])
def update_vendor(
    vendor_id: int,
    vendor_in: VendorUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    vendor = VendorService(db, current_user).update(vendor_id, vendor_in)
    return success(vendor, "Vendor updated successfully")


@router.delete("/{vendor_id}", response_model=ApiResponse[None])
def delete_vendor(
    vendor_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    VendorService(db, current_user).delete(vendor_id)
    return success(message="Vendor deleted successfully")
