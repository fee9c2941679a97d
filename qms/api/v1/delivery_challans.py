"""
QMS Delivery Challan API Routes
Dispatch notes for purchase orders
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    CHALLAN_WRITE_ROLES, PROCUREMENT_APPROVAL_ROLES, STAFF_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import DeliveryChallanStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.delivery_challan import (
    DeliveryChallanCreate, DeliveryChallanDetail, DeliveryChallanResponse, DeliveryChallanStatusUpdate
)
from qms.services.purchasing.delivery_challans import DeliveryChallanService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[DeliveryChallanResponse]])
def list_delivery_challans(
    status_filter: Optional[DeliveryChallanStatus] = Query(None, alias="status"),
    purchase_order_id: Optional[int] = None,
    search: Optional[str] = Query(None, description="Challan number or contact person"),
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    page = DeliveryChallanService(db, current_user).list(
        params, status=status_filter, purchase_order_id=purchase_order_id, search=search
    )
    return success(page)


@router.get("/{challan_id}", response_model=ApiResponse[DeliveryChallanDetail])
def get_delivery_challan(
    challan_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    """Challan with its purchase order and attachments"""
    return success(DeliveryChallanService(db, current_user).detail(challan_id))


@router.post("", response_model=ApiResponse[DeliveryChallanResponse], status_code=status.HTTP_201_CREATED)
def create_delivery_challan(
    challan_in: DeliveryChallanCreate,
    current_user: User = Depends(RoleChecker(CHALLAN_WRITE_ROLES)),
    db: Session = Depends(get_db),
):
    challan = DeliveryChallanService(db, current_user).create(challan_in)
    return success(challan, f"Delivery challan {challan.challan_number} created successfully")


@router.patch("/{challan_id}/status", response_model=ApiResponse[DeliveryChallanResponse])
def update_delivery_challan_status(
    challan_id: int,
    status_in: DeliveryChallanStatusUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    challan = DeliveryChallanService(db, current_user).set_status(
        challan_id, status_in.status, delivery_date=status_in.delivery_date
    )
    return success(challan, "Delivery challan status updated successfully")
