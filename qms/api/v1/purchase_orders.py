"""
QMS Purchase Order API Routes
Purchase order maintenance, approval and goods receipt
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    ADMIN_ONLY, PROCUREMENT_APPROVAL_ROLES, PROCUREMENT_ROLES, STAFF_ROLES, RoleChecker, get_cursor_params, get_db,
    success,
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import PurchaseOrderStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.purchase_order import (
    PurchaseOrderCreate, PurchaseOrderListItem, PurchaseOrderReceive, PurchaseOrderResponse,
    PurchaseOrderStatusUpdate, PurchaseOrderUpdate,
)
from qms.services.purchasing.purchase_orders import PurchaseOrderService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[PurchaseOrderListItem]])
def list_purchase_orders(
    status_filter: Optional[PurchaseOrderStatus] = Query(None, alias="status"),
    vendor_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    page = PurchaseOrderService(db, current_user).list(
        params, status=status_filter, vendor_id=vendor_id, date_from=date_from, date_to=date_to
    )
    return success(page)


@router.get("/{po_id}", response_model=ApiResponse[PurchaseOrderResponse])
def get_purchase_order(
    po_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    return success(PurchaseOrderService(db, current_user).get(po_id))


@router.post("", response_model=ApiResponse[PurchaseOrderResponse], status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po_in: PurchaseOrderCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    po = PurchaseOrderService(db, current_user).create(po_in)
    return success(po, f"Purchase order {po.po_number} created successfully")


@router.patch("/{po_id}", response_model=ApiResponse[PurchaseOrderResponse])
def update_purchase_order(
    po_id: int,
    po_in: PurchaseOrderUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    """Update header fields; a new items list replaces the existing items"""
    po = PurchaseOrderService(db, current_user).update(po_id, po_in)
    return success(po, "Purchase order updated successfully")


@router.patch("/{po_id}/status", response_model=ApiResponse[PurchaseOrderResponse])
def update_purchase_order_status(
    po_id: int,
    status_in: PurchaseOrderStatusUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    po = PurchaseOrderService(db, current_user).set_status(po_id, status_in.status)
    return success(po, f"Purchase order status updated to {po.status}")


@router.post("/{po_id}/receive", response_model=ApiResponse[PurchaseOrderResponse])
def receive_purchase_order(
    po_id: int,
    receipt_in: PurchaseOrderReceive,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    """Book received goods into stock"""
    po = PurchaseOrderService(db, current_user).receive(po_id, receipt_in)
    return success(po, "Goods received successfully")


@router.delete("/{po_id}", response_model=ApiResponse[None])
def delete_purchase_order(
    po_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    PurchaseOrderService(db, current_user).delete(po_id)
    return success(message="Purchase order deleted successfully")
