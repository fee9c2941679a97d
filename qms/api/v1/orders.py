"""
QMS Sales Order API Routes
Sales orders and the delivery workflow
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    ADMIN_ONLY, DELIVERY_ROLES, SALES_ROLES, STAFF_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import SalesOrderStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.sales_order import (
    DeliveryStatusResult, DeliveryStatusUpdate, SalesOrderCreate, SalesOrderListItem, SalesOrderResponse
)
from qms.services.sales.sales_orders import SalesOrderService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[SalesOrderListItem]])
def list_orders(
    status_filter: Optional[SalesOrderStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STAFF_ROLES + ["logistics"])),
    db: Session = Depends(get_db),
):
    page = SalesOrderService(db, current_user).list(
        params, status=status_filter, customer_id=customer_id, date_from=date_from, date_to=date_to
    )
    return success(page)


@router.get("/{order_id}", response_model=ApiResponse[SalesOrderResponse])
def get_order(
    order_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES + ["logistics"])),
    db: Session = Depends(get_db),
):
    return success(SalesOrderService(db, current_user).get(order_id))


@router.post("", response_model=ApiResponse[SalesOrderResponse], status_code=status.HTTP_201_CREATED)
def create_order(
    order_in: SalesOrderCreate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    """Create a sales order without a quotation"""
    order = SalesOrderService(db, current_user).create(order_in)
    return success(order, f"Sales order {order.order_number} created successfully")


@router.patch("/{order_id}/delivery-status", response_model=ApiResponse[DeliveryStatusResult])
def update_delivery_status(
    order_id: int,
    delivery_in: DeliveryStatusUpdate,
    current_user: User = Depends(RoleChecker(DELIVERY_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Advance an order through pending, processing, shipped and delivered.

    Shipping deducts stock once per order; delivery generates the invoice
    once per order. Side-effect failures come back as warnings.
    """
    result = SalesOrderService(db, current_user).set_delivery_status(
        order_id,
        delivery_in.delivery_status,
        delivery_date=delivery_in.delivery_date,
        delivery_notes=delivery_in.delivery_notes,
    )
    message = f"Delivery status updated to {result['order'].status}"
    if result["warnings"]:
        message += " with warnings"
    return success(result, message)


@router.delete("/{order_id}", response_model=ApiResponse[None])
def delete_order(
    order_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    SalesOrderService(db, current_user).delete(order_id)
    return success(message="Sales order deleted successfully")
