"""
QMS Quotation API Routes
Quotation maintenance and conversion to sales orders
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import SALES_READ_ROLES, SALES_ROLES, RoleChecker, get_cursor_params, get_db, success
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import QuotationStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.quotation import (
    QuotationConvert, QuotationCreate, QuotationListItem, QuotationResponse, QuotationStatusUpdate, QuotationUpdate
)
from qms.schemas.sales_order import SalesOrderResponse
from qms.services.sales.conversion import QuotationConversionService
from qms.services.sales.quotations import QuotationService
from qms.services.sales.sales_orders import SalesOrderService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[QuotationListItem]])
def list_quotations(
    status_filter: Optional[QuotationStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = Query(None, description="Quotation number"),
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(SALES_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = QuotationService(db, current_user).list(
        params, status=status_filter, customer_id=customer_id, date_from=date_from, date_to=date_to, search=search
    )
    return success(page)


@router.get("/{quotation_id}", response_model=ApiResponse[QuotationResponse])
def get_quotation(
    quotation_id: int,
    current_user: User = Depends(RoleChecker(SALES_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(QuotationService(db, current_user).get(quotation_id))


@router.post("", response_model=ApiResponse[QuotationResponse], status_code=status.HTTP_201_CREATED)
def create_quotation(
    quotation_in: QuotationCreate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    """Create a draft quotation; number and totals are assigned by the server"""
    quotation = QuotationService(db, current_user).create(quotation_in)
    return success(quotation, f"Quotation {quotation.quotation_number} created successfully")


@router.put("/{quotation_id}", response_model=ApiResponse[QuotationResponse])
def update_quotation(
    quotation_id: int,
    quotation_in: QuotationUpdate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    quotation = QuotationService(db, current_user).update(quotation_id, quotation_in)
    return success(quotation, "Quotation updated successfully")


@router.patch("/{quotation_id}/status", response_model=ApiResponse[QuotationResponse])
def update_quotation_status(
    quotation_id: int,
    status_in: QuotationStatusUpdate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    quotation = QuotationService(db, current_user).set_status(quotation_id, status_in.status)
    return success(quotation, f"Quotation status updated to {quotation.status}")


@router.post(
    "/{quotation_id}/convert",
    response_model=ApiResponse[SalesOrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def convert_quotation(
    quotation_id: int,
    convert_in: Optional[QuotationConvert] = Body(None),
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Convert a quotation into a sales order.

    Fails with INSUFFICIENT_STOCK, leaving nothing written, when any
    product item exceeds the stock on hand.
    """
    convert_in = convert_in or QuotationConvert()
    order = QuotationConversionService(db, current_user).convert(
        quotation_id,
        expected_delivery_date=convert_in.expected_delivery_date,
        notes=convert_in.notes,
    )
    order = SalesOrderService(db, current_user).get(order.id)
    return success(order, f"Quotation converted to sales order {order.order_number}")


@router.delete("/{quotation_id}", response_model=ApiResponse[None])
def delete_quotation(
    quotation_id: int,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    QuotationService(db, current_user).delete(quotation_id)
    return success(message="Quotation deleted successfully")
