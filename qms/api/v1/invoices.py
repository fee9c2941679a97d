"""
QMS Invoice API Routes
Invoices, invoicing from sales orders and FBR sync status
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    FINANCE_ROLES, SALES_FINANCE_ROLES, STAFF_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import FbrSyncStatus, InvoiceStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.invoice import (
    AutoGenerateResult, FbrStatusUpdate, InvoiceCreate, InvoiceFromOrder, InvoiceListItem, InvoiceResponse,
    InvoiceStatusUpdate,
)
from qms.services.sales.invoices import InvoiceService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[InvoiceListItem]])
def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    fbr_sync_status: Optional[FbrSyncStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    page = InvoiceService(db, current_user).list(
        params,
        status=status_filter,
        customer_id=customer_id,
        fbr_sync_status=fbr_sync_status,
        date_from=date_from,
        date_to=date_to,
    )
    return success(page)


@router.post("/auto-generate", response_model=ApiResponse[AutoGenerateResult])
def auto_generate_invoices(
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    """Invoice every delivered order that has no invoice yet"""
    result = InvoiceService(db, current_user).auto_generate()
    return success(result, f"Generated {len(result['generated'])} invoices")


@router.post(
    "/from-order/{order_id}",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_invoice_from_order(
    order_id: int,
    data: Optional[InvoiceFromOrder] = Body(None),
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db, current_user).create_from_order(order_id, data)
    return success(invoice, f"Invoice {invoice.invoice_number} created from sales order")


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceResponse])
def get_invoice(
    invoice_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    return success(InvoiceService(db, current_user).get(invoice_id))


@router.post("", response_model=ApiResponse[InvoiceResponse], status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_in: InvoiceCreate,
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db, current_user).create(invoice_in)
    return success(invoice, f"Invoice {invoice.invoice_number} created successfully")


@router.patch("/{invoice_id}/status", response_model=ApiResponse[InvoiceResponse])
def update_invoice_status(
    invoice_id: int,
    status_in: InvoiceStatusUpdate,
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db, current_user).set_status(invoice_id, status_in.status)
    return success(invoice, f"Invoice status updated to {invoice.status}")


@router.patch("/{invoice_id}/mark-paid", response_model=ApiResponse[InvoiceResponse])
def mark_invoice_paid(
    invoice_id: int,
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db, current_user).mark_paid(invoice_id)
    return success(invoice, "Invoice marked as paid")


@router.patch("/{invoice_id}/fbr-status", response_model=ApiResponse[InvoiceResponse])
def update_fbr_status(
    invoice_id: int,
    fbr_in: FbrStatusUpdate,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    """Record the tax authority sync outcome reported by the caller"""
    invoice = InvoiceService(db, current_user).update_fbr_status(
        invoice_id, fbr_in.fbr_sync_status, fbr_in.fbr_reference
    )
    return success(invoice, f"FBR sync status updated to {invoice.fbr_sync_status}")


@router.post("/{invoice_id}/send-reminder", response_model=ApiResponse[InvoiceResponse])
def send_payment_reminder(
    invoice_id: int,
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db, current_user).send_reminder(invoice_id)
    return success(invoice, f"Payment reminder recorded for {invoice.customer.email}")


@router.delete("/{invoice_id}", response_model=ApiResponse[None])
def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(RoleChecker(SALES_FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    InvoiceService(db, current_user).delete(invoice_id)
    return success(message="Invoice deleted successfully")
