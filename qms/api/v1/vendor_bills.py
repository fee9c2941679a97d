"""
QMS Vendor Bill API Routes
Payables from purchase orders and expenses, and bill payments
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    FINANCE_ROLES, PROCUREMENT_APPROVAL_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import VendorBillStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.vendor_bill import (
    BillPaymentCreate, ExpenseBillCreate, PaymentResult, PendingPurchaseOrder, VendorBillCreate, VendorBillFromPO,
    VendorBillResponse, VendorBillStatusUpdate,
)
from qms.services.purchasing.vendor_bills import VendorBillService

router = APIRouter()

BILL_READ_ROLES = ["admin", "procurement", "finance", "auditor"]


@router.get("", response_model=ApiResponse[CursorPageSchema[VendorBillResponse]])
def list_vendor_bills(
    status_filter: Optional[VendorBillStatus] = Query(None, alias="status"),
    vendor_id: Optional[int] = None,
    bill_type: Optional[str] = Query(None, pattern="^(purchase_order|expense)$"),
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(BILL_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = VendorBillService(db, current_user).list(
        params, status=status_filter, vendor_id=vendor_id, bill_type=bill_type
    )
    return success(page)


@router.get("/pending-pos", response_model=ApiResponse[List[PendingPurchaseOrder]])
def pending_purchase_orders(
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    """Approved, sent or received purchase orders still waiting for a bill"""
    return success(VendorBillService(db, current_user).pending_purchase_orders())


@router.post("/from-po", response_model=ApiResponse[VendorBillResponse], status_code=status.HTTP_201_CREATED)
def create_bill_from_po(
    bill_in: VendorBillFromPO,
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    bill = VendorBillService(db, current_user).create_from_po(bill_in)
    return success(bill, f"Vendor bill {bill.bill_number} created from purchase order")


@router.post("/expense", response_model=ApiResponse[VendorBillResponse], status_code=status.HTTP_201_CREATED)
def create_expense_bill(
    expense_in: ExpenseBillCreate,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    bill = VendorBillService(db, current_user).create_expense(expense_in)
    return success(bill, f"Expense bill {bill.bill_number} created")


@router.get("/{bill_id}", response_model=ApiResponse[VendorBillResponse])
def get_vendor_bill(
    bill_id: int,
    current_user: User = Depends(RoleChecker(BILL_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(VendorBillService(db, current_user).get(bill_id))


@router.post("", response_model=ApiResponse[VendorBillResponse], status_code=status.HTTP_201_CREATED)
def create_vendor_bill(
    bill_in: VendorBillCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    bill = VendorBillService(db, current_user).create(bill_in)
    return success(bill, f"Vendor bill {bill.bill_number} created successfully")


@router.patch("/{bill_id}/status", response_model=ApiResponse[VendorBillResponse])
def update_vendor_bill_status(
    bill_id: int,
    status_in: VendorBillStatusUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_APPROVAL_ROLES)),
    db: Session = Depends(get_db),
):
    bill = VendorBillService(db, current_user).set_status(bill_id, status_in.status)
    return success(bill, f"Vendor bill status updated to {bill.status}")


@router.post("/{bill_id}/payment", response_model=ApiResponse[PaymentResult])
def record_bill_payment(
    bill_id: int,
    payment_in: BillPaymentCreate,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Record a payment against a bill.

    overpaid_amount is non-zero when the payment exceeded the amount due.
    """
    result = VendorBillService(db, current_user).record_payment(bill_id, payment_in)
    message = f"Payment of {payment_in.paid_amount} recorded successfully"
    if result["overpaid_amount"] > 0:
        message += f"; bill overpaid by {result['overpaid_amount']}"
    return success(result, message)
