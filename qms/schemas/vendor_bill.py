"""
QMS Vendor Bill Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import VendorBillStatus
from .common import Money
from .party import PartySummary


class VendorBillCreate(BaseModel):
    bill_number: str = Field(..., min_length=1, max_length=50)
    vendor_id: int
    purchase_order_id: Optional[int] = None
    bill_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    subtotal: Decimal = Field(..., ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    expense_category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_due_date(self):
        if self.due_date and self.due_date < self.bill_date:
            raise ValueError("due_date cannot be before bill_date")
        return self


class VendorBillFromPO(BaseModel):
    purchase_order_id: int
    bill_number: Optional[str] = Field(None, max_length=50)
    bill_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class ExpenseBillCreate(BaseModel):
    bill_number: str = Field(..., min_length=1, max_length=50)
    vendor_id: int
    expense_category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    bill_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    subtotal: Decimal = Field(..., gt=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None


class VendorBillStatusUpdate(BaseModel):
    status: VendorBillStatus


class BillPaymentCreate(BaseModel):
    paid_amount: Decimal = Field(..., gt=0, description="Amount paid now")
    payment_date: date = Field(default_factory=date.today)
    payment_method: Optional[str] = Field(None, max_length=30)
    payment_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class BillPaymentResponse(BaseModel):
    id: int
    amount: Money
    payment_date: date
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VendorBillResponse(BaseModel):
    id: int
    bill_number: str
    vendor_id: int
    vendor: Optional[PartySummary] = None
    purchase_order_id: Optional[int] = None
    bill_type: str
    bill_date: date
    due_date: date
    status: VendorBillStatus
    subtotal: Money
    tax_amount: Money
    total_amount: Money
    paid_amount: Money
    remaining_amount: Money
    expense_category: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    payments: List[BillPaymentResponse] = []

    model_config = ConfigDict(from_attributes=True)


class PaymentResult(BaseModel):
    bill: VendorBillResponse
    payment: BillPaymentResponse
    remaining_amount: Money
    overpaid_amount: Money


class PendingPurchaseOrder(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    vendor: Optional[PartySummary] = None
    po_date: date
    status: str
    total_amount: Money

    model_config = ConfigDict(from_attributes=True)
