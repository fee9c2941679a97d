"""
QMS Invoice Schemas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import FbrSyncStatus, InvoiceStatus
from .common import LineItemCreate, LineItemResponse, Money
from .party import PartySummary


class InvoiceCreate(BaseModel):
    customer_id: int
    sales_order_id: Optional[int] = None
    invoice_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    payment_terms: Optional[int] = Field(None, ge=0, le=365)
    notes: Optional[str] = None
    items: List[LineItemCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_due_date(self):
        if self.due_date and self.due_date < self.invoice_date:
            raise ValueError("due_date cannot be before invoice_date")
        return self


class InvoiceFromOrder(BaseModel):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class FbrStatusUpdate(BaseModel):
    fbr_sync_status: FbrSyncStatus
    fbr_reference: Optional[str] = Field(None, max_length=100)


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    sales_order_id: Optional[int] = None
    customer_id: int
    customer: Optional[PartySummary] = None
    invoice_date: date
    due_date: date
    payment_terms: Optional[int] = None
    status: InvoiceStatus
    paid_amount: Money
    outstanding_amount: Money
    fbr_sync_status: FbrSyncStatus
    fbr_reference: Optional[str] = None
    fbr_sync_date: Optional[datetime] = None
    last_reminder_sent: Optional[datetime] = None
    notes: Optional[str] = None
    subtotal: Money
    discount_amount: Money
    tax_amount: Money
    total_amount: Money
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[LineItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class InvoiceListItem(BaseModel):
    id: int
    invoice_number: str
    sales_order_id: Optional[int] = None
    customer_id: int
    customer: Optional[PartySummary] = None
    invoice_date: date
    due_date: date
    status: InvoiceStatus
    fbr_sync_status: FbrSyncStatus
    total_amount: Money
    paid_amount: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AutoGenerateResult(BaseModel):
    generated: List[str] = []
    errors: List[dict] = []
