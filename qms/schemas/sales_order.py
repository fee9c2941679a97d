"""
QMS Sales Order Schemas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from qms.models.enums import InvoiceStatus, SalesOrderStatus
from .common import LineItemCreate, LineItemResponse, Money
from .party import PartySummary


class SalesOrderCreate(BaseModel):
    customer_id: int
    order_date: date = Field(default_factory=date.today)
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[LineItemCreate] = Field(..., min_length=1)


class DeliveryStatusUpdate(BaseModel):
    delivery_status: SalesOrderStatus
    delivery_date: Optional[date] = None
    delivery_notes: Optional[str] = None


class InvoiceSummary(BaseModel):
    id: int
    invoice_number: str
    status: InvoiceStatus
    due_date: date
    total_amount: Money

    model_config = ConfigDict(from_attributes=True)


class SalesOrderResponse(BaseModel):
    id: int
    order_number: str
    quotation_id: Optional[int] = None
    customer_id: int
    customer: Optional[PartySummary] = None
    order_date: date
    expected_delivery_date: Optional[date] = None
    delivery_date: Optional[date] = None
    delivery_notes: Optional[str] = None
    status: SalesOrderStatus
    stock_deducted: bool
    notes: Optional[str] = None
    subtotal: Money
    discount_amount: Money
    tax_amount: Money
    total_amount: Money
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[LineItemResponse] = []
    invoice: Optional[InvoiceSummary] = None

    model_config = ConfigDict(from_attributes=True)


class SalesOrderListItem(BaseModel):
    id: int
    order_number: str
    quotation_id: Optional[int] = None
    customer_id: int
    customer: Optional[PartySummary] = None
    order_date: date
    status: SalesOrderStatus
    total_amount: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeliveryStatusResult(BaseModel):
    order: SalesOrderResponse
    invoice: Optional[InvoiceSummary] = None
    notes: List[str] = []
    warnings: List[str] = []
