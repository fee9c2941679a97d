"""
QMS Purchase Order Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from qms.models.enums import PurchaseOrderStatus
from .common import LineItemCreate, LineItemResponse, Money, Quantity
from .party import PartySummary


class PurchaseOrderCreate(BaseModel):
    vendor_id: int
    po_date: date = Field(default_factory=date.today)
    expected_delivery_date: Optional[date] = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    terms_conditions: Optional[str] = None
    notes: Optional[str] = None
    items: List[LineItemCreate] = Field(..., min_length=1)


class PurchaseOrderUpdate(BaseModel):
    """Items, when given, replace every existing item"""
    vendor_id: Optional[int] = None
    po_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    terms_conditions: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[LineItemCreate]] = Field(None, min_length=1)


class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus


class ReceiptLine(BaseModel):
    item_id: int
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)


class PurchaseOrderReceive(BaseModel):
    items: List[ReceiptLine] = Field(..., min_length=1)
    received_date: Optional[date] = None
    notes: Optional[str] = None


class PurchaseOrderItemResponse(LineItemResponse):
    received_quantity: Quantity


class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    vendor: Optional[PartySummary] = None
    po_date: date
    expected_delivery_date: Optional[date] = None
    status: PurchaseOrderStatus
    terms_conditions: Optional[str] = None
    notes: Optional[str] = None
    subtotal: Money
    discount_amount: Money
    tax_amount: Money
    total_amount: Money
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[PurchaseOrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderListItem(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    vendor: Optional[PartySummary] = None
    po_date: date
    status: PurchaseOrderStatus
    total_amount: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
