"""
QMS Delivery Challan Schemas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import DeliveryChallanStatus
from .document import DocumentResponse


class DeliveryChallanCreate(BaseModel):
    """challan_number is allocated as DC-YYYY-NNN when omitted"""
    challan_number: Optional[str] = Field(None, min_length=1, max_length=30)
    purchase_order_id: int
    challan_date: date = Field(default_factory=date.today)
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    contact_person: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.delivery_date and self.delivery_date < self.challan_date:
            raise ValueError("delivery_date cannot be before challan_date")
        return self


class DeliveryChallanStatusUpdate(BaseModel):
    status: DeliveryChallanStatus
    delivery_date: Optional[date] = Field(None, description="Defaults to today when marking delivered")


class PurchaseOrderRef(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    status: str

    model_config = ConfigDict(from_attributes=True)


class DeliveryChallanResponse(BaseModel):
    id: int
    challan_number: str
    purchase_order_id: int
    challan_date: date
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    status: DeliveryChallanStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeliveryChallanDetail(BaseModel):
    challan: DeliveryChallanResponse
    purchase_order: PurchaseOrderRef
    attachments: List[DocumentResponse]
