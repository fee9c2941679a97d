"""
QMS Quotation Schemas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import QuotationStatus
from .common import LineItemCreate, LineItemResponse, Money
from .party import PartySummary


class QuotationCreate(BaseModel):
    customer_id: int
    quotation_date: date = Field(default_factory=date.today)
    valid_until: Optional[date] = None
    terms_conditions: Optional[str] = None
    notes: Optional[str] = None
    items: List[LineItemCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_validity(self):
        if self.valid_until and self.valid_until < self.quotation_date:
            raise ValueError("valid_until cannot be before quotation_date")
        return self


class QuotationUpdate(BaseModel):
    """Items, when given, replace every existing item"""
    customer_id: Optional[int] = None
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    terms_conditions: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[LineItemCreate]] = Field(None, min_length=1)

    @model_validator(mode="after")
    def check_validity(self):
        if self.quotation_date and self.valid_until and self.valid_until < self.quotation_date:
            raise ValueError("valid_until cannot be before quotation_date")
        return self


class QuotationStatusUpdate(BaseModel):
    status: QuotationStatus


class QuotationConvert(BaseModel):
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None


class QuotationResponse(BaseModel):
    id: int
    quotation_number: str
    customer_id: int
    customer: Optional[PartySummary] = None
    quotation_date: date
    valid_until: Optional[date] = None
    status: QuotationStatus
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
    items: List[LineItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class QuotationListItem(BaseModel):
    id: int
    quotation_number: str
    customer_id: int
    customer: Optional[PartySummary] = None
    quotation_date: date
    valid_until: Optional[date] = None
    status: QuotationStatus
    total_amount: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
