"""
QMS Party Schemas
Customers and vendors share one contact block
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from qms.models.enums import PartyStatus
from .common import Money


class PartyBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    tax_number: Optional[str] = Field(None, max_length=50)
    payment_terms: int = Field(30, ge=0, le=365, description="Payment terms in days")
    status: PartyStatus = PartyStatus.ACTIVE.value
    notes: Optional[str] = None


class PartyUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    tax_number: Optional[str] = Field(None, max_length=50)
    payment_terms: Optional[int] = Field(None, ge=0, le=365)
    status: Optional[PartyStatus] = None
    notes: Optional[str] = None


class CustomerCreate(PartyBase):
    credit_limit: Decimal = Field(Decimal("0"), ge=0)


class CustomerUpdate(PartyUpdate):
    credit_limit: Optional[Decimal] = Field(None, ge=0)


class VendorCreate(PartyBase):
    pass


class VendorUpdate(PartyUpdate):
    pass


class PartyResponse(PartyBase):
    id: int
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerResponse(PartyResponse):
    credit_limit: Money


class VendorResponse(PartyResponse):
    pass


class PartySummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
