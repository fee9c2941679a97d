"""
QMS System Settings Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Money

TERMS_FIELDS = ("default_terms", "quotation_terms", "invoice_terms", "purchase_order_terms")


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""
    default_terms: Optional[str] = None
    quotation_terms: Optional[str] = None
    invoice_terms: Optional[str] = None
    purchase_order_terms: Optional[str] = None
    default_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    default_tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    quotation_number_format: Optional[str] = Field(None, min_length=1, max_length=50)
    invoice_number_format: Optional[str] = Field(None, min_length=1, max_length=50)
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None


class TermsUpdate(BaseModel):
    default_terms: Optional[str] = None
    quotation_terms: Optional[str] = None
    invoice_terms: Optional[str] = None
    purchase_order_terms: Optional[str] = None

    @model_validator(mode="after")
    def check_any(self):
        if all(getattr(self, name) is None for name in TERMS_FIELDS):
            raise ValueError("At least one terms field is required")
        return self


class TermsResponse(BaseModel):
    default_terms: Optional[str] = None
    quotation_terms: Optional[str] = None
    invoice_terms: Optional[str] = None
    purchase_order_terms: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SettingsResponse(TermsResponse):
    id: int
    default_currency: str
    default_tax_rate: Money
    quotation_number_format: str
    invoice_number_format: str
    email_notifications: bool
    sms_notifications: bool
    updated_at: datetime
