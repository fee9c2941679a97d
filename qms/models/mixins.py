"""
QMS Model Mixins
Column groups shared by the document and party tables
"""
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declared_attr


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, doc="Creation timestamp")
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, doc="Last update timestamp")


class ContactMixin:
    """Contact block shared by customers and vendors"""
    name = Column(String(200), nullable=False, doc="Party name")
    contact_person = Column(String(100), doc="Primary contact")
    email = Column(String(255), doc="Contact e-mail")
    phone = Column(String(50), doc="Contact phone")
    address = Column(Text, doc="Street address")
    city = Column(String(100))
    state = Column(String(100))
    country = Column(String(100))
    postal_code = Column(String(20))
    tax_number = Column(String(50), doc="NTN / GST registration")
    payment_terms = Column(Integer, nullable=False, default=30, doc="Payment terms in days")
    status = Column(String(20), nullable=False, default="active", doc="active, inactive or suspended")
    notes = Column(Text)


class DocumentTotalsMixin:
    """Header totals computed from the line items"""
    subtotal = Column(Numeric(15, 2), nullable=False, default=Decimal("0"), doc="Sum of quantity x unit price")
    discount_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"), doc="Sum of line discounts")
    tax_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"), doc="Sum of line taxes")
    total_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"), doc="Subtotal - discount + tax")


class LineItemMixin:
    """Priced line item; line_total includes discount and tax"""
    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    tax_percent = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    line_total = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    @declared_attr
    def product_id(cls):
        return Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=True, index=True)


class CreatedByMixin:
    @declared_attr
    def created_by(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="User who created the record")
