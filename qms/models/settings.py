"""
QMS System Settings Model
Company-wide defaults held in a single row
"""
from decimal import Decimal

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from qms.core.database import Base
from .mixins import TimestampMixin


DEFAULT_TERMS = (
    "1. Payment is due within 30 days of invoice date.\n"
    "2. All prices are in USD and exclude shipping.\n"
    "3. Products are subject to availability.\n"
    "4. Returns accepted within 14 days with original packaging.\n"
    "5. Late payments may incur additional charges.\n"
    "6. Delivery terms as per agreement."
)
DEFAULT_QUOTATION_TERMS = (
    "1. This quotation is valid for 30 days from the date of issue.\n"
    "2. Prices are subject to change without notice.\n"
    "3. Payment terms: 50% advance, 50% on delivery.\n"
    "4. Delivery time: 7-14 business days after order confirmation."
)
DEFAULT_INVOICE_TERMS = (
    "1. Payment is due within 30 days of invoice date.\n"
    "2. Late payment charges: 2% per month.\n"
    "3. All disputes must be raised within 7 days of invoice date.\n"
    "4. Goods once sold cannot be returned without prior approval."
)
DEFAULT_PURCHASE_ORDER_TERMS = (
    "1. Delivery as per agreed schedule.\n"
    "2. Quality as per specifications.\n"
    "3. Payment terms as agreed.\n"
    "4. Penalties for delayed delivery may apply."
)


class SystemSettings(TimestampMixin, Base):
    """
    Company settings

    There is at most one row; SettingsService creates it with the defaults
    on first read.
    """
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Terms and conditions printed on documents
    default_terms = Column(Text, default=DEFAULT_TERMS)
    quotation_terms = Column(Text, default=DEFAULT_QUOTATION_TERMS)
    invoice_terms = Column(Text, default=DEFAULT_INVOICE_TERMS)
    purchase_order_terms = Column(Text, default=DEFAULT_PURCHASE_ORDER_TERMS)

    default_currency = Column(String(3), nullable=False, default="USD")
    default_tax_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("18.00"))
    quotation_number_format = Column(String(50), nullable=False, default="Q-YYYY-###")
    invoice_number_format = Column(String(50), nullable=False, default="INV-YYYY-###")

    email_notifications = Column(Boolean, nullable=False, default=True)
    sms_notifications = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<SystemSettings(id={self.id}, currency='{self.default_currency}')>"
