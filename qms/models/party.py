"""
QMS Party Models
Customers and vendors
"""
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Index, Integer, Numeric

from qms.core.database import Base
from .enums import PartyStatus, check_in
from .mixins import ContactMixin, TimestampMixin


class Customer(ContactMixin, TimestampMixin, Base):
    """Customer master record, referenced by quotations, orders and invoices"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    credit_limit = Column(Numeric(15, 2), nullable=False, default=Decimal("0"), doc="Maximum open balance")

    __table_args__ = (
        CheckConstraint(check_in("status", PartyStatus), name="status"),
        CheckConstraint("credit_limit >= 0", name="credit_limit"),
        CheckConstraint("payment_terms >= 0", name="payment_terms"),
        Index("ix_customers_name", "name"),
    )

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"


class Vendor(ContactMixin, TimestampMixin, Base):
    """Vendor master record, referenced by purchase orders and bills"""
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)

    __table_args__ = (
        CheckConstraint(check_in("status", PartyStatus), name="status"),
        CheckConstraint("payment_terms >= 0", name="payment_terms"),
        Index("ix_vendors_name", "name"),
    )

    def __repr__(self):
        return f"<Vendor(id={self.id}, name='{self.name}')>"
