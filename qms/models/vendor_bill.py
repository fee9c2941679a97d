"""
QMS Vendor Bill Models
Payables raised from purchase orders or as standalone expenses
"""
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import VendorBillStatus, check_in
from .mixins import CreatedByMixin, TimestampMixin, utcnow


class VendorBill(CreatedByMixin, TimestampMixin, Base):
    """
    Vendor bill

    A bill either references a purchase order or carries an expense
    category; payments are kept as BillPayment rows.
    """
    __tablename__ = "vendor_bills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bill_number = Column(String(50), nullable=False, unique=True, doc="Vendor's bill reference")
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="RESTRICT"), nullable=False)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="RESTRICT"), nullable=True)
    bill_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=VendorBillStatus.PENDING.value)

    subtotal = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    tax_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    total_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    paid_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    # Standalone expense details
    expense_category = Column(String(100), nullable=True)
    description = Column(Text)
    notes = Column(Text)

    vendor = relationship("Vendor")
    purchase_order = relationship("PurchaseOrder", back_populates="bills")
    payments = relationship(
        "BillPayment",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillPayment.id",
    )

    __table_args__ = (
        CheckConstraint(check_in("status", VendorBillStatus), name="status"),
        CheckConstraint("total_amount >= 0", name="total_amount"),
        CheckConstraint("paid_amount >= 0", name="paid_amount"),
        Index("ix_vendor_bills_vendor", "vendor_id"),
        Index("ix_vendor_bills_status", "status"),
        Index("ix_vendor_bills_po", "purchase_order_id"),
    )

    @property
    def bill_type(self) -> str:
        return "purchase_order" if self.purchase_order_id else "expense"

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal(self.total_amount or 0) - Decimal(self.paid_amount or 0), Decimal("0"))

    def __repr__(self):
        return f"<VendorBill(id={self.id}, number='{self.bill_number}', status='{self.status}')>"


class BillPayment(CreatedByMixin, Base):
    """Payment made against a vendor bill"""
    __tablename__ = "bill_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_bill_id = Column(Integer, ForeignKey("vendor_bills.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String(30), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    bill = relationship("VendorBill", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="amount"),
    )
