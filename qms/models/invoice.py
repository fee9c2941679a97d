"""
QMS Invoice Models
Customer invoices, created manually or from delivered sales orders
"""
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import FbrSyncStatus, InvoiceStatus, check_in
from .mixins import CreatedByMixin, DocumentTotalsMixin, LineItemMixin, TimestampMixin


class Invoice(DocumentTotalsMixin, CreatedByMixin, TimestampMixin, Base):
    """
    Invoice header

    sales_order_id is unique so that an order can be invoiced at most once.
    FBR sync status is tracked independently of the payment status.
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(30), nullable=False, unique=True, doc="INV-YYYY-NNN")
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="RESTRICT"), nullable=True, unique=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_terms = Column(Integer, nullable=True, doc="Payment terms in days")
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value)
    paid_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    # Tax authority sync
    fbr_sync_status = Column(String(20), nullable=False, default=FbrSyncStatus.PENDING.value)
    fbr_reference = Column(String(100), nullable=True)
    fbr_sync_date = Column(DateTime(timezone=True), nullable=True)

    last_reminder_sent = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text)

    customer = relationship("Customer")
    sales_order = relationship("SalesOrder", back_populates="invoice")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    __table_args__ = (
        CheckConstraint(check_in("status", InvoiceStatus), name="status"),
        CheckConstraint(check_in("fbr_sync_status", FbrSyncStatus), name="fbr_sync_status"),
        CheckConstraint("paid_amount >= 0", name="paid_amount"),
        Index("ix_invoices_customer", "customer_id"),
        Index("ix_invoices_status", "status"),
        Index("ix_invoices_due_date", "due_date"),
    )

    @property
    def outstanding_amount(self) -> Decimal:
        return Decimal(self.total_amount or 0) - Decimal(self.paid_amount or 0)

    def __repr__(self):
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status}')>"


class InvoiceItem(LineItemMixin, Base):
    __tablename__ = "invoice_items"

    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product")
