"""
QMS Purchase Order Models
Vendor-facing orders and their line items
"""
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import PurchaseOrderStatus, check_in
from .mixins import CreatedByMixin, DocumentTotalsMixin, LineItemMixin, TimestampMixin


class PurchaseOrder(DocumentTotalsMixin, CreatedByMixin, TimestampMixin, Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    po_number = Column(String(30), nullable=False, unique=True, doc="PO-YYYY-NNN")
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="RESTRICT"), nullable=False)
    po_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=PurchaseOrderStatus.DRAFT.value)
    terms_conditions = Column(Text)
    notes = Column(Text)

    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    vendor = relationship("Vendor")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )
    bills = relationship("VendorBill", back_populates="purchase_order")

    __table_args__ = (
        CheckConstraint(check_in("status", PurchaseOrderStatus), name="status"),
        Index("ix_purchase_orders_vendor", "vendor_id"),
        Index("ix_purchase_orders_status", "status"),
    )

    def __repr__(self):
        return f"<PurchaseOrder(id={self.id}, number='{self.po_number}', status='{self.status}')>"


class PurchaseOrderItem(LineItemMixin, Base):
    __tablename__ = "purchase_order_items"

    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    received_quantity = Column(Numeric(15, 3), nullable=False, default=Decimal("0"))

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity"),
        CheckConstraint("received_quantity >= 0", name="received_quantity"),
    )

    @property
    def outstanding_quantity(self) -> Decimal:
        return max(Decimal(self.quantity) - Decimal(self.received_quantity or 0), Decimal("0"))
