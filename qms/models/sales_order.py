"""
QMS Sales Order Models
Sales orders carry snapshot copies of their items; status doubles as delivery state
"""
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import SalesOrderStatus, check_in
from .mixins import CreatedByMixin, DocumentTotalsMixin, LineItemMixin, TimestampMixin


class SalesOrder(DocumentTotalsMixin, CreatedByMixin, TimestampMixin, Base):
    """
    Sales order header

    pending -> processing -> shipped -> delivered -> invoiced, or cancelled.
    """
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(30), nullable=False, unique=True, doc="SO-YYYY-NNN")
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False)
    order_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    delivery_notes = Column(Text)
    status = Column(String(20), nullable=False, default=SalesOrderStatus.PENDING.value)
    stock_deducted = Column(Boolean, nullable=False, default=False, doc="Shipping stock deduction already applied")
    notes = Column(Text)

    customer = relationship("Customer")
    quotation = relationship("Quotation")
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )
    invoice = relationship("Invoice", back_populates="sales_order", uselist=False)

    __table_args__ = (
        CheckConstraint(check_in("status", SalesOrderStatus), name="status"),
        Index("ix_sales_orders_customer", "customer_id"),
        Index("ix_sales_orders_status", "status"),
        Index("ix_sales_orders_quotation", "quotation_id"),
    )

    def __repr__(self):
        return f"<SalesOrder(id={self.id}, number='{self.order_number}', status='{self.status}')>"


class SalesOrderItem(LineItemMixin, Base):
    __tablename__ = "sales_order_items"

    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)

    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")
