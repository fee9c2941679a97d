"""
QMS Quotation Models
Customer quotations and their line items
"""
from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import QuotationStatus, check_in
from .mixins import CreatedByMixin, DocumentTotalsMixin, LineItemMixin, TimestampMixin


class Quotation(DocumentTotalsMixin, CreatedByMixin, TimestampMixin, Base):
    """
    Quotation header

    draft -> sent -> approved -> converted, with rejected and expired as
    alternate terminal states.
    """
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quotation_number = Column(String(30), nullable=False, unique=True, doc="Q-YYYY-NNN")
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False)
    quotation_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=QuotationStatus.DRAFT.value)
    terms_conditions = Column(Text)
    notes = Column(Text)

    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer")
    items = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.id",
    )

    __table_args__ = (
        CheckConstraint(check_in("status", QuotationStatus), name="status"),
        Index("ix_quotations_customer", "customer_id"),
        Index("ix_quotations_status", "status"),
        Index("ix_quotations_date", "quotation_date"),
    )

    def __repr__(self):
        return f"<Quotation(id={self.id}, number='{self.quotation_number}', status='{self.status}')>"


class QuotationItem(LineItemMixin, Base):
    __tablename__ = "quotation_items"

    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)

    quotation = relationship("Quotation", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity"),
        CheckConstraint("unit_price >= 0", name="unit_price"),
    )
