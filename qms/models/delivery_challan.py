"""
QMS Delivery Challan Model
Dispatch notes raised against purchase orders
"""
from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import DeliveryChallanStatus, check_in
from .mixins import CreatedByMixin, TimestampMixin


class DeliveryChallan(CreatedByMixin, TimestampMixin, Base):
    """
    Delivery challan

    Tracks the physical movement of goods for a purchase order from
    generation to delivery. It does not touch stock; goods receipt on the
    purchase order does.
    """
    __tablename__ = "delivery_challans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    challan_number = Column(String(30), nullable=False, unique=True, doc="DC-YYYY-NNN unless supplied")
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="RESTRICT"), nullable=False)
    challan_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=True)
    delivery_address = Column(Text)
    contact_person = Column(String(100))
    phone = Column(String(50))
    status = Column(String(20), nullable=False, default=DeliveryChallanStatus.GENERATED.value)
    notes = Column(Text)

    purchase_order = relationship("PurchaseOrder")

    __table_args__ = (
        CheckConstraint(check_in("status", DeliveryChallanStatus), name="status"),
        Index("ix_delivery_challans_purchase_order", "purchase_order_id"),
        Index("ix_delivery_challans_status", "status"),
    )

    def __repr__(self):
        return f"<DeliveryChallan(id={self.id}, number='{self.challan_number}', status='{self.status}')>"
