"""
QMS Product and Stock Models
Product catalog and the append-only stock movement log
"""
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import MovementType, ProductStatus, ProductType, check_in
from .mixins import CreatedByMixin, TimestampMixin, utcnow


class ProductCategory(TimestampMixin, Base):
    """Catalog category; categories nest through parent_id"""
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    parent_id = Column(Integer, ForeignKey("product_categories.id", ondelete="RESTRICT"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    parent = relationship("ProductCategory", remote_side=[id], back_populates="children")
    children = relationship("ProductCategory", back_populates="parent", order_by="ProductCategory.name")

    __table_args__ = (
        Index("ix_product_categories_parent", "parent_id"),
    )

    def __repr__(self):
        return f"<ProductCategory(id={self.id}, name='{self.name}')>"


class Product(TimestampMixin, Base):
    """
    Product master

    current_stock is a projection of the stock movement log; StockMovementsService
    keeps it in step and can reconcile it against the log.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(50), nullable=False, unique=True, index=True, doc="Stock keeping unit")
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100), doc="Free-text category label")
    category_id = Column(Integer, ForeignKey("product_categories.id", ondelete="SET NULL"), nullable=True)
    product_type = Column(String(20), nullable=False, default=ProductType.FINISHED_GOOD.value)
    unit_of_measure = Column(String(20), nullable=False, default="pcs")

    # Stock levels
    current_stock = Column(Numeric(15, 3), nullable=False, default=Decimal("0"))
    reorder_point = Column(Numeric(15, 3), nullable=False, default=Decimal("0"))
    max_stock_level = Column(Numeric(15, 3), nullable=True)

    # Pricing
    selling_price = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    average_cost = Column(Numeric(15, 4), nullable=False, default=Decimal("0"))
    last_purchase_price = Column(Numeric(15, 2), nullable=True)

    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value)

    movements = relationship("StockMovement", back_populates="product", order_by="StockMovement.id")

    __table_args__ = (
        CheckConstraint(check_in("product_type", ProductType), name="product_type"),
        CheckConstraint(check_in("status", ProductStatus), name="status"),
        CheckConstraint("reorder_point >= 0", name="reorder_point"),
        Index("ix_products_name", "name"),
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) < (self.reorder_point or 0)

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}', stock={self.current_stock})>"


class StockMovement(CreatedByMixin, Base):
    """
    Stock movement log entry

    quantity is always a non-negative magnitude; the movement type decides
    the direction. Reservations carry quantity zero.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    movement_type = Column(String(20), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_cost = Column(Numeric(15, 4), nullable=True)
    stock_after = Column(Numeric(15, 3), nullable=True, doc="Product stock after this movement")

    # Originating document
    reference_type = Column(String(30), nullable=True, doc="e.g. sales_order, purchase_order, manual")
    reference_id = Column(Integer, nullable=True)
    reference_number = Column(String(50), nullable=True)

    notes = Column(Text)
    movement_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product = relationship("Product", back_populates="movements")

    __table_args__ = (
        CheckConstraint(check_in("movement_type", MovementType), name="movement_type"),
        CheckConstraint("quantity >= 0", name="quantity"),
        Index("ix_stock_movements_product", "product_id"),
        Index("ix_stock_movements_reference", "reference_type", "reference_id"),
        Index("ix_stock_movements_date", "movement_date"),
    )

    def __repr__(self):
        return f"<StockMovement(id={self.id}, product_id={self.product_id}, type='{self.movement_type}', qty={self.quantity})>"
