"""
Product Service
Product catalog maintenance
"""
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qms.core.database import unit_of_work
from qms.core.exceptions import ConflictError, NotFoundError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import MovementType, enum_value
from qms.models.invoice import InvoiceItem
from qms.models.product import Product, ProductCategory, StockMovement
from qms.models.purchase_order import PurchaseOrderItem
from qms.models.quotation import QuotationItem
from qms.models.sales_order import SalesOrderItem
from qms.services.stock.stock_movements import StockMovementsService

logger = get_logger("business")

SORTABLE = {
    "created_at": Product.created_at,
    "name": Product.name,
    "sku": Product.sku,
    "current_stock": Product.current_stock,
}


class ProductService:
    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    def get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        product_type: Optional[str] = None,
        search: Optional[str] = None,
        low_stock: bool = False,
        category_id: Optional[int] = None,
    ) -> CursorPage:
        query = self.db.query(Product)
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if status:
            query = query.filter(Product.status == enum_value(status))
        if product_type:
            query = query.filter(Product.product_type == enum_value(product_type))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
        if low_stock:
            query = query.filter(Product.current_stock < Product.reorder_point)
        return paginate(query, Product, params, SORTABLE)

    def _require_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and not self.db.get(ProductCategory, category_id):
            raise NotFoundError("Product category", category_id)

    def create(self, product_in) -> Product:
        """Create a product; opening stock is booked as an adjustment so the movement log stays complete"""
        if self.db.query(Product).filter(Product.sku == product_in.sku).first():
            raise ConflictError(f"Product with SKU {product_in.sku} already exists")
        self._require_category(product_in.category_id)

        data = product_in.model_dump(exclude={"opening_stock"})
        with unit_of_work(self.db):
            product = Product(**data)
            self.db.add(product)
            self.db.flush()

            if product_in.opening_stock > 0:
                StockMovementsService(self.db, self.current_user).apply_movement(
                    product,
                    MovementType.ADJUSTMENT_IN,
                    product_in.opening_stock,
                    unit_cost=product_in.average_cost or None,
                    reference_type="opening_balance",
                    notes="Opening stock",
                )

        logger.info(f"Product {product.sku} created")
        self.db.refresh(product)
        return product

    def update(self, product_id: int, product_in) -> Product:
        product = self.get(product_id)
        changes = product_in.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._require_category(changes["category_id"])
        for key, value in changes.items():
            setattr(product, key, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product_id: int) -> None:
        product = self.get(product_id)
        for item_cls in (QuotationItem, SalesOrderItem, PurchaseOrderItem, InvoiceItem):
            if self.db.query(item_cls.id).filter(item_cls.product_id == product_id).first():
                raise ConflictError(f"Product {product.sku} is used on documents and cannot be deleted")
        if self.db.query(StockMovement.id).filter(StockMovement.product_id == product_id).first():
            raise ConflictError(f"Product {product.sku} has stock movements and cannot be deleted")

        self.db.delete(product)
        self.db.commit()
        logger.info(f"Product {product.sku} deleted")
