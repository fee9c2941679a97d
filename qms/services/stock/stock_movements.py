"""
Stock Movements Service
Records stock movements and keeps the product stock projection in step
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from qms.core.database import unit_of_work
from qms.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import INBOUND_MOVEMENTS, OUTBOUND_MOVEMENTS, MovementType, ProductStatus
from qms.models.product import Product, StockMovement
from qms.services.totals import to_decimal

logger = get_logger("business")

SORTABLE = {
    "created_at": StockMovement.created_at,
    "movement_date": StockMovement.movement_date,
    "quantity": StockMovement.quantity,
}


def signed_quantity(movement_type, quantity) -> Decimal:
    """Quantity delta a movement applies to stock on hand"""
    movement_type = MovementType(movement_type)
    quantity = to_decimal(quantity)
    if movement_type in INBOUND_MOVEMENTS:
        return quantity
    if movement_type in OUTBOUND_MOVEMENTS:
        return -quantity
    return Decimal("0")


class StockMovementsService:
    """
    Stock movement processing

    The movement log is the source of truth for stock levels.
    Product.current_stock is updated with every movement and can be
    rebuilt from the log with reconcile().
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get_product(self, product_id: int, lock: bool = False) -> Product:
        query = self.db.query(Product).filter(Product.id == product_id)
        if lock:
            query = query.with_for_update()
        product = query.first()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def apply_movement(
        self,
        product: Product,
        movement_type: MovementType,
        quantity,
        unit_cost=None,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        movement_date: Optional[date] = None,
        allow_negative: bool = False,
    ) -> StockMovement:
        """
        Append a movement and update the product's stock, without committing.

        Raises:
            InsufficientStockError: an outbound movement would take stock below zero
        """
        movement_type = MovementType(movement_type)
        quantity = to_decimal(quantity)
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")

        current = to_decimal(product.current_stock)
        delta = signed_quantity(movement_type, quantity)
        new_stock = current + delta

        if new_stock < 0 and not allow_negative:
            raise InsufficientStockError(product.name, current, quantity, product_id=product.id)

        if movement_type in INBOUND_MOVEMENTS and unit_cost is not None and quantity > 0:
            unit_cost = to_decimal(unit_cost)
            if unit_cost > 0:
                old_value = max(current, Decimal("0")) * to_decimal(product.average_cost)
                if new_stock > 0:
                    product.average_cost = (old_value + quantity * unit_cost) / new_stock
                if movement_type == MovementType.PURCHASE:
                    product.last_purchase_price = unit_cost

        product.current_stock = new_stock

        movement = StockMovement(
            product_id=product.id,
            movement_type=movement_type.value,
            quantity=quantity,
            unit_cost=to_decimal(unit_cost) if unit_cost is not None else None,
            stock_after=new_stock,
            reference_type=reference_type,
            reference_id=reference_id,
            reference_number=reference_number,
            notes=notes,
            movement_date=movement_date or date.today(),
            created_by=self.user_id,
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def record_movement(self, movement_data) -> StockMovement:
        """Record a single movement from API input as its own transaction"""
        with unit_of_work(self.db):
            product = self.get_product(movement_data.product_id, lock=True)
            movement = self.apply_movement(
                product,
                movement_data.movement_type,
                movement_data.quantity,
                unit_cost=movement_data.unit_cost,
                reference_type=movement_data.reference_type or "manual",
                reference_id=movement_data.reference_id,
                reference_number=movement_data.reference_number,
                notes=movement_data.notes,
                movement_date=movement_data.movement_date,
            )

        logger.info(
            f"Stock movement {movement.movement_type} of {movement.quantity} for product "
            f"{product.sku}, stock now {product.current_stock}"
        )
        self.db.refresh(movement)
        return movement

    def list_movements(
        self,
        params: CursorParams,
        product_id: Optional[int] = None,
        movement_type: Optional[MovementType] = None,
        reference_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CursorPage:
        query = self.db.query(StockMovement)
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        if movement_type:
            query = query.filter(StockMovement.movement_type == MovementType(movement_type).value)
        if reference_type:
            query = query.filter(StockMovement.reference_type == reference_type)
        if date_from:
            query = query.filter(StockMovement.movement_date >= date_from)
        if date_to:
            query = query.filter(StockMovement.movement_date <= date_to)
        return paginate(query, StockMovement, params, SORTABLE)

    def product_history(self, product_id: int, limit: int = 100) -> Dict:
        product = self.get_product(product_id)
        movements = (
            self.db.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.id.desc())
            .limit(limit)
            .all()
        )
        return {"product": product, "movements": movements}

    def low_stock(self) -> List[Product]:
        """Active products whose stock is below their reorder point"""
        return (
            self.db.query(Product)
            .filter(
                Product.status == ProductStatus.ACTIVE.value,
                Product.current_stock < Product.reorder_point,
            )
            .order_by(Product.name)
            .all()
        )

    def computed_stock_levels(self, product_id: Optional[int] = None) -> Dict[int, Decimal]:
        """Stock per product summed from the movement log"""
        inbound = [t.value for t in INBOUND_MOVEMENTS]
        outbound = [t.value for t in OUTBOUND_MOVEMENTS]
        delta = case(
            (StockMovement.movement_type.in_(inbound), StockMovement.quantity),
            (StockMovement.movement_type.in_(outbound), -StockMovement.quantity),
            else_=0,
        )
        query = self.db.query(StockMovement.product_id, func.coalesce(func.sum(delta), 0))
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        rows = query.group_by(StockMovement.product_id).all()
        return {pid: to_decimal(total) for pid, total in rows}

    def reconcile(self, product_id: Optional[int] = None, apply: bool = False) -> Dict:
        """
        Compare each product's stock with the movement log.

        Args:
            product_id: Limit to one product
            apply: Overwrite current_stock with the computed value

        Returns:
            checked count, discrepancies and whether they were applied
        """
        query = self.db.query(Product)
        if product_id:
            query = query.filter(Product.id == product_id)
        products = query.order_by(Product.id).all()
        if product_id and not products:
            raise NotFoundError("Product", product_id)

        computed = self.computed_stock_levels(product_id)
        discrepancies = []
        for product in products:
            recorded = to_decimal(product.current_stock)
            expected = computed.get(product.id, Decimal("0"))
            if recorded != expected:
                discrepancies.append({
                    "product_id": product.id,
                    "sku": product.sku,
                    "recorded_stock": recorded,
                    "computed_stock": expected,
                    "difference": recorded - expected,
                })
                if apply:
                    product.current_stock = expected

        if discrepancies:
            logger.warning(f"Stock reconciliation found {len(discrepancies)} discrepancies (apply={apply})")
        if apply and discrepancies:
            self.db.commit()

        return {"checked": len(products), "discrepancies": discrepancies, "applied": apply and bool(discrepancies)}
