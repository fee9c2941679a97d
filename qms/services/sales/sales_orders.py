"""
Sales Orders Service
Sales order entry and the delivery status workflow
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from qms.core.config import settings
from qms.core.database import unit_of_work
from qms.core.exceptions import InvalidStateError, NotFoundError, QMSException
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import InvoiceStatus, MovementType, SalesOrderStatus, enum_value
from qms.models.party import Customer
from qms.models.product import StockMovement
from qms.models.sales_order import SalesOrder, SalesOrderItem
from qms.services.numbering import SALES_ORDER_PREFIX, DocumentNumberAllocator
from qms.services.sales.invoices import InvoiceService
from qms.services.stock.stock_movements import StockMovementsService
from qms.services.totals import apply_totals, build_line_items, to_decimal

logger = get_logger("business")

SORTABLE = {
    "created_at": SalesOrder.created_at,
    "order_date": SalesOrder.order_date,
    "order_number": SalesOrder.order_number,
    "total_amount": SalesOrder.total_amount,
}

# Forward order of the delivery workflow
DELIVERY_SEQUENCE = [
    SalesOrderStatus.PENDING.value,
    SalesOrderStatus.PROCESSING.value,
    SalesOrderStatus.SHIPPED.value,
    SalesOrderStatus.DELIVERED.value,
    SalesOrderStatus.INVOICED.value,
]
TERMINAL_STATUSES = {SalesOrderStatus.INVOICED.value, SalesOrderStatus.CANCELLED.value}
SHIPPING_STATUSES = {SalesOrderStatus.SHIPPED.value, SalesOrderStatus.DELIVERED.value}


class SalesOrderService:
    """
    Sales order processing

    Delivery status side effects:
    - entering shipped (or delivered, if never shipped) deducts stock once per order
    - entering delivered invoices the order once, then marks it invoiced
    Both are best effort: failures are reported as warnings and never undo
    the status change.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user
        self.stock = StockMovementsService(db, current_user)
        self.invoices = InvoiceService(db, current_user)

    def order_query(self, order_id: int, lock: bool = False):
        """Order with its items; lock=True holds the order row until commit"""
        query = (
            self.db.query(SalesOrder)
            .options(selectinload(SalesOrder.items))
            .filter(SalesOrder.id == order_id)
        )
        if lock:
            query = query.with_for_update(of=SalesOrder)
        return query

    def get(self, order_id: int, lock: bool = False) -> SalesOrder:
        order = self.order_query(order_id, lock).first()
        if not order:
            raise NotFoundError("Sales order", order_id)
        return order

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CursorPage:
        query = self.db.query(SalesOrder)
        if status:
            query = query.filter(SalesOrder.status == enum_value(status))
        if customer_id:
            query = query.filter(SalesOrder.customer_id == customer_id)
        if date_from:
            query = query.filter(SalesOrder.order_date >= date_from)
        if date_to:
            query = query.filter(SalesOrder.order_date <= date_to)
        return paginate(query, SalesOrder, params, SORTABLE)

    def create(self, order_in) -> SalesOrder:
        """Create a sales order directly, without a quotation"""
        if not self.db.get(Customer, order_in.customer_id):
            raise NotFoundError("Customer", order_in.customer_id)

        with unit_of_work(self.db):
            items, totals = build_line_items(self.db, SalesOrderItem, order_in.items)
            order = SalesOrder(
                customer_id=order_in.customer_id,
                order_date=order_in.order_date,
                expected_delivery_date=order_in.expected_delivery_date,
                status=SalesOrderStatus.PENDING.value,
                notes=order_in.notes,
                created_by=self.current_user.id if self.current_user else None,
                items=items,
            )
            apply_totals(order, totals)
            DocumentNumberAllocator(self.db).insert(order, "order_number", SALES_ORDER_PREFIX)

        logger.info(f"Sales order {order.order_number} created")
        return self.get(order.id)

    def delete(self, order_id: int) -> None:
        order = self.get(order_id)
        if order.status != SalesOrderStatus.PENDING.value:
            raise InvalidStateError(f"Sales order {order.order_number} is {order.status}; only pending orders can be deleted")
        self.db.delete(order)
        self.db.commit()
        logger.info(f"Sales order {order.order_number} deleted")

    def _check_transition(self, order: SalesOrder, target: str) -> bool:
        """
        Validate a delivery status change.

        Returns True when the request repeats the current state (a no-op).
        """
        current = order.status
        if target == SalesOrderStatus.INVOICED.value:
            raise InvalidStateError("Orders become invoiced when their invoice is generated")
        if target == current:
            return True
        if target == SalesOrderStatus.DELIVERED.value and current == SalesOrderStatus.INVOICED.value:
            return True
        if current in TERMINAL_STATUSES:
            raise InvalidStateError(f"Sales order {order.order_number} is {current}")
        if target != SalesOrderStatus.CANCELLED.value and DELIVERY_SEQUENCE.index(target) < DELIVERY_SEQUENCE.index(current):
            raise InvalidStateError(f"Sales order {order.order_number} cannot move from {current} back to {target}")
        return False

    def _shipped_quantities(self, order: SalesOrder) -> Dict[int, Decimal]:
        """Quantity per product already logged as shipped for this order"""
        rows = (
            self.db.query(StockMovement.product_id, func.sum(StockMovement.quantity))
            .filter(
                StockMovement.reference_type == "sales_order",
                StockMovement.reference_id == order.id,
                StockMovement.movement_type == MovementType.SALE.value,
            )
            .group_by(StockMovement.product_id)
            .all()
        )
        return {product_id: to_decimal(total) for product_id, total in rows}

    def _deduct_stock(self, order: SalesOrder) -> List[str]:
        """
        Ship every product item, each in its own savepoint.

        Stock may go negative, which is reported as a warning. The order is
        flagged as deducted only when every item went through; a later call
        retries the rest and skips what the movement log already holds.
        """
        warnings = []
        failed = False
        logged = self._shipped_quantities(order)
        for item in order.items:
            if item.product_id is None:
                continue
            quantity = to_decimal(item.quantity)
            if logged.get(item.product_id, Decimal("0")) >= quantity:
                logged[item.product_id] -= quantity
                continue
            try:
                with self.db.begin_nested():
                    product = self.stock.get_product(item.product_id, lock=True)
                    movement = self.stock.apply_movement(
                        product,
                        MovementType.SALE,
                        quantity,
                        reference_type="sales_order",
                        reference_id=order.id,
                        reference_number=order.order_number,
                        notes=f"Shipped on {order.order_number}",
                        allow_negative=True,
                    )
                if movement.stock_after < 0:
                    logger.warning(f"Product {product.sku} is at {movement.stock_after} after shipping {order.order_number}")
                    warnings.append(f"Stock for '{product.name}' is now negative ({movement.stock_after})")
            except (QMSException, SQLAlchemyError) as e:
                failed = True
                logger.error(f"Stock deduction failed for item {item.id} of {order.order_number}: {e}")
                warnings.append(f"Stock not deducted for '{item.description}': {e}")
        order.stock_deducted = not failed
        return warnings

    def _invoice_delivered_order(self, order: SalesOrder, notes: List[str], warnings: List[str]):
        invoice = self.invoices.find_for_order(order.id)
        if invoice:
            notes.append(f"Invoice {invoice.invoice_number} already exists for this order")
            return invoice

        delivery_date = order.delivery_date or date.today()
        try:
            with self.db.begin_nested():
                invoice = self.invoices.build_from_order(
                    order,
                    InvoiceStatus.SENT,
                    invoice_date=date.today(),
                    due_date=delivery_date + timedelta(days=settings.INVOICE_DUE_DAYS),
                    notes=f"Auto-generated invoice for delivered order {order.order_number}",
                )
        except (QMSException, SQLAlchemyError) as e:
            logger.warning(f"Invoice auto-generation failed for {order.order_number}: {e}")
            warnings.append(f"Order delivered but invoice generation failed: {e}")
            return None

        order.status = SalesOrderStatus.INVOICED.value
        notes.append(f"Invoice {invoice.invoice_number} generated automatically")
        logger.info(f"Invoice {invoice.invoice_number} auto-generated for {order.order_number}")
        return invoice

    def set_delivery_status(
        self,
        order_id: int,
        status,
        delivery_date: Optional[date] = None,
        delivery_notes: Optional[str] = None,
    ) -> Dict:
        """
        Move an order along the delivery workflow.

        Repeating a status is safe: stock is deducted at most once and an
        order is invoiced at most once.

        Returns:
            order, invoice (if any), notes and warnings
        """
        order = self.get(order_id, lock=True)
        target = enum_value(status)
        previous = order.status
        repeat = self._check_transition(order, target)

        notes: List[str] = []
        warnings: List[str] = []
        invoice = None

        if delivery_date:
            order.delivery_date = delivery_date
        if delivery_notes is not None:
            order.delivery_notes = delivery_notes
        if not repeat:
            order.status = target

        if target in SHIPPING_STATUSES:
            if order.stock_deducted:
                if repeat:
                    notes.append("Stock was already deducted for this order")
            else:
                warnings.extend(self._deduct_stock(order))

        if target == SalesOrderStatus.DELIVERED.value:
            if not order.delivery_date:
                order.delivery_date = date.today()
            invoice = self._invoice_delivered_order(order, notes, warnings)

        self.db.commit()
        logger.info(f"Sales order {order.order_number} delivery status {previous} -> {order.status}")

        order = self.get(order_id)
        if invoice is None:
            invoice = self.invoices.find_for_order(order.id)
        return {"order": order, "invoice": invoice, "notes": notes, "warnings": warnings}
