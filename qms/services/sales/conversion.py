"""
Quotation Conversion Service
Turns an open quotation into a sales order
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from qms.core.database import unit_of_work
from qms.core.exceptions import AlreadyConvertedError, InsufficientStockError, InvalidStateError
from qms.core.logging import get_logger
from qms.models.auth import User
from qms.models.enums import MovementType, QuotationStatus, SalesOrderStatus
from qms.models.sales_order import SalesOrder, SalesOrderItem
from qms.services.numbering import SALES_ORDER_PREFIX, DocumentNumberAllocator
from qms.services.sales.quotations import QuotationService
from qms.services.stock.stock_movements import StockMovementsService
from qms.services.totals import copy_line_items, to_decimal

logger = get_logger("business")

CONVERTIBLE_STATUSES = {
    QuotationStatus.DRAFT.value,
    QuotationStatus.SENT.value,
    QuotationStatus.APPROVED.value,
}


class QuotationConversionService:
    """
    Quotation to sales order conversion

    Stock is checked for every product item before anything is written.
    The order, its snapshot items, the reservation movements and the
    quotation status change are committed together or not at all.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user
        self.quotations = QuotationService(db, current_user)
        self.stock = StockMovementsService(db, current_user)

    def check_stock(self, quotation) -> None:
        """Raise InsufficientStockError for the first product item stock cannot cover"""
        required = {}
        for item in quotation.items:
            if item.product_id is not None:
                required[item.product_id] = required.get(item.product_id, Decimal("0")) + to_decimal(item.quantity)

        for product_id, quantity in required.items():
            product = self.stock.get_product(product_id)
            available = to_decimal(product.current_stock)
            if available < quantity:
                raise InsufficientStockError(product.name, available, quantity, product_id=product.id)

    def convert(
        self,
        quotation_id: int,
        expected_delivery_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> SalesOrder:
        quotation = self.quotations.get(quotation_id)

        if quotation.status == QuotationStatus.CONVERTED.value:
            raise AlreadyConvertedError(f"Quotation {quotation.quotation_number} has already been converted")
        if quotation.status not in CONVERTIBLE_STATUSES:
            raise InvalidStateError(
                f"Quotation {quotation.quotation_number} is {quotation.status}; only draft, sent "
                f"or approved quotations can be converted"
            )

        try:
            self.check_stock(quotation)
        except InsufficientStockError as e:
            logger.warning(f"Conversion of {quotation.quotation_number} blocked: {e.message}")
            raise

        with unit_of_work(self.db):
            order = SalesOrder(
                quotation_id=quotation.id,
                customer_id=quotation.customer_id,
                order_date=date.today(),
                expected_delivery_date=expected_delivery_date,
                status=SalesOrderStatus.PENDING.value,
                notes=notes or quotation.notes,
                subtotal=quotation.subtotal,
                discount_amount=quotation.discount_amount,
                tax_amount=quotation.tax_amount,
                total_amount=quotation.total_amount,
                created_by=self.current_user.id if self.current_user else None,
                items=copy_line_items(quotation.items, SalesOrderItem),
            )
            DocumentNumberAllocator(self.db).insert(order, "order_number", SALES_ORDER_PREFIX)

            # Informational only: reservations do not change stock on hand
            for item in order.items:
                if item.product_id is None:
                    continue
                product = self.stock.get_product(item.product_id)
                self.stock.apply_movement(
                    product,
                    MovementType.RESERVATION,
                    Decimal("0"),
                    reference_type="sales_order",
                    reference_id=order.id,
                    reference_number=order.order_number,
                    notes=f"Reserved {item.quantity} for {order.order_number} from {quotation.quotation_number}",
                )

            quotation.status = QuotationStatus.CONVERTED.value

        logger.info(f"Quotation {quotation.quotation_number} converted to sales order {order.order_number}")
        return order
