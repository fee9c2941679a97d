"""
Purchase Orders Service
Purchase order entry, approval and goods receipt
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from qms.core.database import unit_of_work
from qms.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import MovementType, PurchaseOrderStatus, enum_value
from qms.models.party import Vendor
from qms.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from qms.services.numbering import PURCHASE_ORDER_PREFIX, DocumentNumberAllocator
from qms.services.stock.stock_movements import StockMovementsService
from qms.services.totals import apply_totals, build_line_items, to_decimal

logger = get_logger("business")

SORTABLE = {
    "created_at": PurchaseOrder.created_at,
    "po_date": PurchaseOrder.po_date,
    "po_number": PurchaseOrder.po_number,
    "total_amount": PurchaseOrder.total_amount,
}

EDITABLE_STATUSES = {
    PurchaseOrderStatus.DRAFT.value,
    PurchaseOrderStatus.PENDING_APPROVAL.value,
    PurchaseOrderStatus.APPROVED.value,
    PurchaseOrderStatus.SENT.value,
}
RECEIVABLE_STATUSES = {PurchaseOrderStatus.APPROVED.value, PurchaseOrderStatus.SENT.value}
CLOSED_STATUSES = {PurchaseOrderStatus.CLOSED.value, PurchaseOrderStatus.CANCELLED.value}


class PurchaseOrderService:
    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get(self, po_id: int) -> PurchaseOrder:
        po = (
            self.db.query(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .filter(PurchaseOrder.id == po_id)
            .first()
        )
        if not po:
            raise NotFoundError("Purchase order", po_id)
        return po

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        vendor_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CursorPage:
        query = self.db.query(PurchaseOrder)
        if status:
            query = query.filter(PurchaseOrder.status == enum_value(status))
        if vendor_id:
            query = query.filter(PurchaseOrder.vendor_id == vendor_id)
        if date_from:
            query = query.filter(PurchaseOrder.po_date >= date_from)
        if date_to:
            query = query.filter(PurchaseOrder.po_date <= date_to)
        return paginate(query, PurchaseOrder, params, SORTABLE)

    def _require_vendor(self, vendor_id: int) -> Vendor:
        vendor = self.db.get(Vendor, vendor_id)
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        return vendor

    def create(self, po_in) -> PurchaseOrder:
        self._require_vendor(po_in.vendor_id)
        status = enum_value(po_in.status)
        if status not in (PurchaseOrderStatus.DRAFT.value, PurchaseOrderStatus.PENDING_APPROVAL.value):
            raise ValidationError("New purchase orders start as draft or pending_approval")

        with unit_of_work(self.db):
            items, totals = build_line_items(self.db, PurchaseOrderItem, po_in.items)
            po = PurchaseOrder(
                vendor_id=po_in.vendor_id,
                po_date=po_in.po_date,
                expected_delivery_date=po_in.expected_delivery_date,
                status=status,
                terms_conditions=po_in.terms_conditions,
                notes=po_in.notes,
                created_by=self.user_id,
                items=items,
            )
            apply_totals(po, totals)
            DocumentNumberAllocator(self.db).insert(po, "po_number", PURCHASE_ORDER_PREFIX)

        logger.info(f"Purchase order {po.po_number} created, total {po.total_amount}")
        return self.get(po.id)

    def update(self, po_id: int, po_in) -> PurchaseOrder:
        """Update header fields; items, when given, replace all items and totals are recomputed"""
        po = self.get(po_id)
        if po.status not in EDITABLE_STATUSES:
            raise InvalidStateError(f"Purchase order {po.po_number} is {po.status} and can no longer be edited")

        data = po_in.model_dump(exclude_unset=True, exclude={"items"})
        if "vendor_id" in data:
            self._require_vendor(data["vendor_id"])

        with unit_of_work(self.db):
            for key, value in data.items():
                setattr(po, key, value)
            if po_in.items is not None:
                if any(to_decimal(item.received_quantity) > 0 for item in po.items):
                    raise InvalidStateError(f"Purchase order {po.po_number} has receipts; items cannot be replaced")
                items, totals = build_line_items(self.db, PurchaseOrderItem, po_in.items)
                po.items = items
                apply_totals(po, totals)

        logger.info(f"Purchase order {po.po_number} updated")
        return self.get(po_id)

    def set_status(self, po_id: int, status) -> PurchaseOrder:
        po = self.get(po_id)
        status = enum_value(status)
        if po.status in CLOSED_STATUSES and status != po.status:
            raise InvalidStateError(f"Purchase order {po.po_number} is {po.status}")

        previous = po.status
        po.status = status
        if status == PurchaseOrderStatus.APPROVED.value:
            po.approved_by = self.user_id
            po.approved_at = datetime.now(timezone.utc)
        self.db.commit()

        logger.info(f"Purchase order {po.po_number} status {previous} -> {status}")
        return self.get(po_id)

    def receive(self, po_id: int, receipt_in) -> PurchaseOrder:
        """
        Book received quantities into stock.

        Each receipt line appends a purchase movement; the order becomes
        received once every item is fully received.
        """
        po = self.get(po_id)
        if po.status not in RECEIVABLE_STATUSES:
            raise InvalidStateError(f"Purchase order {po.po_number} is {po.status}; only approved or sent orders can be received")

        items_by_id = {item.id: item for item in po.items}
        stock = StockMovementsService(self.db, self.current_user)

        with unit_of_work(self.db):
            for line in receipt_in.items:
                item = items_by_id.get(line.item_id)
                if item is None:
                    raise NotFoundError("Purchase order item", line.item_id)
                quantity = to_decimal(line.quantity)
                if quantity > item.outstanding_quantity:
                    raise ValidationError(
                        f"Cannot receive {quantity} of '{item.description}'; only {item.outstanding_quantity} outstanding"
                    )
                item.received_quantity = to_decimal(item.received_quantity) + quantity

                if item.product_id is not None:
                    product = stock.get_product(item.product_id, lock=True)
                    stock.apply_movement(
                        product,
                        MovementType.PURCHASE,
                        quantity,
                        unit_cost=line.unit_cost if line.unit_cost is not None else item.unit_price,
                        reference_type="purchase_order",
                        reference_id=po.id,
                        reference_number=po.po_number,
                        notes=receipt_in.notes,
                        movement_date=receipt_in.received_date,
                    )

            if all(item.outstanding_quantity == Decimal("0") for item in po.items):
                po.status = PurchaseOrderStatus.RECEIVED.value

        logger.info(f"Goods received against {po.po_number}, status {po.status}")
        return self.get(po_id)

    def delete(self, po_id: int) -> None:
        po = self.get(po_id)
        if po.status != PurchaseOrderStatus.DRAFT.value:
            raise InvalidStateError(f"Purchase order {po.po_number} is {po.status}; only drafts can be deleted")
        self.db.delete(po)
        self.db.commit()
        logger.info(f"Purchase order {po.po_number} deleted")
