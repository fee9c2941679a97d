"""
Vendor Bills Service
Payables from purchase orders and standalone expenses, plus bill payments
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from qms.core.config import settings
from qms.core.database import unit_of_work
from qms.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import PurchaseOrderStatus, VendorBillStatus, enum_value
from qms.models.party import Vendor
from qms.models.purchase_order import PurchaseOrder
from qms.models.vendor_bill import BillPayment, VendorBill
from qms.services.totals import calculate_totals, to_decimal, to_money

logger = get_logger("business")

SORTABLE = {
    "created_at": VendorBill.created_at,
    "bill_date": VendorBill.bill_date,
    "due_date": VendorBill.due_date,
    "total_amount": VendorBill.total_amount,
}

BILLABLE_PO_STATUSES = (
    PurchaseOrderStatus.APPROVED.value,
    PurchaseOrderStatus.SENT.value,
    PurchaseOrderStatus.RECEIVED.value,
)


def bill_amounts_for_po(po: PurchaseOrder) -> Dict[str, Decimal]:
    """
    Bill amounts for a purchase order.

    Received quantities are billed when anything was received, otherwise
    the ordered quantities. The subtotal is net of line discounts.
    """
    use_received = any(to_decimal(item.received_quantity) > 0 for item in po.items)
    lines = [
        {
            "quantity": item.received_quantity if use_received else item.quantity,
            "unit_price": item.unit_price,
            "discount_percent": item.discount_percent,
            "tax_percent": item.tax_percent,
        }
        for item in po.items
    ]
    totals = calculate_totals(lines)
    return {
        "subtotal": to_money(totals.subtotal - totals.discount_amount),
        "tax_amount": to_money(totals.tax_amount),
        "total_amount": to_money(totals.total_amount),
    }


class VendorBillService:
    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get(self, bill_id: int) -> VendorBill:
        bill = (
            self.db.query(VendorBill)
            .options(selectinload(VendorBill.payments))
            .filter(VendorBill.id == bill_id)
            .first()
        )
        if not bill:
            raise NotFoundError("Vendor bill", bill_id)
        return bill

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        vendor_id: Optional[int] = None,
        bill_type: Optional[str] = None,
    ) -> CursorPage:
        query = self.db.query(VendorBill)
        if status:
            query = query.filter(VendorBill.status == enum_value(status))
        if vendor_id:
            query = query.filter(VendorBill.vendor_id == vendor_id)
        if bill_type == "purchase_order":
            query = query.filter(VendorBill.purchase_order_id.isnot(None))
        elif bill_type == "expense":
            query = query.filter(VendorBill.purchase_order_id.is_(None))
        elif bill_type:
            raise ValidationError("bill_type must be purchase_order or expense")
        return paginate(query, VendorBill, params, SORTABLE)

    def _require_vendor(self, vendor_id: int) -> Vendor:
        vendor = self.db.get(Vendor, vendor_id)
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        return vendor

    def _require_unique_number(self, bill_number: str) -> None:
        if self.db.query(VendorBill.id).filter(VendorBill.bill_number == bill_number).first():
            raise ConflictError(f"Vendor bill number {bill_number} already exists")

    def _due_date(self, bill_date: date, due_date: Optional[date]) -> date:
        return due_date or bill_date + timedelta(days=settings.BILL_DUE_DAYS)

    def create(self, bill_in) -> VendorBill:
        purchase_order_id = getattr(bill_in, "purchase_order_id", None)
        self._require_vendor(bill_in.vendor_id)
        self._require_unique_number(bill_in.bill_number)
        if purchase_order_id is None and not bill_in.expense_category:
            raise ValidationError("A bill without a purchase order needs an expense_category")
        if purchase_order_id is not None and not self.db.get(PurchaseOrder, purchase_order_id):
            raise NotFoundError("Purchase order", purchase_order_id)

        subtotal = to_money(bill_in.subtotal)
        tax_amount = to_money(bill_in.tax_amount)
        bill = VendorBill(
            bill_number=bill_in.bill_number,
            vendor_id=bill_in.vendor_id,
            purchase_order_id=purchase_order_id,
            bill_date=bill_in.bill_date,
            due_date=self._due_date(bill_in.bill_date, bill_in.due_date),
            status=VendorBillStatus.PENDING.value,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=subtotal + tax_amount,
            paid_amount=Decimal("0"),
            expense_category=bill_in.expense_category,
            description=bill_in.description,
            notes=bill_in.notes,
            created_by=self.user_id,
        )
        self.db.add(bill)
        self.db.commit()

        logger.info(f"Vendor bill {bill.bill_number} created, total {bill.total_amount}")
        return self.get(bill.id)

    def create_expense(self, expense_in) -> VendorBill:
        """Standalone expense bill, not tied to a purchase order"""
        return self.create(expense_in)

    def create_from_po(self, bill_in) -> VendorBill:
        po = (
            self.db.query(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .filter(PurchaseOrder.id == bill_in.purchase_order_id)
            .first()
        )
        if not po:
            raise NotFoundError("Purchase order", bill_in.purchase_order_id)

        existing = self.db.query(VendorBill).filter(VendorBill.purchase_order_id == po.id).first()
        if existing:
            raise ConflictError(f"Vendor bill {existing.bill_number} already exists for purchase order {po.po_number}")
        if po.status not in BILLABLE_PO_STATUSES:
            raise InvalidStateError(
                f"Purchase order {po.po_number} is {po.status}; only approved, sent or received orders can be billed"
            )

        bill_number = bill_in.bill_number or f"BILL-{po.po_number}"
        self._require_unique_number(bill_number)

        with unit_of_work(self.db):
            bill = VendorBill(
                bill_number=bill_number,
                vendor_id=po.vendor_id,
                purchase_order_id=po.id,
                bill_date=bill_in.bill_date,
                due_date=self._due_date(bill_in.bill_date, bill_in.due_date),
                status=VendorBillStatus.PENDING.value,
                paid_amount=Decimal("0"),
                notes=bill_in.notes,
                created_by=self.user_id,
                **bill_amounts_for_po(po),
            )
            self.db.add(bill)

        logger.info(f"Vendor bill {bill.bill_number} created from {po.po_number}, total {bill.total_amount}")
        return self.get(bill.id)

    def pending_purchase_orders(self) -> List[PurchaseOrder]:
        """Approved, sent or received purchase orders that have no bill yet"""
        billed = self.db.query(VendorBill.purchase_order_id).filter(VendorBill.purchase_order_id.isnot(None))
        return (
            self.db.query(PurchaseOrder)
            .filter(
                PurchaseOrder.status.in_(BILLABLE_PO_STATUSES),
                PurchaseOrder.id.notin_(billed),
            )
            .order_by(PurchaseOrder.po_date.desc(), PurchaseOrder.id.desc())
            .all()
        )

    def set_status(self, bill_id: int, status) -> VendorBill:
        bill = self.get(bill_id)
        status = enum_value(status)
        if status == VendorBillStatus.PAID.value and to_decimal(bill.paid_amount) < to_decimal(bill.total_amount):
            raise ValidationError("Record payments to settle a bill; it cannot be marked paid directly")

        previous = bill.status
        bill.status = status
        self.db.commit()
        logger.info(f"Vendor bill {bill.bill_number} status {previous} -> {status}")
        return self.get(bill_id)

    def record_payment(self, bill_id: int, payment_in) -> Dict:
        """
        Record a payment against a bill.

        The bill becomes paid once the paid amount reaches the total and
        approved otherwise. Paying more than the remaining amount is
        accepted with a warning unless ALLOW_BILL_OVERPAYMENT is off.

        Returns:
            bill, payment, remaining_amount and overpaid_amount
        """
        bill = self.get(bill_id)
        amount = to_money(payment_in.paid_amount)
        if amount <= 0:
            raise ValidationError("paid_amount must be greater than zero")

        total = to_decimal(bill.total_amount)
        new_paid = to_decimal(bill.paid_amount) + amount
        overpaid = max(new_paid - total, Decimal("0"))
        if overpaid > 0:
            if not settings.ALLOW_BILL_OVERPAYMENT:
                raise ValidationError(
                    f"Payment exceeds the remaining amount of {bill.bill_number}",
                    details={"remaining_amount": float(bill.remaining_amount), "paid_amount": float(amount)},
                )
            logger.warning(f"Vendor bill {bill.bill_number} overpaid by {overpaid}")

        with unit_of_work(self.db):
            bill.paid_amount = new_paid
            bill.status = VendorBillStatus.PAID.value if new_paid >= total else VendorBillStatus.APPROVED.value
            payment = BillPayment(
                vendor_bill_id=bill.id,
                amount=amount,
                payment_date=payment_in.payment_date,
                payment_method=payment_in.payment_method,
                payment_reference=payment_in.payment_reference,
                notes=payment_in.notes,
                created_by=self.user_id,
            )
            self.db.add(payment)

        logger.info(f"Payment of {amount} recorded on {bill.bill_number}, status {bill.status}")
        bill = self.get(bill_id)
        return {
            "bill": bill,
            "payment": payment,
            "remaining_amount": bill.remaining_amount,
            "overpaid_amount": overpaid,
        }
