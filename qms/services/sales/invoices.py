"""
Invoices Service
Manual invoicing, invoicing from sales orders, payment and FBR sync status
"""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from qms.core.config import settings
from qms.core.database import unit_of_work
from qms.core.exceptions import ConflictError, InvalidStateError, NotFoundError, QMSException, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import FbrSyncStatus, InvoiceStatus, SalesOrderStatus, enum_value
from qms.models.invoice import Invoice, InvoiceItem
from qms.models.party import Customer
from qms.models.sales_order import SalesOrder
from qms.services.numbering import INVOICE_PREFIX, DocumentNumberAllocator
from qms.services.totals import apply_totals, build_line_items, copy_line_items

logger = get_logger("business")

SORTABLE = {
    "created_at": Invoice.created_at,
    "invoice_date": Invoice.invoice_date,
    "due_date": Invoice.due_date,
    "invoice_number": Invoice.invoice_number,
    "total_amount": Invoice.total_amount,
}


class InvoiceService:
    """
    Invoice processing

    An order is invoiced at most once: the lookup below is backed by a
    unique constraint on invoices.sales_order_id.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get(self, invoice_id: int) -> Invoice:
        invoice = (
            self.db.query(Invoice)
            .options(selectinload(Invoice.items))
            .filter(Invoice.id == invoice_id)
            .first()
        )
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def find_for_order(self, order_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.sales_order_id == order_id).first()

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        fbr_sync_status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CursorPage:
        query = self.db.query(Invoice)
        if status:
            query = query.filter(Invoice.status == enum_value(status))
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if fbr_sync_status:
            query = query.filter(Invoice.fbr_sync_status == enum_value(fbr_sync_status))
        if date_from:
            query = query.filter(Invoice.invoice_date >= date_from)
        if date_to:
            query = query.filter(Invoice.invoice_date <= date_to)
        return paginate(query, Invoice, params, SORTABLE)

    def _default_due_date(self, invoice_date: date, payment_terms: Optional[int]) -> date:
        days = payment_terms if payment_terms is not None else settings.INVOICE_DUE_DAYS
        return invoice_date + timedelta(days=days)

    def create(self, invoice_in) -> Invoice:
        """Create a manual draft invoice"""
        customer = self.db.get(Customer, invoice_in.customer_id)
        if not customer:
            raise NotFoundError("Customer", invoice_in.customer_id)
        if invoice_in.sales_order_id is not None:
            order = self.db.get(SalesOrder, invoice_in.sales_order_id)
            if not order:
                raise NotFoundError("Sales order", invoice_in.sales_order_id)
            existing = self.find_for_order(order.id)
            if existing:
                raise ConflictError(f"Sales order {order.order_number} is already invoiced by {existing.invoice_number}")

        payment_terms = invoice_in.payment_terms if invoice_in.payment_terms is not None else customer.payment_terms
        with unit_of_work(self.db):
            items, totals = build_line_items(self.db, InvoiceItem, invoice_in.items)
            invoice = Invoice(
                customer_id=customer.id,
                sales_order_id=invoice_in.sales_order_id,
                invoice_date=invoice_in.invoice_date,
                due_date=invoice_in.due_date or self._default_due_date(invoice_in.invoice_date, payment_terms),
                payment_terms=payment_terms,
                status=InvoiceStatus.DRAFT.value,
                fbr_sync_status=FbrSyncStatus.PENDING.value,
                notes=invoice_in.notes,
                created_by=self.user_id,
                items=items,
            )
            apply_totals(invoice, totals)
            DocumentNumberAllocator(self.db).insert(invoice, "invoice_number", INVOICE_PREFIX)

        logger.info(f"Invoice {invoice.invoice_number} created for customer {customer.id}")
        return self.get(invoice.id)

    def build_from_order(
        self,
        order: SalesOrder,
        status: InvoiceStatus,
        invoice_date: Optional[date] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        """
        Create an invoice with snapshot copies of the order's items and totals.

        Flushes but does not commit; the caller owns the transaction.
        """
        invoice_date = invoice_date or date.today()
        invoice = Invoice(
            customer_id=order.customer_id,
            sales_order_id=order.id,
            invoice_date=invoice_date,
            due_date=due_date or invoice_date + timedelta(days=settings.INVOICE_DUE_DAYS),
            payment_terms=settings.INVOICE_DUE_DAYS,
            status=enum_value(status),
            fbr_sync_status=FbrSyncStatus.PENDING.value,
            notes=notes,
            subtotal=order.subtotal,
            discount_amount=order.discount_amount,
            tax_amount=order.tax_amount,
            total_amount=order.total_amount,
            created_by=self.user_id,
            items=copy_line_items(order.items, InvoiceItem),
        )
        DocumentNumberAllocator(self.db).insert(invoice, "invoice_number", INVOICE_PREFIX)
        return invoice

    def create_from_order(self, order_id: int, data=None) -> Invoice:
        order = self.db.get(SalesOrder, order_id)
        if not order:
            raise NotFoundError("Sales order", order_id)
        if order.status == SalesOrderStatus.CANCELLED.value:
            raise InvalidStateError(f"Sales order {order.order_number} is cancelled and cannot be invoiced")
        existing = self.find_for_order(order.id)
        if existing:
            raise ConflictError(f"Sales order {order.order_number} is already invoiced by {existing.invoice_number}")

        with unit_of_work(self.db):
            invoice = self.build_from_order(
                order,
                InvoiceStatus.DRAFT,
                invoice_date=getattr(data, "invoice_date", None),
                due_date=getattr(data, "due_date", None),
                notes=getattr(data, "notes", None),
            )
            order.status = SalesOrderStatus.INVOICED.value

        logger.info(f"Invoice {invoice.invoice_number} created from sales order {order.order_number}")
        return self.get(invoice.id)

    def auto_generate(self) -> Dict:
        """Invoice every delivered order that has no invoice yet"""
        invoiced_orders = self.db.query(Invoice.sales_order_id).filter(Invoice.sales_order_id.isnot(None))
        orders = (
            self.db.query(SalesOrder)
            .filter(
                SalesOrder.status == SalesOrderStatus.DELIVERED.value,
                SalesOrder.id.notin_(invoiced_orders),
            )
            .order_by(SalesOrder.id)
            .all()
        )

        generated, errors = [], []
        for order in orders:
            try:
                with self.db.begin_nested():
                    invoice = self.build_from_order(
                        order,
                        InvoiceStatus.SENT,
                        due_date=(order.delivery_date or date.today()) + timedelta(days=settings.INVOICE_DUE_DAYS),
                        notes=f"Auto-generated invoice for delivered order {order.order_number}",
                    )
                    order.status = SalesOrderStatus.INVOICED.value
                generated.append(invoice.invoice_number)
            except (QMSException, SQLAlchemyError) as e:
                logger.error(f"Auto-invoicing failed for order {order.order_number}: {e}")
                errors.append({"order_number": order.order_number, "error": str(e)})
        self.db.commit()

        logger.info(f"Auto-generated {len(generated)} invoices, {len(errors)} failures")
        return {"generated": generated, "errors": errors}

    def set_status(self, invoice_id: int, status) -> Invoice:
        invoice = self.get(invoice_id)
        status = enum_value(status)
        if invoice.status == InvoiceStatus.CANCELLED.value and status != InvoiceStatus.CANCELLED.value:
            raise InvalidStateError(f"Invoice {invoice.invoice_number} is cancelled")
        if status == InvoiceStatus.PAID.value:
            return self.mark_paid(invoice_id)
        invoice.status = status
        self.db.commit()
        logger.info(f"Invoice {invoice.invoice_number} status -> {status}")
        return self.get(invoice_id)

    def mark_paid(self, invoice_id: int) -> Invoice:
        invoice = self.get(invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvalidStateError(f"Invoice {invoice.invoice_number} is cancelled")
        invoice.status = InvoiceStatus.PAID.value
        invoice.paid_amount = invoice.total_amount
        self.db.commit()
        logger.info(f"Invoice {invoice.invoice_number} marked paid")
        return self.get(invoice_id)

    def update_fbr_status(self, invoice_id: int, fbr_sync_status, fbr_reference: Optional[str] = None) -> Invoice:
        invoice = self.get(invoice_id)
        fbr_sync_status = enum_value(fbr_sync_status)
        if fbr_sync_status == FbrSyncStatus.SYNCED.value and not (fbr_reference or invoice.fbr_reference):
            raise ValidationError("An FBR reference is required to mark an invoice as synced")

        invoice.fbr_sync_status = fbr_sync_status
        if fbr_reference:
            invoice.fbr_reference = fbr_reference
        invoice.fbr_sync_date = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Invoice {invoice.invoice_number} FBR status -> {fbr_sync_status}")
        return self.get(invoice_id)

    def send_reminder(self, invoice_id: int) -> Invoice:
        """Record a payment reminder; delivery of the message is outside this service"""
        invoice = self.get(invoice_id)
        if invoice.status in (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value):
            raise InvalidStateError(f"Invoice {invoice.invoice_number} is {invoice.status}; no reminder needed")
        if not invoice.customer or not invoice.customer.email:
            raise ValidationError("Customer email not found")

        invoice.last_reminder_sent = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Payment reminder for {invoice.invoice_number} queued to {invoice.customer.email}")
        return self.get(invoice_id)

    def delete(self, invoice_id: int) -> None:
        invoice = self.get(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise InvalidStateError(f"Invoice {invoice.invoice_number} is {invoice.status}; only drafts can be deleted")
        self.db.delete(invoice)
        self.db.commit()
        logger.info(f"Invoice {invoice.invoice_number} deleted")
