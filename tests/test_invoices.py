"""
Tests for Invoice Service
Bulk invoicing of delivered orders, payment, FBR sync and reminders
"""
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from qms.core.exceptions import InvalidStateError, ValidationError
from qms.models.invoice import Invoice
from qms.models.sales_order import SalesOrder
from qms.schemas.common import LineItemCreate
from qms.schemas.party import CustomerCreate
from qms.schemas.sales_order import SalesOrderCreate
from qms.services.party_service import CustomerService
from qms.services.sales.invoices import InvoiceService
from qms.services.sales.sales_orders import SalesOrderService


def make_order(db_session: Session, customer, product, quantity="1"):
    return SalesOrderService(db_session).create(SalesOrderCreate(
        customer_id=customer.id,
        items=[LineItemCreate(product_id=product.id, quantity=Decimal(quantity), unit_price=Decimal("100.00"))],
    ))


def mark_delivered(db_session: Session, order) -> SalesOrder:
    """Leave an order delivered without an invoice, as after a failed auto-invoice"""
    db_order = db_session.get(SalesOrder, order.id)
    db_order.status = "delivered"
    db_session.commit()
    return db_order


class TestAutoGenerate:
    """Test suite for InvoiceService.auto_generate"""

    def test_invoices_delivered_orders_once(self, db_session: Session, customer, product):
        waiting = mark_delivered(db_session, make_order(db_session, customer, product))
        already = make_order(db_session, customer, product)
        existing = InvoiceService(db_session).create_from_order(already.id)
        mark_delivered(db_session, already)
        make_order(db_session, customer, product)

        result = InvoiceService(db_session).auto_generate()

        assert len(result["generated"]) == 1
        assert result["errors"] == []
        invoice = db_session.query(Invoice).filter(Invoice.sales_order_id == waiting.id).one()
        assert invoice.invoice_number == result["generated"][0]
        assert invoice.status == "sent"
        assert db_session.get(SalesOrder, waiting.id).status == "invoiced"
        assert db_session.query(Invoice).filter(Invoice.sales_order_id == already.id).one().id == existing.id
        assert db_session.query(Invoice).count() == 2

    def test_nothing_to_do(self, db_session: Session, customer, product):
        make_order(db_session, customer, product)

        assert InvoiceService(db_session).auto_generate() == {"generated": [], "errors": []}


class TestInvoiceLifecycle:
    """Test suite for payment, FBR and reminder operations"""

    def invoice_for(self, db_session: Session, customer, product):
        order = make_order(db_session, customer, product, quantity="2")
        return InvoiceService(db_session).create_from_order(order.id)

    def test_mark_paid(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)

        paid = InvoiceService(db_session).mark_paid(invoice.id)

        assert paid.status == "paid"
        assert paid.paid_amount == paid.total_amount == Decimal("200.00")

    def test_cancelled_invoice_cannot_be_paid(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)
        service = InvoiceService(db_session)
        service.set_status(invoice.id, "cancelled")

        with pytest.raises(InvalidStateError):
            service.mark_paid(invoice.id)

    def test_synced_requires_reference(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)
        service = InvoiceService(db_session)

        with pytest.raises(ValidationError):
            service.update_fbr_status(invoice.id, "synced")

        synced = service.update_fbr_status(invoice.id, "synced", "FBR-2024-0001")

        assert synced.fbr_sync_status == "synced"
        assert synced.fbr_reference == "FBR-2024-0001"
        assert synced.fbr_sync_date is not None

    def test_failed_sync_needs_no_reference(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)

        failed = InvoiceService(db_session).update_fbr_status(invoice.id, "failed")

        assert failed.fbr_sync_status == "failed"
        assert failed.fbr_reference is None

    def test_reminder_stamps_invoice(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)

        reminded = InvoiceService(db_session).send_reminder(invoice.id)

        assert reminded.last_reminder_sent is not None

    def test_reminder_needs_customer_email(self, db_session: Session, product):
        walk_in = CustomerService(db_session).create(CustomerCreate(name="Walk-in Customer"))
        invoice = self.invoice_for(db_session, walk_in, product)

        with pytest.raises(ValidationError) as exc_info:
            InvoiceService(db_session).send_reminder(invoice.id)

        assert "email" in exc_info.value.message
        assert db_session.get(Invoice, invoice.id).last_reminder_sent is None

    def test_no_reminder_for_paid_invoice(self, db_session: Session, customer, product):
        invoice = self.invoice_for(db_session, customer, product)
        service = InvoiceService(db_session)
        service.mark_paid(invoice.id)

        with pytest.raises(InvalidStateError):
            service.send_reminder(invoice.id)
