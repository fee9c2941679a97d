"""
Tests for Purchasing Services
Purchase orders, goods receipt and vendor bills
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from qms.core.config import settings
from qms.core.exceptions import ConflictError, InvalidStateError, ValidationError
from qms.models.product import Product
from qms.models.vendor_bill import BillPayment
from qms.schemas.common import LineItemCreate
from qms.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderReceive, ReceiptLine
from qms.schemas.vendor_bill import BillPaymentCreate, ExpenseBillCreate, VendorBillCreate, VendorBillFromPO
from qms.services.purchasing.purchase_orders import PurchaseOrderService
from qms.services.purchasing.vendor_bills import VendorBillService


def make_po(db_session: Session, vendor, product, quantity="10"):
    return PurchaseOrderService(db_session).create(PurchaseOrderCreate(
        vendor_id=vendor.id,
        items=[LineItemCreate(
            product_id=product.id,
            quantity=Decimal(quantity),
            unit_price=Decimal("50.00"),
            discount_percent=Decimal("10"),
            tax_percent=Decimal("10"),
        )],
    ))


def approved_po(db_session: Session, vendor, product, quantity="10"):
    po = make_po(db_session, vendor, product, quantity)
    return PurchaseOrderService(db_session).set_status(po.id, "approved")


class TestPurchaseOrderService:
    """Test suite for PurchaseOrderService"""

    def test_create_draft(self, db_session: Session, vendor, product):
        po = make_po(db_session, vendor, product)

        assert po.po_number.startswith("PO-")
        assert po.status == "draft"
        assert po.total_amount == Decimal("495.00")

    def test_cannot_create_approved(self, db_session: Session, vendor, product):
        with pytest.raises(ValidationError):
            PurchaseOrderService(db_session).create(PurchaseOrderCreate(
                vendor_id=vendor.id,
                status="approved",
                items=[LineItemCreate(description="Paper", quantity=Decimal("1"), unit_price=Decimal("5"))],
            ))

    def test_draft_cannot_be_received(self, db_session: Session, vendor, product):
        po = make_po(db_session, vendor, product)

        with pytest.raises(InvalidStateError):
            PurchaseOrderService(db_session).receive(po.id, PurchaseOrderReceive(
                items=[ReceiptLine(item_id=po.items[0].id, quantity=Decimal("1"))],
            ))

    def test_partial_then_full_receipt(self, db_session: Session, vendor, product):
        po = approved_po(db_session, vendor, product)
        service = PurchaseOrderService(db_session)
        item_id = po.items[0].id

        partial = service.receive(po.id, PurchaseOrderReceive(items=[ReceiptLine(item_id=item_id, quantity=Decimal("4"))]))

        assert partial.status == "approved"
        assert partial.items[0].received_quantity == Decimal("4")
        assert db_session.get(Product, product.id).current_stock == Decimal("9")

        full = service.receive(po.id, PurchaseOrderReceive(items=[ReceiptLine(item_id=item_id, quantity=Decimal("6"))]))

        assert full.status == "received"
        assert db_session.get(Product, product.id).current_stock == Decimal("15")

    def test_over_receipt_rejected(self, db_session: Session, vendor, product):
        po = approved_po(db_session, vendor, product)

        with pytest.raises(ValidationError):
            PurchaseOrderService(db_session).receive(po.id, PurchaseOrderReceive(
                items=[ReceiptLine(item_id=po.items[0].id, quantity=Decimal("11"))],
            ))

        assert db_session.get(Product, product.id).current_stock == Decimal("5")

    def test_only_drafts_deleted(self, db_session: Session, vendor, product):
        po = approved_po(db_session, vendor, product)

        with pytest.raises(InvalidStateError):
            PurchaseOrderService(db_session).delete(po.id)


class TestVendorBillService:
    """Test suite for VendorBillService"""

    def test_bill_from_po_uses_received_quantities(self, db_session: Session, vendor, product):
        po = approved_po(db_session, vendor, product)
        PurchaseOrderService(db_session).receive(po.id, PurchaseOrderReceive(
            items=[ReceiptLine(item_id=po.items[0].id, quantity=Decimal("4"))],
        ))

        bill = VendorBillService(db_session).create_from_po(VendorBillFromPO(purchase_order_id=po.id))

        # 4 x 50 less 10% discount, plus 10% tax
        assert bill.bill_number == f"BILL-{po.po_number}"
        assert bill.subtotal == Decimal("180.00")
        assert bill.tax_amount == Decimal("18.00")
        assert bill.total_amount == Decimal("198.00")
        assert bill.bill_type == "purchase_order"
        assert bill.due_date == bill.bill_date + timedelta(days=settings.BILL_DUE_DAYS)

    def test_one_bill_per_po(self, db_session: Session, vendor, product):
        po = approved_po(db_session, vendor, product)
        service = VendorBillService(db_session)
        service.create_from_po(VendorBillFromPO(purchase_order_id=po.id))

        with pytest.raises(ConflictError):
            service.create_from_po(VendorBillFromPO(purchase_order_id=po.id, bill_number="OTHER-1"))

    def test_draft_po_not_billable(self, db_session: Session, vendor, product):
        po = make_po(db_session, vendor, product)

        with pytest.raises(InvalidStateError):
            VendorBillService(db_session).create_from_po(VendorBillFromPO(purchase_order_id=po.id))

    def test_pending_purchase_orders(self, db_session: Session, vendor, product):
        billed = approved_po(db_session, vendor, product)
        waiting = approved_po(db_session, vendor, product)
        make_po(db_session, vendor, product)
        VendorBillService(db_session).create_from_po(VendorBillFromPO(purchase_order_id=billed.id))

        pending = VendorBillService(db_session).pending_purchase_orders()

        assert [po.id for po in pending] == [waiting.id]

    def test_bill_without_po_needs_category(self, db_session: Session, vendor):
        with pytest.raises(ValidationError):
            VendorBillService(db_session).create(VendorBillCreate(
                bill_number="VB-1", vendor_id=vendor.id, subtotal=Decimal("100"),
            ))

    def test_expense_bill(self, db_session: Session, vendor):
        bill = VendorBillService(db_session).create_expense(ExpenseBillCreate(
            bill_number="EXP-1",
            vendor_id=vendor.id,
            expense_category="Utilities",
            subtotal=Decimal("100.00"),
            tax_amount=Decimal("17.00"),
        ))

        assert bill.bill_type == "expense"
        assert bill.total_amount == Decimal("117.00")
        assert bill.status == "pending"

    def test_partial_then_full_payment(self, db_session: Session, vendor):
        service = VendorBillService(db_session)
        bill = service.create_expense(ExpenseBillCreate(
            bill_number="EXP-2", vendor_id=vendor.id, expense_category="Rent", subtotal=Decimal("1000.00"),
        ))

        partial = service.record_payment(bill.id, BillPaymentCreate(paid_amount=Decimal("400.00")))

        assert partial["bill"].status == "approved"
        assert partial["remaining_amount"] == Decimal("600.00")
        assert partial["overpaid_amount"] == 0

        full = service.record_payment(bill.id, BillPaymentCreate(paid_amount=Decimal("600.00")))

        assert full["bill"].status == "paid"
        assert full["remaining_amount"] == 0
        assert db_session.query(BillPayment).count() == 2

    def test_overpayment_is_flagged(self, db_session: Session, vendor):
        service = VendorBillService(db_session)
        bill = service.create_expense(ExpenseBillCreate(
            bill_number="EXP-3", vendor_id=vendor.id, expense_category="Rent", subtotal=Decimal("100.00"),
        ))

        result = service.record_payment(bill.id, BillPaymentCreate(paid_amount=Decimal("150.00")))

        assert result["bill"].status == "paid"
        assert result["overpaid_amount"] == Decimal("50.00")
        assert result["remaining_amount"] == 0

    def test_overpayment_can_be_disallowed(self, db_session: Session, vendor, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_BILL_OVERPAYMENT", False)
        service = VendorBillService(db_session)
        bill = service.create_expense(ExpenseBillCreate(
            bill_number="EXP-4", vendor_id=vendor.id, expense_category="Rent", subtotal=Decimal("100.00"),
        ))

        with pytest.raises(ValidationError):
            service.record_payment(bill.id, BillPaymentCreate(paid_amount=Decimal("150.00")))

        assert db_session.query(BillPayment).count() == 0

    def test_cannot_mark_unpaid_bill_paid(self, db_session: Session, vendor):
        service = VendorBillService(db_session)
        bill = service.create_expense(ExpenseBillCreate(
            bill_number="EXP-5", vendor_id=vendor.id, expense_category="Rent", subtotal=Decimal("100.00"),
        ))

        with pytest.raises(ValidationError):
            service.set_status(bill.id, "paid")
