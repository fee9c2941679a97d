"""
Tests for Quotation Services
Quotation lifecycle and conversion to sales orders
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from qms.core.exceptions import AlreadyConvertedError, InsufficientStockError, InvalidStateError, ValidationError
from qms.models.product import Product, StockMovement
from qms.models.quotation import Quotation
from qms.models.sales_order import SalesOrder, SalesOrderItem
from qms.schemas.common import LineItemCreate
from qms.schemas.quotation import QuotationCreate, QuotationUpdate
from qms.services.sales.conversion import QuotationConversionService
from qms.services.sales.quotations import QuotationService


def make_quotation(db_session: Session, customer, product, quantity="2") -> Quotation:
    return QuotationService(db_session).create(QuotationCreate(
        customer_id=customer.id,
        items=[
            LineItemCreate(
                product_id=product.id,
                quantity=Decimal(quantity),
                unit_price=Decimal("100.00"),
                discount_percent=Decimal("5"),
                tax_percent=Decimal("17"),
            ),
            LineItemCreate(description="Installation", quantity=Decimal("1"), unit_price=Decimal("50.00")),
        ],
    ))


class TestQuotationService:
    """Test suite for QuotationService"""

    def test_create_computes_totals(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)

        assert quotation.quotation_number.startswith("Q-")
        assert quotation.status == "draft"
        assert quotation.subtotal == Decimal("250.00")
        assert quotation.discount_amount == Decimal("10.00")
        assert quotation.tax_amount == Decimal("32.30")
        assert quotation.total_amount == Decimal("272.30")
        assert len(quotation.items) == 2

    def test_update_replaces_items(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)

        updated = QuotationService(db_session).update(quotation.id, QuotationUpdate(
            items=[LineItemCreate(description="Consulting", quantity=Decimal("3"), unit_price=Decimal("10"))],
        ))

        assert len(updated.items) == 1
        assert updated.total_amount == Decimal("30.00")

    def test_cannot_mark_converted_directly(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)

        with pytest.raises(InvalidStateError):
            QuotationService(db_session).set_status(quotation.id, "converted")

    def test_update_checks_dates_against_stored_values(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)
        earlier = quotation.quotation_date - timedelta(days=1)

        with pytest.raises(ValidationError):
            QuotationService(db_session).update(quotation.id, QuotationUpdate(valid_until=earlier))

        assert db_session.get(Quotation, quotation.id).valid_until is None

    def test_update_schema_rejects_inverted_dates(self):
        with pytest.raises(SchemaValidationError):
            QuotationUpdate(quotation_date=date(2024, 5, 10), valid_until=date(2024, 5, 1))

    @pytest.mark.parametrize("closed", ["rejected", "expired"])
    def test_rejected_and_expired_are_final(self, db_session: Session, customer, product, closed):
        quotation = make_quotation(db_session, customer, product)
        service = QuotationService(db_session)
        service.set_status(quotation.id, closed)

        with pytest.raises(InvalidStateError):
            service.set_status(quotation.id, "approved")

        assert db_session.get(Quotation, quotation.id).status == closed

    def test_approved_quotation_cannot_be_deleted(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)
        QuotationService(db_session).set_status(quotation.id, "approved")

        with pytest.raises(InvalidStateError):
            QuotationService(db_session).delete(quotation.id)


class TestQuotationConversion:
    """Test suite for QuotationConversionService"""

    def test_convert_copies_items_and_totals(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)

        order = QuotationConversionService(db_session).convert(quotation.id)

        assert order.order_number.startswith("SO-")
        assert order.status == "pending"
        assert order.quotation_id == quotation.id
        assert order.total_amount == quotation.total_amount
        assert [item.description for item in order.items] == ["Widget", "Installation"]
        assert db_session.get(Quotation, quotation.id).status == "converted"

    def test_convert_records_reservation_without_moving_stock(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)

        order = QuotationConversionService(db_session).convert(quotation.id)

        reservations = db_session.query(StockMovement).filter(StockMovement.movement_type == "reservation").all()
        assert len(reservations) == 1
        assert reservations[0].reference_number == order.order_number
        assert reservations[0].quantity == 0
        assert db_session.get(Product, product.id).current_stock == Decimal("5")

    def test_insufficient_stock_writes_nothing(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product, quantity="10")

        with pytest.raises(InsufficientStockError) as exc_info:
            QuotationConversionService(db_session).convert(quotation.id)

        assert exc_info.value.code == "INSUFFICIENT_STOCK"
        assert exc_info.value.details["current_stock"] == 5
        assert exc_info.value.details["requested_quantity"] == 10
        assert exc_info.value.details["shortfall"] == 5
        assert db_session.query(SalesOrder).count() == 0
        assert db_session.query(SalesOrderItem).count() == 0
        assert db_session.get(Quotation, quotation.id).status == "draft"

    def test_convert_twice(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)
        QuotationConversionService(db_session).convert(quotation.id)

        with pytest.raises(AlreadyConvertedError):
            QuotationConversionService(db_session).convert(quotation.id)

        assert db_session.query(SalesOrder).count() == 1

    def test_rejected_quotation_cannot_convert(self, db_session: Session, customer, product):
        quotation = make_quotation(db_session, customer, product)
        QuotationService(db_session).set_status(quotation.id, "rejected")

        with pytest.raises(InvalidStateError):
            QuotationConversionService(db_session).convert(quotation.id)
