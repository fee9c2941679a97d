"""
Tests for Stock Movement Services
Movement log, product stock and reconciliation
"""
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, InsufficientStockError
from qms.core.pagination import CursorParams
from qms.models.enums import MovementType
from qms.models.product import Product, StockMovement
from qms.schemas.product import ProductCreate, StockMovementCreate
from qms.services.product_service import ProductService
from qms.services.stock.stock_movements import StockMovementsService, signed_quantity


class TestSignedQuantity:
    def test_directions(self):
        assert signed_quantity(MovementType.PURCHASE, Decimal("4")) == Decimal("4")
        assert signed_quantity(MovementType.SALE, Decimal("4")) == Decimal("-4")
        assert signed_quantity(MovementType.ADJUSTMENT_OUT, Decimal("1")) == Decimal("-1")
        assert signed_quantity(MovementType.RESERVATION, Decimal("9")) == Decimal("0")


class TestProductService:
    """Test suite for ProductService"""

    def test_opening_stock_is_a_movement(self, db_session: Session, product):
        movements = db_session.query(StockMovement).filter(StockMovement.product_id == product.id).all()

        assert product.current_stock == Decimal("5")
        assert len(movements) == 1
        assert movements[0].movement_type == "adjustment_in"
        assert movements[0].reference_type == "opening_balance"

    def test_duplicate_sku(self, db_session: Session, product):
        with pytest.raises(ConflictError):
            ProductService(db_session).create(ProductCreate(sku="WID-001", name="Another widget"))

    def test_product_with_movements_cannot_be_deleted(self, db_session: Session, product):
        with pytest.raises(ConflictError):
            ProductService(db_session).delete(product.id)


class TestStockMovementsService:
    """Test suite for StockMovementsService"""

    def test_record_inbound_updates_average_cost(self, db_session: Session, product):
        service = StockMovementsService(db_session)

        movement = service.record_movement(StockMovementCreate(
            product_id=product.id,
            movement_type=MovementType.PURCHASE,
            quantity=Decimal("5"),
            unit_cost=Decimal("80.00"),
        ))
        refreshed = db_session.get(Product, product.id)

        assert movement.stock_after == Decimal("10")
        assert refreshed.current_stock == Decimal("10")
        assert refreshed.average_cost == Decimal("70")
        assert refreshed.last_purchase_price == Decimal("80.00")

    def test_outbound_beyond_stock_rejected(self, db_session: Session, product):
        service = StockMovementsService(db_session)

        with pytest.raises(InsufficientStockError):
            service.record_movement(StockMovementCreate(
                product_id=product.id,
                movement_type=MovementType.OUT,
                quantity=Decimal("6"),
            ))

        assert db_session.get(Product, product.id).current_stock == Decimal("5")
        assert db_session.query(StockMovement).count() == 1

    def test_low_stock(self, db_session: Session, product):
        service = StockMovementsService(db_session)
        service.record_movement(StockMovementCreate(
            product_id=product.id,
            movement_type=MovementType.ADJUSTMENT_OUT,
            quantity=Decimal("4"),
        ))

        low = service.low_stock()

        assert [p.sku for p in low] == ["WID-001"]
        assert low[0].is_low_stock is True

    def test_history_newest_first(self, db_session: Session, product):
        service = StockMovementsService(db_session)
        service.record_movement(StockMovementCreate(
            product_id=product.id, movement_type=MovementType.IN, quantity=Decimal("1"),
        ))

        history = service.product_history(product.id)

        assert history["product"].id == product.id
        assert [m.movement_type for m in history["movements"]] == ["in", "adjustment_in"]

    def test_list_filters_by_type(self, db_session: Session, product):
        service = StockMovementsService(db_session)
        service.record_movement(StockMovementCreate(
            product_id=product.id, movement_type=MovementType.IN, quantity=Decimal("1"),
        ))

        page = service.list_movements(CursorParams(limit=10), movement_type=MovementType.IN)

        assert len(page.items) == 1
        assert page.has_more is False

    def test_reconcile_reports_and_corrects(self, db_session: Session, product):
        service = StockMovementsService(db_session)
        # Drift the projection away from the log
        db_product = db_session.get(Product, product.id)
        db_product.current_stock = Decimal("7")
        db_session.commit()

        report = service.reconcile()

        assert report["checked"] == 1
        assert report["applied"] is False
        assert report["discrepancies"][0]["difference"] == Decimal("2")

        applied = service.reconcile(apply=True)

        assert applied["applied"] is True
        assert db_session.get(Product, product.id).current_stock == Decimal("5")
        assert service.reconcile()["discrepancies"] == []

    def test_reconcile_single_product_leaves_others(self, db_session: Session, product):
        other = ProductService(db_session).create(ProductCreate(sku="BOLT-01", name="Bolt", opening_stock=Decimal("10")))
        for product_id, drifted in ((product.id, "1"), (other.id, "12")):
            db_session.get(Product, product_id).current_stock = Decimal(drifted)
        db_session.commit()

        report = StockMovementsService(db_session).reconcile(product_id=product.id, apply=True)

        assert report["checked"] == 1
        assert report["discrepancies"][0]["computed_stock"] == Decimal("5")
        assert db_session.get(Product, product.id).current_stock == Decimal("5")
        assert db_session.get(Product, other.id).current_stock == Decimal("12")

    def test_reconcile_counts_shipments(self, db_session: Session, product):
        service = StockMovementsService(db_session)
        service.record_movement(StockMovementCreate(product_id=product.id, movement_type=MovementType.SALE, quantity=Decimal("2")))

        assert service.computed_stock_levels(product.id) == {product.id: Decimal("3")}
        assert service.reconcile()["discrepancies"] == []
