"""
Tests for Delivery Challans
Challan numbering, purchase order checks and status tracking
"""
from datetime import date
from decimal import Decimal
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from qms.core.pagination import CursorParams
from qms.schemas.common import LineItemCreate
from qms.schemas.delivery_challan import DeliveryChallanCreate
from qms.schemas.purchase_order import PurchaseOrderCreate
from qms.services.purchasing.delivery_challans import DeliveryChallanService
from qms.services.purchasing.purchase_orders import PurchaseOrderService


@pytest.fixture
def purchase_order(db_session: Session, vendor):
    return PurchaseOrderService(db_session).create(PurchaseOrderCreate(
        vendor_id=vendor.id,
        items=[LineItemCreate(description="Packing boxes", quantity=Decimal("20"), unit_price=Decimal("3.50"))],
    ))


class TestDeliveryChallanService:
    """Test suite for DeliveryChallanService"""

    def test_number_allocated_when_omitted(self, db_session: Session, purchase_order):
        challan = DeliveryChallanService(db_session).create(DeliveryChallanCreate(
            purchase_order_id=purchase_order.id,
            contact_person="Imran",
        ))

        assert challan.challan_number == f"DC-{date.today().year}-001"
        assert challan.status == "generated"
        assert challan.purchase_order_id == purchase_order.id

    def test_supplied_number_must_be_unique(self, db_session: Session, purchase_order):
        service = DeliveryChallanService(db_session)
        service.create(DeliveryChallanCreate(challan_number="CH-7781", purchase_order_id=purchase_order.id))

        with pytest.raises(ConflictError):
            service.create(DeliveryChallanCreate(challan_number="CH-7781", purchase_order_id=purchase_order.id))

    def test_unknown_purchase_order(self, db_session: Session):
        with pytest.raises(NotFoundError):
            DeliveryChallanService(db_session).create(DeliveryChallanCreate(purchase_order_id=999))

    def test_cancelled_purchase_order_rejected(self, db_session: Session, purchase_order):
        PurchaseOrderService(db_session).set_status(purchase_order.id, "cancelled")

        with pytest.raises(InvalidStateError):
            DeliveryChallanService(db_session).create(DeliveryChallanCreate(purchase_order_id=purchase_order.id))

    def test_delivered_stamps_date_and_is_final(self, db_session: Session, purchase_order):
        service = DeliveryChallanService(db_session)
        challan = service.create(DeliveryChallanCreate(purchase_order_id=purchase_order.id))

        service.set_status(challan.id, "dispatched")
        delivered = service.set_status(challan.id, "delivered")

        assert delivered.status == "delivered"
        assert delivered.delivery_date == date.today()
        with pytest.raises(InvalidStateError):
            service.set_status(challan.id, "in_transit")

    def test_list_filters(self, db_session: Session, purchase_order):
        service = DeliveryChallanService(db_session)
        service.create(DeliveryChallanCreate(challan_number="CH-100", purchase_order_id=purchase_order.id))
        second = service.create(DeliveryChallanCreate(challan_number="CH-200", purchase_order_id=purchase_order.id))
        service.set_status(second.id, "dispatched")

        by_search = service.list(CursorParams(), search="CH-1")
        by_status = service.list(CursorParams(), status="dispatched")

        assert [c.challan_number for c in by_search.items] == ["CH-100"]
        assert [c.challan_number for c in by_status.items] == ["CH-200"]


class TestDeliveryChallanAPI:
    def test_create_and_view_detail(self, client: TestClient, sales_headers: Dict[str, str], purchase_order):
        created = client.post(
            "/api/v1/delivery-challans",
            json={"purchase_order_id": purchase_order.id, "delivery_address": "Warehouse 2"},
            headers=sales_headers,
        )
        assert created.status_code == 201, created.text
        challan_id = created.json()["data"]["id"]
        upload = client.post(
            "/api/v1/documents/upload",
            data={"entity_type": "delivery_challan", "entity_id": str(challan_id)},
            files={"file": ("signed-challan.pdf", b"%PDF-1.4 challan", "application/pdf")},
            headers=sales_headers,
        )
        assert upload.status_code == 201, upload.text

        detail = client.get(f"/api/v1/delivery-challans/{challan_id}", headers=sales_headers)

        assert detail.status_code == 200
        data = detail.json()["data"]
        assert data["challan"]["delivery_address"] == "Warehouse 2"
        assert data["purchase_order"]["po_number"] == purchase_order.po_number
        assert [a["file_name"] for a in data["attachments"]] == ["signed-challan.pdf"]

    def test_sales_cannot_change_status(self, client: TestClient, sales_headers, finance_headers, purchase_order):
        created = client.post(
            "/api/v1/delivery-challans", json={"purchase_order_id": purchase_order.id}, headers=sales_headers
        )
        challan_id = created.json()["data"]["id"]

        denied = client.patch(
            f"/api/v1/delivery-challans/{challan_id}/status", json={"status": "dispatched"}, headers=sales_headers
        )
        allowed = client.patch(
            f"/api/v1/delivery-challans/{challan_id}/status", json={"status": "dispatched"}, headers=finance_headers
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["data"]["status"] == "dispatched"

    def test_invalid_status_rejected(self, client: TestClient, finance_headers, purchase_order):
        created = client.post(
            "/api/v1/delivery-challans", json={"purchase_order_id": purchase_order.id}, headers=finance_headers
        )
        response = client.patch(
            f"/api/v1/delivery-challans/{created.json()['data']['id']}/status",
            json={"status": "lost"},
            headers=finance_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
