"""
Tests for Product Categories
Hierarchy rules, deletion guards and the category tree
"""
from decimal import Decimal
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, NotFoundError, ValidationError
from qms.core.pagination import CursorParams
from qms.schemas.product import ProductCategoryCreate, ProductCategoryUpdate, ProductCreate
from qms.services.category_service import ProductCategoryService
from qms.services.product_service import ProductService


def make_category(db_session: Session, name: str, parent=None, is_active: bool = True):
    return ProductCategoryService(db_session).create(ProductCategoryCreate(
        name=name,
        parent_id=parent.id if parent else None,
        is_active=is_active,
    ))


class TestProductCategoryService:
    """Test suite for ProductCategoryService"""

    def test_unknown_parent(self, db_session: Session):
        with pytest.raises(NotFoundError):
            ProductCategoryService(db_session).create(ProductCategoryCreate(name="Orphan", parent_id=42))

    def test_duplicate_name_under_same_parent(self, db_session: Session):
        hardware = make_category(db_session, "Hardware")
        make_category(db_session, "Fasteners", parent=hardware)

        with pytest.raises(ConflictError):
            make_category(db_session, "Fasteners", parent=hardware)
        assert make_category(db_session, "Fasteners").parent_id is None

    def test_cannot_move_under_own_descendant(self, db_session: Session):
        hardware = make_category(db_session, "Hardware")
        fasteners = make_category(db_session, "Fasteners", parent=hardware)
        screws = make_category(db_session, "Screws", parent=fasteners)
        service = ProductCategoryService(db_session)

        with pytest.raises(ValidationError):
            service.update(hardware.id, ProductCategoryUpdate(parent_id=screws.id))
        with pytest.raises(ValidationError):
            service.update(hardware.id, ProductCategoryUpdate(parent_id=hardware.id))

    def test_list_hides_inactive_by_default(self, db_session: Session):
        make_category(db_session, "Hardware")
        make_category(db_session, "Legacy", is_active=False)
        service = ProductCategoryService(db_session)

        assert [c.name for c in service.list(CursorParams()).items] == ["Hardware"]
        assert len(service.list(CursorParams(), include_inactive=True).items) == 2

    def test_delete_refused_with_products_or_children(self, db_session: Session):
        hardware = make_category(db_session, "Hardware")
        fasteners = make_category(db_session, "Fasteners", parent=hardware)
        ProductService(db_session).create(ProductCreate(
            sku="BOLT-10", name="Bolt M10", category_id=fasteners.id, selling_price=Decimal("1.20"),
        ))
        service = ProductCategoryService(db_session)

        with pytest.raises(ConflictError, match="subcategories"):
            service.delete(hardware.id)
        with pytest.raises(ConflictError, match="products"):
            service.delete(fasteners.id)

    def test_delete_empty_category(self, db_session: Session):
        spare = make_category(db_session, "Spare")
        service = ProductCategoryService(db_session)

        service.delete(spare.id)

        with pytest.raises(NotFoundError):
            service.get(spare.id)

    def test_tree_nests_active_categories(self, db_session: Session):
        hardware = make_category(db_session, "Hardware")
        fasteners = make_category(db_session, "Fasteners", parent=hardware)
        make_category(db_session, "Screws", parent=fasteners)
        make_category(db_session, "Adhesives", parent=hardware)
        legacy = make_category(db_session, "Legacy", is_active=False)
        make_category(db_session, "Old Tools", parent=legacy)

        tree = ProductCategoryService(db_session).tree()

        assert [node["name"] for node in tree] == ["Hardware"]
        assert [node["name"] for node in tree[0]["children"]] == ["Adhesives", "Fasteners"]
        fastener_node = tree[0]["children"][1]
        assert [node["name"] for node in fastener_node["children"]] == ["Screws"]

    def test_product_with_unknown_category(self, db_session: Session):
        with pytest.raises(NotFoundError):
            ProductService(db_session).create(ProductCreate(sku="X-1", name="Mystery", category_id=77))


class TestProductCategoryAPI:
    def test_detail_includes_parent_and_children(self, client: TestClient, admin_headers: Dict[str, str]):
        parent = client.post("/api/v1/product-categories", json={"name": "Electrical"}, headers=admin_headers)
        assert parent.status_code == 201, parent.text
        parent_id = parent.json()["data"]["id"]
        child = client.post(
            "/api/v1/product-categories", json={"name": "Cables", "parent_id": parent_id}, headers=admin_headers
        )
        child_id = child.json()["data"]["id"]

        parent_detail = client.get(f"/api/v1/product-categories/{parent_id}", headers=admin_headers).json()["data"]
        child_detail = client.get(f"/api/v1/product-categories/{child_id}", headers=admin_headers).json()["data"]

        assert [c["name"] for c in parent_detail["children"]] == ["Cables"]
        assert child_detail["parent"]["name"] == "Electrical"

    def test_tree_route(self, client: TestClient, sales_headers: Dict[str, str], db_session: Session):
        make_category(db_session, "Electrical")

        response = client.get("/api/v1/product-categories/tree/all", headers=sales_headers)

        assert response.status_code == 200
        assert response.json()["data"][0]["children"] == []

    def test_sales_cannot_create(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.post("/api/v1/product-categories", json={"name": "Tools"}, headers=sales_headers)

        assert response.status_code == 403
