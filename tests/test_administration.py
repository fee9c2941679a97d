"""
Tests for Administration
User accounts and company settings
"""
from decimal import Decimal
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, ValidationError
from qms.core.pagination import CursorParams
from qms.models.settings import DEFAULT_QUOTATION_TERMS, SystemSettings
from qms.schemas.auth import UserUpdate
from qms.schemas.settings import SettingsUpdate
from qms.services.auth_service import AuthService
from qms.services.settings_service import SettingsService


class TestUserAdministration:
    """User maintenance through AuthService"""

    def test_email_change_must_stay_unique(self, db_session: Session, admin_user, sales_user):
        service = AuthService(db_session)

        with pytest.raises(ConflictError):
            service.update_user(sales_user.id, UserUpdate(email="ADMIN@qms-demo.com"))

        updated = service.update_user(sales_user.id, UserUpdate(email="Seller@QMS-demo.com", role="finance"))
        assert updated.email == "seller@qms-demo.com"
        assert updated.role == "finance"

    def test_list_filters(self, db_session: Session, admin_user, sales_user, finance_user):
        service = AuthService(db_session)
        service.set_active(finance_user.id, False)

        active = service.list_users(CursorParams(), is_active=True)
        by_role = service.list_users(CursorParams(), role="sales")
        by_search = service.list_users(CursorParams(), search="finance@")

        assert {u.email for u in active.items} == {"admin@qms-demo.com", "sales@qms-demo.com"}
        assert [u.email for u in by_role.items] == ["sales@qms-demo.com"]
        assert [u.email for u in by_search.items] == ["finance@qms-demo.com"]

    def test_cannot_deactivate_self(self, db_session: Session, admin_user):
        with pytest.raises(ValidationError):
            AuthService(db_session).set_active(admin_user.id, False, acting_user=admin_user)


class TestUserAPI:
    def test_requires_admin(self, client: TestClient, sales_headers: Dict[str, str]):
        assert client.get("/api/v1/users", headers=sales_headers).status_code == 403

    def test_create_and_duplicate(self, client: TestClient, admin_headers: Dict[str, str]):
        payload = {
            "email": "buyer@qms-demo.com",
            "password": "testpassword123",
            "first_name": "Bilal",
            "last_name": "Ahmed",
            "role": "procurement",
        }

        first = client.post("/api/v1/users", json=payload, headers=admin_headers)
        second = client.post("/api/v1/users", json=payload, headers=admin_headers)

        assert first.status_code == 201, first.text
        assert first.json()["data"]["role"] == "procurement"
        assert second.status_code == 400
        assert second.json()["code"] == "CONFLICT"

    def test_deactivated_user_cannot_log_in(self, client: TestClient, admin_headers, sales_user):
        response = client.delete(f"/api/v1/users/{sales_user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False
        login = client.post("/api/v1/auth/login", json={"email": sales_user.email, "password": "testpassword123"})
        assert login.status_code == 401

    def test_reactivate(self, client: TestClient, admin_headers, sales_user, db_session: Session):
        AuthService(db_session).set_active(sales_user.id, False)

        response = client.patch(f"/api/v1/users/{sales_user.id}/status", json={"is_active": True}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "User activated successfully"

    def test_admin_cannot_delete_own_account(self, client: TestClient, admin_headers, admin_user):
        response = client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestSettingsService:
    def test_defaults_created_once(self, db_session: Session):
        service = SettingsService(db_session)

        first = service.get()
        second = service.get()

        assert first.id == second.id
        assert db_session.query(SystemSettings).count() == 1
        assert first.default_currency == "USD"
        assert first.default_tax_rate == Decimal("18.00")
        assert first.quotation_terms == DEFAULT_QUOTATION_TERMS
        assert first.sms_notifications is False

    def test_partial_update_keeps_other_fields(self, db_session: Session):
        service = SettingsService(db_session)

        updated = service.update(SettingsUpdate(default_currency="PKR", invoice_terms="Net 15"))

        assert updated.default_currency == "PKR"
        assert updated.invoice_terms == "Net 15"
        assert updated.quotation_terms == DEFAULT_QUOTATION_TERMS
        assert updated.email_notifications is True


class TestSettingsAPI:
    def test_staff_read_admin_write(self, client: TestClient, sales_headers, admin_headers):
        read = client.get("/api/v1/settings", headers=sales_headers)
        denied = client.put("/api/v1/settings", json={"default_tax_rate": 17}, headers=sales_headers)
        written = client.put("/api/v1/settings", json={"default_tax_rate": 17}, headers=admin_headers)

        assert read.status_code == 200
        assert read.json()["data"]["invoice_number_format"] == "INV-YYYY-###"
        assert denied.status_code == 403
        assert written.json()["data"]["default_tax_rate"] == 17.0

    def test_terms_update_needs_a_field(self, client: TestClient, admin_headers: Dict[str, str]):
        empty = client.put("/api/v1/settings/terms", json={}, headers=admin_headers)
        updated = client.put(
            "/api/v1/settings/terms", json={"purchase_order_terms": "Deliver by the 5th"}, headers=admin_headers
        )
        terms = client.get("/api/v1/settings/terms", headers=admin_headers).json()["data"]

        assert empty.status_code == 400
        assert updated.status_code == 200
        assert terms["purchase_order_terms"] == "Deliver by the 5th"
        assert set(terms) == {"default_terms", "quotation_terms", "invoice_terms", "purchase_order_terms"}
