"""
API Integration Tests
End-to-end testing of API endpoints with real HTTP requests
"""
from typing import Dict

from fastapi.testclient import TestClient

from qms.core.config import settings
from qms.core.rate_limit import rate_limiter
from qms.models.auth import User


class TestSystemAPI:
    """Health, info and error envelope"""

    def test_health_check(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ok"

    def test_api_health_checks_database(self, client: TestClient):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["database"] == "connected"

    def test_system_info(self, client: TestClient):
        response = client.get("/info")

        assert response.status_code == 200
        assert response.json()["data"]["application"] == settings.APP_NAME

    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/api/v1/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "NOT_FOUND"


class TestAuthenticationAPI:
    """Test authentication endpoints"""

    def test_login_success(self, client: TestClient, admin_user: User):
        response = client.post("/api/v1/auth/login", json={"email": admin_user.email, "password": "testpassword123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["role"] == "admin"

    def test_login_invalid_credentials(self, client: TestClient, admin_user: User):
        response = client.post("/api/v1/auth/login", json={"email": admin_user.email, "password": "wrongpassword"})

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "UNAUTHENTICATED"

    def test_protected_endpoint_without_auth(self, client: TestClient):
        response = client.get("/api/v1/customers")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    def test_invalid_token(self, client: TestClient):
        response = client.get("/api/v1/customers", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401

    def test_wrong_role_is_forbidden(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.get("/api/v1/ledger/reports/balance-sheet", headers=sales_headers)

        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "FORBIDDEN"
        assert data["details"]["role"] == "sales"

    def test_register_requires_admin(self, client: TestClient, sales_headers: Dict[str, str]):
        payload = {
            "email": "new@qms-demo.com",
            "password": "longenough1",
            "first_name": "New",
            "last_name": "User",
            "role": "finance",
        }

        assert client.post("/api/v1/auth/register", json=payload, headers=sales_headers).status_code == 403

    def test_profile(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.get("/api/v1/auth/profile", headers=sales_headers)

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "sales@qms-demo.com"


class TestCustomerAPI:
    """Test customer management endpoints"""

    def test_create_customer(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.post(
            "/api/v1/customers",
            json={"name": "Acme Traders", "email": "info@acme-demo.com", "credit_limit": 5000},
            headers=sales_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["name"] == "Acme Traders"
        assert data["data"]["credit_limit"] == 5000.0

    def test_validation_error_envelope(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.post("/api/v1/customers", json={"email": "not-an-email"}, headers=sales_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert {error["field"] for error in data["details"]} >= {"name", "email"}

    def test_cursor_pagination(self, client: TestClient, sales_headers: Dict[str, str]):
        for i in range(5):
            client.post("/api/v1/customers", json={"name": f"Customer {i}"}, headers=sales_headers)

        first = client.get("/api/v1/customers?limit=2", headers=sales_headers).json()["data"]

        assert len(first["items"]) == 2
        assert first["has_more"] is True
        assert first["next_cursor"]

        seen = [c["id"] for c in first["items"]]
        cursor = first["next_cursor"]
        while cursor:
            page = client.get(f"/api/v1/customers?limit=2&cursor={cursor}", headers=sales_headers).json()["data"]
            seen.extend(c["id"] for c in page["items"])
            cursor = page["next_cursor"]

        assert len(seen) == 5
        assert len(set(seen)) == 5

    def test_invalid_cursor(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.get("/api/v1/customers?cursor=not-a-cursor", headers=sales_headers)

        assert response.status_code == 400

    def test_limit_is_bounded(self, client: TestClient, sales_headers: Dict[str, str]):
        response = client.get(f"/api/v1/customers?limit={settings.MAX_PAGE_LIMIT + 1}", headers=sales_headers)

        assert response.status_code == 400


class TestSalesWorkflowAPI:
    """Quotation to invoice over HTTP"""

    def create_quotation(self, client: TestClient, headers, customer, product, quantity):
        response = client.post(
            "/api/v1/quotations",
            json={
                "customer_id": customer.id,
                "items": [{"product_id": product.id, "quantity": quantity, "unit_price": 100}],
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    def test_convert_with_insufficient_stock(self, client: TestClient, sales_headers, customer, product):
        quotation = self.create_quotation(client, sales_headers, customer, product, 10)

        response = client.post(f"/api/v1/quotations/{quotation['id']}/convert", headers=sales_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "INSUFFICIENT_STOCK"
        assert data["details"]["shortfall"] == 5
        assert client.get("/api/v1/orders", headers=sales_headers).json()["data"]["items"] == []

    def test_convert_deliver_and_invoice(self, client: TestClient, sales_headers, admin_headers, customer, product):
        quotation = self.create_quotation(client, sales_headers, customer, product, 2)

        converted = client.post(f"/api/v1/quotations/{quotation['id']}/convert", headers=sales_headers)
        assert converted.status_code == 201
        order = converted.json()["data"]
        assert order["quotation_id"] == quotation["id"]

        again = client.post(f"/api/v1/quotations/{quotation['id']}/convert", headers=sales_headers)
        assert again.status_code == 400
        assert again.json()["code"] == "ALREADY_CONVERTED"

        delivered = client.patch(
            f"/api/v1/orders/{order['id']}/delivery-status",
            json={"delivery_status": "delivered"},
            headers=sales_headers,
        )
        assert delivered.status_code == 200
        result = delivered.json()["data"]
        assert result["order"]["status"] == "invoiced"
        assert result["invoice"]["total_amount"] == 200.0

        product_response = client.get(f"/api/v1/products/{product.id}", headers=admin_headers)
        assert product_response.json()["data"]["current_stock"] == 3.0


class TestLedgerAPI:
    def test_unbalanced_entry_rejected(self, client: TestClient, finance_headers, accounts):
        response = client.post(
            "/api/v1/ledger",
            json={
                "description": "Office supplies",
                "lines": [
                    {"account_id": accounts["expense"].id, "debit_amount": 500},
                    {"account_id": accounts["asset"].id, "credit_amount": 499.98},
                ],
            },
            headers=finance_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UNBALANCED_ENTRY"

    def test_balanced_entry_and_reports(self, client: TestClient, finance_headers, accounts):
        response = client.post(
            "/api/v1/ledger",
            json={
                "description": "Cash sale",
                "reference_type": "sale",
                "lines": [
                    {"account_id": accounts["asset"].id, "debit_amount": 250},
                    {"account_id": accounts["revenue"].id, "credit_amount": 250},
                ],
            },
            headers=finance_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["entry_number"].startswith("LE-")

        report = client.get("/api/v1/ledger/reports/profit-loss", headers=finance_headers).json()["data"]
        assert report["revenue"] == 250.0

        sheet = client.get("/api/v1/ledger/reports/balance-sheet", headers=finance_headers).json()["data"]
        assert sheet["balanced"] is True


class TestDocumentAPI:
    """Attachment upload, listing, download and removal"""

    def test_upload_list_download_delete(self, client: TestClient, admin_headers, customer):
        upload = client.post(
            "/api/v1/documents/upload",
            data={"entity_type": "customer", "entity_id": str(customer.id), "description": "Signed contract"},
            files={"file": ("contract.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=admin_headers,
        )
        assert upload.status_code == 201, upload.text
        document = upload.json()["data"]
        assert document["file_name"] == "contract.pdf"
        assert document["file_size"] == len(b"%PDF-1.4 test")

        listing = client.get(f"/api/v1/documents/customer/{customer.id}", headers=admin_headers)
        assert [d["id"] for d in listing.json()["data"]] == [document["id"]]

        download = client.get(f"/api/v1/documents/download/{document['id']}", headers=admin_headers)
        assert download.status_code == 200
        assert download.content == b"%PDF-1.4 test"

        deleted = client.delete(f"/api/v1/documents/{document['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/v1/documents/customer/{customer.id}", headers=admin_headers).json()["data"] == []

    def test_disallowed_extension(self, client: TestClient, admin_headers, customer):
        response = client.post(
            "/api/v1/documents/upload",
            data={"entity_type": "customer", "entity_id": str(customer.id)},
            files={"file": ("script.exe", b"MZ", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_entity(self, client: TestClient, admin_headers):
        response = client.post(
            "/api/v1/documents/upload",
            data={"entity_type": "invoice", "entity_id": "999"},
            files={"file": ("invoice.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 404


class TestRateLimiting:
    def test_requests_over_budget_get_429(self, client: TestClient, sales_headers, monkeypatch):
        monkeypatch.setattr(rate_limiter, "max_requests", 3)
        rate_limiter.reset()

        statuses = [client.get("/api/v1/auth/profile", headers=sales_headers).status_code for _ in range(4)]

        assert statuses[:3] == [200, 200, 200]
        assert statuses[3] == 429

        limited = client.get("/api/v1/auth/profile", headers=sales_headers)
        assert limited.json()["code"] == "RATE_LIMITED"
        assert int(limited.headers["Retry-After"]) > 0

    def test_health_is_exempt(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(rate_limiter, "max_requests", 1)
        rate_limiter.reset()

        statuses = [client.get("/health").status_code for _ in range(3)]

        assert statuses == [200, 200, 200]

    def test_forwarded_header_ignored_without_trusted_proxy(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(rate_limiter, "max_requests", 3)
        rate_limiter.reset()

        statuses = [
            client.get("/info", headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
            for i in range(5)
        ]

        assert statuses == [200, 200, 200, 429, 429]

    def test_forwarded_header_honoured_behind_trusted_proxy(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(rate_limiter, "max_requests", 1)
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["testclient"])
        rate_limiter.reset()

        first = client.get("/info", headers={"X-Forwarded-For": "10.0.0.1"})
        second = client.get("/info", headers={"X-Forwarded-For": "10.0.0.2"})
        repeat = client.get("/info", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert repeat.status_code == 429
