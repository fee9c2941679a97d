"""
Test Configuration and Fixtures
Shared testing infrastructure for QMS
"""
import os
import tempfile

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="qms-uploads-")

from decimal import Decimal
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from qms.core.database import Base, SessionLocal, engine, get_db
from qms.core.rate_limit import rate_limiter
from qms.main import app
from qms.models.auth import User
from qms.models.ledger import ChartOfAccount
from qms.models.party import Customer, Vendor
from qms.models.product import Product
from qms.schemas.auth import UserCreate
from qms.schemas.party import CustomerCreate, VendorCreate
from qms.schemas.product import ProductCreate
from qms.services.auth_service import AuthService
from qms.services.party_service import CustomerService, VendorService
from qms.services.product_service import ProductService

TEST_PASSWORD = "testpassword123"


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def make_user(db_session: Session, role: str) -> User:
    return AuthService(db_session).create_user(UserCreate(
        email=f"{role}@qms-demo.com",
        password=TEST_PASSWORD,
        first_name=role.capitalize(),
        last_name="User",
        role=role,
    ))


def login_headers(client: TestClient, user: User) -> Dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin")


@pytest.fixture
def sales_user(db_session: Session) -> User:
    return make_user(db_session, "sales")


@pytest.fixture
def finance_user(db_session: Session) -> User:
    return make_user(db_session, "finance")


@pytest.fixture
def admin_headers(client: TestClient, admin_user: User) -> Dict[str, str]:
    """Get authentication headers for the admin user"""
    return login_headers(client, admin_user)


@pytest.fixture
def sales_headers(client: TestClient, sales_user: User) -> Dict[str, str]:
    return login_headers(client, sales_user)


@pytest.fixture
def finance_headers(client: TestClient, finance_user: User) -> Dict[str, str]:
    return login_headers(client, finance_user)


@pytest.fixture
def customer(db_session: Session) -> Customer:
    return CustomerService(db_session).create(CustomerCreate(
        name="Test Customer Ltd",
        email="buyer@customer-demo.com",
        city="Lahore",
        payment_terms=30,
    ))


@pytest.fixture
def vendor(db_session: Session) -> Vendor:
    return VendorService(db_session).create(VendorCreate(
        name="Test Supplier Ltd",
        email="sales@supplier-demo.com",
        payment_terms=45,
    ))


@pytest.fixture
def product(db_session: Session) -> Product:
    """Product with 5 units on hand, booked as an opening movement"""
    return ProductService(db_session).create(ProductCreate(
        sku="WID-001",
        name="Widget",
        opening_stock=Decimal("5"),
        reorder_point=Decimal("2"),
        selling_price=Decimal("100.00"),
        average_cost=Decimal("60.00"),
    ))


@pytest.fixture
def accounts(db_session: Session) -> Dict[str, ChartOfAccount]:
    """Minimal chart of accounts keyed by type"""
    rows = {
        "asset": ChartOfAccount(account_code="1000", account_name="Cash", account_type="asset"),
        "liability": ChartOfAccount(account_code="2000", account_name="Accounts Payable", account_type="liability"),
        "equity": ChartOfAccount(account_code="3000", account_name="Owner Equity", account_type="equity"),
        "revenue": ChartOfAccount(account_code="4000", account_name="Sales Revenue", account_type="revenue"),
        "expense": ChartOfAccount(account_code="5000", account_name="Operating Expenses", account_type="expense"),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    return rows
