"""
Main API Router - Consolidates all module routes
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from qms.api.deps import get_db
from qms.api.v1 import (
    auth,
    customers,
    delivery_challans,
    documents,
    invoices,
    ledger,
    orders,
    product_categories,
    products,
    purchase_orders,
    quotations,
    stock_movements,
    system_settings,
    users,
    vendor_bills,
    vendors,
)
from qms.core.config import settings
from qms.core.database import check_db_connection

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
def api_health(db: Session = Depends(get_db)):
    """Database connectivity check"""
    if not check_db_connection(db):
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": "Database unavailable",
                "code": "SERVICE_UNAVAILABLE",
                "details": None,
            },
        )
    return {
        "success": True,
        "data": {"status": "healthy", "database": "connected", "version": settings.APP_VERSION},
        "message": None,
    }


# Authentication routes
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Parties and catalog
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(vendors.router, prefix="/vendors", tags=["vendors"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(product_categories.router, prefix="/product-categories", tags=["product-categories"])

# Sales
api_router.include_router(quotations.router, prefix="/quotations", tags=["quotations"])
api_router.include_router(orders.router, prefix="/orders", tags=["sales-orders"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])

# Purchasing
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["purchase-orders"])
api_router.include_router(vendor_bills.router, prefix="/vendor-bills", tags=["vendor-bills"])
api_router.include_router(delivery_challans.router, prefix="/delivery-challans", tags=["delivery-challans"])

# Stock and accounting
api_router.include_router(stock_movements.router, prefix="/stock-movements", tags=["stock-movements"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])

# Attachments
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])

# Company settings
api_router.include_router(system_settings.router, prefix="/settings", tags=["settings"])
