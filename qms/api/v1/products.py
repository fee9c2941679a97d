"""
QMS Product API Routes
Product catalog endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    ADMIN_ONLY, PROCUREMENT_ROLES, PRODUCT_READ_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import ProductStatus, ProductType
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from qms.services.product_service import ProductService
from qms.services.stock.stock_movements import StockMovementsService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[ProductResponse]])
def list_products(
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    product_type: Optional[ProductType] = None,
    search: Optional[str] = Query(None, description="Name or SKU"),
    low_stock: bool = False,
    category_id: Optional[int] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(PRODUCT_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = ProductService(db, current_user).list(
        params, status=status_filter, product_type=product_type, search=search, low_stock=low_stock,
        category_id=category_id,
    )
    return success(page)


@router.get("/alerts/low-stock", response_model=ApiResponse[List[ProductResponse]])
def low_stock_alerts(
    current_user: User = Depends(RoleChecker(["admin", "procurement", "auditor"])),
    db: Session = Depends(get_db),
):
    """Active products below their reorder point"""
    return success(StockMovementsService(db, current_user).low_stock())


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
def get_product(
    product_id: int,
    current_user: User = Depends(RoleChecker(PRODUCT_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(ProductService(db, current_user).get(product_id))


@router.post("", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: ProductCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    product = ProductService(db, current_user).create(product_in)
    return success(product, "Product created successfully")


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    """Update product details; stock changes go through stock movements"""
    product = ProductService(db, current_user).update(product_id, product_in)
    return success(product, "Product updated successfully")


@router.delete("/{product_id}", response_model=ApiResponse[None])
def delete_product(
    product_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    ProductService(db, current_user).delete(product_id)
    return success(message="Product deleted successfully")
