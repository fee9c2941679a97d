"""
QMS Stock Movement API Routes
Stock movement log, product history and reconciliation
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    ADMIN_ONLY, PROCUREMENT_ROLES, STOCK_READ_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import MovementType
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.product import (
    ProductHistoryResponse, ProductResponse, ReconciliationResponse, StockMovementCreate, StockMovementResponse
)
from qms.services.stock.stock_movements import StockMovementsService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[StockMovementResponse]])
def list_movements(
    product_id: Optional[int] = None,
    movement_type: Optional[MovementType] = None,
    reference_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STOCK_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = StockMovementsService(db, current_user).list_movements(
        params,
        product_id=product_id,
        movement_type=movement_type,
        reference_type=reference_type,
        date_from=date_from,
        date_to=date_to,
    )
    return success(page)


@router.post("", response_model=ApiResponse[StockMovementResponse], status_code=status.HTTP_201_CREATED)
def record_movement(
    movement_in: StockMovementCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Record a stock movement.

    Outbound movements that would take stock below zero are rejected with
    INSUFFICIENT_STOCK.
    """
    movement = StockMovementsService(db, current_user).record_movement(movement_in)
    return success(movement, "Stock movement recorded successfully")


@router.get("/product/{product_id}/history", response_model=ApiResponse[ProductHistoryResponse])
def product_history(
    product_id: int,
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(RoleChecker(STOCK_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(StockMovementsService(db, current_user).product_history(product_id, limit=limit))


@router.get("/alerts/low-stock", response_model=ApiResponse[List[ProductResponse]])
def low_stock(
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    return success(StockMovementsService(db, current_user).low_stock())


@router.post("/reconcile", response_model=ApiResponse[ReconciliationResponse])
def reconcile_stock(
    product_id: Optional[int] = None,
    apply: bool = Query(False, description="Overwrite current stock with the value computed from movements"),
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    """Compare product stock with the movement log"""
    result = StockMovementsService(db, current_user).reconcile(product_id=product_id, apply=apply)
    message = f"{len(result['discrepancies'])} discrepancies found"
    if result["applied"]:
        message += " and corrected"
    return success(result, message)
