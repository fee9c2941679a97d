"""
QMS Customer API Routes
Customer management endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, SALES_ROLES, STAFF_ROLES, RoleChecker, get_cursor_params, get_db, success
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import PartyStatus
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.party import CustomerCreate, CustomerResponse, CustomerUpdate
from qms.services.party_service import CustomerService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[CustomerResponse]])
def list_customers(
    status_filter: Optional[PartyStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Name, e-mail or contact person"),
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    """List customers"""
    page = CustomerService(db, current_user).list(params, status=status_filter, search=search)
    return success(page)


@router.get("/{customer_id}", response_model=ApiResponse[CustomerResponse])
def get_customer(
    customer_id: int,
    current_user: User = Depends(RoleChecker(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    return success(CustomerService(db, current_user).get(customer_id))


@router.post("", response_model=ApiResponse[CustomerResponse], status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_in: CustomerCreate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db, current_user).create(customer_in)
    return success(customer, "Customer created successfully")


@router.put("/{customer_id}", response_model=ApiResponse[CustomerResponse])
def update_customer(
    customer_id: int,
    customer_in: CustomerUpdate,
    current_user: User = Depends(RoleChecker(SALES_ROLES)),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db, current_user).update(customer_id, customer_in)
    return success(customer, "Customer updated successfully")


@router.delete("/{customer_id}", response_model=ApiResponse[None])
def delete_customer(
    customer_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    """Delete a customer that no document references"""
    CustomerService(db, current_user).delete(customer_id)
    return success(message="Customer deleted successfully")
