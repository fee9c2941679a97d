"""
QMS Product Category API Routes
Category hierarchy for the product catalog
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    ADMIN_ONLY, CATEGORY_READ_ROLES, PROCUREMENT_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.product import (
    CategoryTreeNode, ProductCategoryCreate, ProductCategoryDetail, ProductCategoryResponse, ProductCategoryUpdate
)
from qms.services.category_service import ProductCategoryService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[ProductCategoryResponse]])
def list_categories(
    search: Optional[str] = None,
    parent_id: Optional[int] = None,
    include_inactive: bool = False,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(CATEGORY_READ_ROLES)),
    db: Session = Depends(get_db),
):
    page = ProductCategoryService(db, current_user).list(
        params, search=search, parent_id=parent_id, include_inactive=include_inactive
    )
    return success(page)


@router.get("/tree/all", response_model=ApiResponse[List[CategoryTreeNode]])
def category_tree(
    current_user: User = Depends(RoleChecker(CATEGORY_READ_ROLES)),
    db: Session = Depends(get_db),
):
    """Active categories nested under their parents"""
    return success(ProductCategoryService(db, current_user).tree())


@router.get("/{category_id}", response_model=ApiResponse[ProductCategoryDetail])
def get_category(
    category_id: int,
    current_user: User = Depends(RoleChecker(CATEGORY_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(ProductCategoryService(db, current_user).get(category_id))


@router.post("", response_model=ApiResponse[ProductCategoryResponse], status_code=status.HTTP_201_CREATED)
def create_category(
    category_in: ProductCategoryCreate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    category = ProductCategoryService(db, current_user).create(category_in)
    return success(category, "Category created successfully")


@router.put("/{category_id}", response_model=ApiResponse[ProductCategoryResponse])
def update_category(
    category_id: int,
    category_in: ProductCategoryUpdate,
    current_user: User = Depends(RoleChecker(PROCUREMENT_ROLES)),
    db: Session = Depends(get_db),
):
    category = ProductCategoryService(db, current_user).update(category_id, category_in)
    return success(category, "Category updated successfully")


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category(
    category_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    ProductCategoryService(db, current_user).delete(category_id)
    return success(message="Category deleted successfully")
