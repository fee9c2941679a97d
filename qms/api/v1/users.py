"""
User administration endpoints
Account maintenance for administrators
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, RoleChecker, get_cursor_params, get_db, success
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import UserRole
from qms.schemas.auth import UserCreate, UserResponse, UserStatusUpdate, UserUpdate
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.services.auth_service import AuthService

router = APIRouter()


@router.get("", response_model=ApiResponse[CursorPageSchema[UserResponse]])
def list_users(
    search: Optional[str] = Query(None, description="Name or e-mail"),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    page = AuthService(db).list_users(params, search=search, role=role, is_active=is_active)
    return success(page)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(
    user_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    return success(AuthService(db).get_user_by_id(user_id))


@router.post("", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    user = AuthService(db).create_user(user_in)
    return success(user, "User created successfully")


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    user_in: UserUpdate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    user = AuthService(db).update_user(user_id, user_in)
    return success(user, "User updated successfully")


@router.patch("/{user_id}/status", response_model=ApiResponse[UserResponse])
def update_user_status(
    user_id: int,
    status_in: UserStatusUpdate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    user = AuthService(db).set_active(user_id, status_in.is_active, acting_user=current_user)
    return success(user, f"User {'activated' if user.is_active else 'deactivated'} successfully")


@router.delete("/{user_id}", response_model=ApiResponse[UserResponse])
def deactivate_user(
    user_id: int,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    """Soft delete: the account is deactivated and its history kept"""
    user = AuthService(db).set_active(user_id, False, acting_user=current_user)
    return success(user, "User deactivated successfully")
