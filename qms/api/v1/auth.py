"""
Authentication API endpoints
Login, registration and profile
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from qms.api.deps import ADMIN_ONLY, RoleChecker, get_current_user, get_db, success
from qms.models.auth import User
from qms.schemas.auth import Token, UserCreate, UserLogin, UserResponse
from qms.schemas.common import ApiResponse
from qms.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=ApiResponse[Token])
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange e-mail and password for a bearer token"""
    token = AuthService(db).login(credentials.email, credentials.password)
    return success(token, "Login successful")


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def register(
    user_in: UserCreate,
    current_user: User = Depends(RoleChecker(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    """Create a user account (admin only)"""
    user = AuthService(db).create_user(user_in)
    return success(user, "User created successfully")


@router.get("/profile", response_model=ApiResponse[UserResponse])
def profile(current_user: User = Depends(get_current_user)):
    return success(current_user)
