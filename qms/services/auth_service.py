"""
Authentication Service
User login, registration and account administration
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qms.core.config import settings
from qms.core.exceptions import ConflictError, NotFoundError, UnauthenticatedError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.core.security import create_access_token, get_password_hash, verify_password
from qms.models.auth import User
from qms.models.enums import enum_value

logger = get_logger("security")


class AuthService:
    """Service for authentication and user management operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(self, user_in) -> User:
        """Register a user; e-mail addresses are unique and stored lower-cased"""
        if self.get_user_by_email(user_in.email):
            raise ConflictError(f"A user with e-mail {user_in.email} already exists")

        user = User(
            email=user_in.email.lower(),
            password_hash=get_password_hash(user_in.password),
            first_name=user_in.first_name,
            last_name=user_in.last_name,
            role=enum_value(user_in.role),
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User created: {user.email} ({user.role})")
        return user

    def list_users(
        self,
        params: CursorParams,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> CursorPage:
        query = self.db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            ))
        if role:
            query = query.filter(User.role == enum_value(role))
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        sortable = {"created_at": User.created_at, "email": User.email, "last_name": User.last_name}
        return paginate(query, User, params, sortable)

    def update_user(self, user_id: int, user_in) -> User:
        user = self.get_user_by_id(user_id)
        changes = user_in.model_dump(exclude_none=True)
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            other = self.get_user_by_email(changes["email"])
            if other and other.id != user.id:
                raise ConflictError(f"A user with e-mail {changes['email']} already exists")
        if "role" in changes:
            changes["role"] = enum_value(changes["role"])

        for key, value in changes.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User updated: {user.email} ({', '.join(sorted(changes)) or 'no changes'})")
        return user

    def set_active(self, user_id: int, is_active: bool, acting_user: Optional[User] = None) -> User:
        """Activate or deactivate an account; users are never hard-deleted"""
        user = self.get_user_by_id(user_id)
        if not is_active and acting_user is not None and acting_user.id == user.id:
            raise ValidationError("You cannot deactivate your own account")

        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.email} {'activated' if is_active else 'deactivated'}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise UnauthenticatedError("Invalid email or password")
        if not user.is_active:
            logger.warning(f"Login attempt on inactive account {email}")
            raise UnauthenticatedError("Account is inactive")
        return user

    def login(self, email: str, password: str) -> Dict:
        """
        Authenticate and issue an access token.

        Returns:
            Token payload: access_token, token_type, expires_in, user
        """
        user = self.authenticate(email, password)
        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)

        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.id), "role": user.role},
            expires_delta=expires,
        )

        logger.info(f"User logged in: {user.email}")
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": int(expires.total_seconds()),
            "user": user,
        }
