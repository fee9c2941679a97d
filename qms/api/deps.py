"""
API Dependencies
Common dependencies for API endpoints
"""
from typing import Any, Dict, List, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from qms.core.config import settings
from qms.core.database import get_db
from qms.core.exceptions import PermissionDeniedError, UnauthenticatedError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams
from qms.core.security import verify_token
from qms.models.auth import User
from qms.models.enums import UserRole

logger = get_logger("security")

# Missing credentials are reported through the error envelope, not FastAPI's default 403
security = HTTPBearer(auto_error=False)

# Route allow-lists
ALL_ROLES = [role.value for role in UserRole]
STAFF_ROLES = ["admin", "sales", "procurement", "finance", "auditor"]
ADMIN_ONLY = ["admin"]
SALES_ROLES = ["admin", "sales"]
SALES_FINANCE_ROLES = ["admin", "sales", "finance"]
SALES_READ_ROLES = ["admin", "sales", "finance", "auditor"]
DELIVERY_ROLES = ["admin", "sales", "logistics"]
PROCUREMENT_ROLES = ["admin", "procurement"]
PROCUREMENT_APPROVAL_ROLES = ["admin", "procurement", "finance"]
PRODUCT_READ_ROLES = ["admin", "sales", "procurement", "auditor"]
STOCK_READ_ROLES = ["admin", "procurement", "finance"]
FINANCE_ROLES = ["admin", "finance"]
FINANCE_READ_ROLES = ["admin", "finance", "auditor"]
LEDGER_READ_ROLES = ["admin", "finance", "sales", "procurement"]
UPLOAD_ROLES = ["admin", "sales", "procurement", "finance"]
CHALLAN_WRITE_ROLES = ["admin", "procurement", "finance", "sales"]
CATEGORY_READ_ROLES = ["admin", "sales", "procurement"]


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get current authenticated user from JWT token.
    """
    if credentials is None:
        raise UnauthenticatedError("Access token required")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise UnauthenticatedError("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthenticatedError("Invalid or expired token")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthenticatedError("User not found or inactive")
    return user


class RoleChecker:
    """
    Role checker dependency for specific roles.

    Resolves to the current user when their role is allowed.
    """

    def __init__(self, allowed_roles: List[str]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.allowed_roles:
            logger.warning(f"User {current_user.email} ({current_user.role}) denied; requires {self.allowed_roles}")
            raise PermissionDeniedError(
                "Insufficient permissions",
                details={"required_roles": self.allowed_roles, "role": current_user.role},
            )
        return current_user


def get_cursor_params(
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    sort_by: Optional[str] = Query(None, description="Sort field"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> CursorParams:
    """
    Common pagination parameters.
    """
    return CursorParams(cursor=cursor, limit=limit, sort_by=sort_by, sort_order=sort_order)


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the success envelope"""
    if isinstance(data, CursorPage):
        data = {
            "items": data.items,
            "next_cursor": data.next_cursor,
            "has_more": data.has_more,
            "limit": data.limit,
        }
    return {"success": True, "data": data, "message": message}
