"""
Custom Application Exceptions
Each exception maps to an HTTP status and a machine readable error code
"""
from typing import Any, Optional


class QMSException(Exception):
    """Base exception for QMS application"""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(QMSException):
    """Raised when data validation fails"""
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(QMSException):
    """Raised when a requested record does not exist"""
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found" if identifier is None else f"{resource} {identifier} not found"
        super().__init__(message)
        self.resource = resource


class ConflictError(QMSException):
    """Raised on duplicate keys or operations on records in a terminal state"""
    status_code = 400
    code = "CONFLICT"


class InvalidStateError(ConflictError):
    """Raised when a status transition is not allowed"""
    code = "INVALID_STATE"


class AlreadyConvertedError(ConflictError):
    """Raised when converting a quotation that was already converted"""
    code = "ALREADY_CONVERTED"


class InsufficientStockError(QMSException):
    """Raised when stock on hand cannot cover the requested quantity"""
    status_code = 400
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, current_stock, requested_quantity, product_id: Optional[int] = None):
        shortfall = requested_quantity - current_stock
        super().__init__(
            f"Insufficient stock for {product_name}: available {current_stock}, "
            f"requested {requested_quantity} (short by {shortfall})",
            details={
                "product_id": product_id,
                "product": product_name,
                "current_stock": float(current_stock),
                "requested_quantity": float(requested_quantity),
                "shortfall": float(shortfall),
            },
        )
        self.product_id = product_id
        self.shortfall = shortfall


class UnbalancedEntryError(QMSException):
    """Raised when ledger debits and credits differ beyond tolerance"""
    status_code = 400
    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debits, total_credits):
        super().__init__(
            "Ledger entry is not balanced: debits must equal credits",
            details={
                "total_debits": float(total_debits),
                "total_credits": float(total_credits),
                "difference": float(abs(total_debits - total_credits)),
            },
        )
        self.total_debits = total_debits
        self.total_credits = total_credits


class RateLimitedError(QMSException):
    """Raised when a client exceeds the request budget"""
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, retry_after: int):
        super().__init__(
            "Too many requests, please try again later",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class UnauthenticatedError(QMSException):
    """Raised when a request carries no valid credentials"""
    status_code = 401
    code = "UNAUTHENTICATED"


class PermissionDeniedError(QMSException):
    """Raised when user lacks required role"""
    status_code = 403
    code = "FORBIDDEN"
