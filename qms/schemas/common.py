"""
QMS Common Schemas
Shared Pydantic models for the response envelope, pagination and line items
"""
from decimal import Decimal
from typing import Annotated, Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

T = TypeVar("T")

# Decimal internally, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Quantity = Money


class ApiResponse(BaseModel, Generic[T]):
    """
    Standard success envelope

    Every endpoint wraps its payload in this model
    """
    success: bool = Field(True, description="Operation success flag")
    data: Optional[T] = Field(None, description="Response payload")
    message: Optional[str] = Field(None, description="Human-readable message")


class ErrorResponse(BaseModel):
    """Standard error envelope"""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine readable error code")
    details: Optional[Any] = Field(None, description="Additional error details")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "success": False,
            "error": "Insufficient stock for Widget: available 5, requested 10 (short by 5)",
            "code": "INSUFFICIENT_STOCK",
            "details": {"product": "Widget", "current_stock": 5, "requested_quantity": 10, "shortfall": 5},
        }
    })


class CursorPageSchema(BaseModel, Generic[T]):
    """Cursor paginated list"""
    items: List[T] = Field(..., description="Items on this page")
    next_cursor: Optional[str] = Field(None, description="Cursor for the next page")
    has_more: bool = Field(..., description="Whether more items follow")
    limit: int = Field(..., description="Page size")


class LineItemCreate(BaseModel):
    """Priced line item input used by quotations, orders and invoices"""
    product_id: Optional[int] = Field(None, description="Catalog product, if any")
    description: Optional[str] = Field(None, max_length=500)
    quantity: Decimal = Field(..., gt=0, description="Quantity, must be positive")
    unit_price: Decimal = Field(..., ge=0, description="Unit price")
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_percent: Decimal = Field(Decimal("0"), ge=0, le=100)


class LineItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    description: str
    quantity: Quantity
    unit_price: Money
    discount_percent: Money
    tax_percent: Money
    line_total: Money

    model_config = ConfigDict(from_attributes=True)


class TotalsResponse(BaseModel):
    subtotal: Money
    discount_amount: Money
    tax_amount: Money
    total_amount: Money
