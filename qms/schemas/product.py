"""
QMS Product and Stock Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import MovementType, ProductStatus, ProductType
from .common import Money, Quantity


class ProductCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    product_type: ProductType = ProductType.FINISHED_GOOD.value
    unit_of_measure: str = Field("pcs", max_length=20)
    opening_stock: Decimal = Field(Decimal("0"), ge=0, description="Initial stock, recorded as a movement")
    reorder_point: Decimal = Field(Decimal("0"), ge=0)
    max_stock_level: Optional[Decimal] = Field(None, ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    average_cost: Decimal = Field(Decimal("0"), ge=0)
    status: ProductStatus = ProductStatus.ACTIVE.value


class ProductUpdate(BaseModel):
    """Stock levels change only through stock movements"""
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    product_type: Optional[ProductType] = None
    unit_of_measure: Optional[str] = Field(None, max_length=20)
    reorder_point: Optional[Decimal] = Field(None, ge=0)
    max_stock_level: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[ProductStatus] = None


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[int] = None
    product_type: ProductType
    unit_of_measure: str
    current_stock: Quantity
    reorder_point: Quantity
    max_stock_level: Optional[Quantity] = None
    selling_price: Money
    average_cost: Money
    last_purchase_price: Optional[Money] = None
    status: ProductStatus
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockMovementCreate(BaseModel):
    product_id: int
    movement_type: MovementType
    quantity: Decimal = Field(..., ge=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    reference_type: Optional[str] = Field(None, max_length=30)
    reference_id: Optional[int] = None
    reference_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    movement_date: Optional[date] = None

    @model_validator(mode="after")
    def check_quantity(self):
        if self.movement_type != MovementType.RESERVATION and self.quantity <= 0:
            raise ValueError("Quantity must be greater than zero")
        return self


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: MovementType
    quantity: Quantity
    unit_cost: Optional[Money] = None
    stock_after: Optional[Quantity] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    movement_date: date
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductHistoryResponse(BaseModel):
    product: ProductResponse
    movements: List[StockMovementResponse]


class StockDiscrepancy(BaseModel):
    product_id: int
    sku: str
    recorded_stock: Quantity
    computed_stock: Quantity
    difference: Quantity


class ReconciliationResponse(BaseModel):
    checked: int
    discrepancies: List[StockDiscrepancy]
    applied: bool


class ProductCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool = True


class ProductCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


class ProductCategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductCategoryDetail(ProductCategoryResponse):
    parent: Optional[ProductCategoryResponse] = None
    children: List[ProductCategoryResponse] = []


class CategoryTreeNode(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    children: List["CategoryTreeNode"] = []
