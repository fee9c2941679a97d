"""
QMS Enumerations
Status and type vocabularies shared by models and schemas
"""
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    SALES = "sales"
    PROCUREMENT = "procurement"
    FINANCE = "finance"
    AUDITOR = "auditor"
    LOGISTICS = "logistics"


class PartyStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ProductType(str, Enum):
    RAW_MATERIAL = "raw_material"
    FINISHED_GOOD = "finished_good"
    SERVICE = "service"
    SPARE_PARTS = "spare_parts"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class SalesOrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    RECEIVED = "received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class FbrSyncStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


class VendorBillStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    OVERDUE = "overdue"


class DeliveryChallanStatus(str, Enum):
    GENERATED = "generated"
    DISPATCHED = "dispatched"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT_IN = "adjustment_in"
    ADJUSTMENT_OUT = "adjustment_out"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    PURCHASE = "purchase"
    SALE = "sale"
    RESERVATION = "reservation"


INBOUND_MOVEMENTS = frozenset({
    MovementType.IN, MovementType.ADJUSTMENT_IN, MovementType.TRANSFER_IN, MovementType.PURCHASE,
})
OUTBOUND_MOVEMENTS = frozenset({
    MovementType.OUT, MovementType.ADJUSTMENT_OUT, MovementType.TRANSFER_OUT, MovementType.SALE,
})


class AccountType(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AttachmentEntity(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    PRODUCT = "product"
    QUOTATION = "quotation"
    SALES_ORDER = "sales_order"
    PURCHASE_ORDER = "purchase_order"
    INVOICE = "invoice"
    VENDOR_BILL = "vendor_bill"
    LEDGER_ENTRY = "ledger_entry"
    DELIVERY_CHALLAN = "delivery_challan"


def check_in(column: str, enum_cls) -> str:
    """SQL CHECK expression restricting a column to an enum's values"""
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


def enum_value(value):
    """Plain value for enum members, unchanged otherwise"""
    return value.value if isinstance(value, Enum) else value
