"""
QMS Database Models
"""
from .auth import User
from .party import Customer, Vendor
from .product import Product, ProductCategory, StockMovement
from .quotation import Quotation, QuotationItem
from .sales_order import SalesOrder, SalesOrderItem
from .purchase_order import PurchaseOrder, PurchaseOrderItem
from .delivery_challan import DeliveryChallan
from .invoice import Invoice, InvoiceItem
from .vendor_bill import VendorBill, BillPayment
from .ledger import ChartOfAccount, LedgerEntry, LedgerEntryLine
from .document import DocumentAttachment
from .settings import SystemSettings

__all__ = [
    "User",
    "Customer",
    "Vendor",
    "Product",
    "ProductCategory",
    "StockMovement",
    "Quotation",
    "QuotationItem",
    "SalesOrder",
    "SalesOrderItem",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "DeliveryChallan",
    "Invoice",
    "InvoiceItem",
    "VendorBill",
    "BillPayment",
    "ChartOfAccount",
    "LedgerEntry",
    "LedgerEntryLine",
    "DocumentAttachment",
    "SystemSettings",
]
