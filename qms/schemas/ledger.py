"""
QMS Ledger Schemas
Double-entry ledger entries, chart of accounts and financial reports
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qms.models.enums import AccountType
from .common import Money


class AccountCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    account_code: str = Field(..., min_length=1, max_length=20)
    account_name: str = Field(..., min_length=1, max_length=150)
    account_type: AccountType
    is_active: bool = True


class AccountResponse(BaseModel):
    id: int
    account_code: str
    account_name: str
    account_type: AccountType
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class LedgerLineCreate(BaseModel):
    account_id: int
    description: Optional[str] = Field(None, max_length=500)
    debit_amount: Decimal = Field(Decimal("0"), ge=0)
    credit_amount: Decimal = Field(Decimal("0"), ge=0)

    @model_validator(mode="after")
    def check_one_side(self):
        """A line posts to exactly one side"""
        has_debit = self.debit_amount > 0
        has_credit = self.credit_amount > 0
        if has_debit == has_credit:
            raise ValueError("Line must have either a debit or a credit amount, not both or neither")
        return self


class LedgerEntryCreate(BaseModel):
    entry_date: date = Field(default_factory=date.today)
    reference_type: Optional[str] = Field(None, max_length=30)
    reference_id: Optional[int] = None
    description: str = Field(..., min_length=1)
    lines: List[LedgerLineCreate] = Field(..., min_length=2)


class LedgerLineResponse(BaseModel):
    id: int
    account_id: int
    account: Optional[AccountResponse] = None
    description: Optional[str] = None
    debit_amount: Money
    credit_amount: Money

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryResponse(BaseModel):
    id: int
    entry_number: str
    entry_date: date
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: str
    total_debit: Money
    total_credit: Money
    created_by: Optional[int] = None
    created_at: datetime
    lines: List[LedgerLineResponse] = []

    model_config = ConfigDict(from_attributes=True)


class LedgerMetrics(BaseModel):
    total_sales: Money
    total_purchases: Money
    expenses: Money
    net_profit: Money
    entry_count: int


class ReceivableItem(BaseModel):
    invoice_id: int
    invoice_number: str
    customer_name: Optional[str] = None
    due_date: date
    outstanding_amount: Money
    is_overdue: bool


class PayableItem(BaseModel):
    bill_id: int
    bill_number: str
    vendor_name: Optional[str] = None
    due_date: date
    outstanding_amount: Money
    is_overdue: bool


class AccountingSummary(BaseModel):
    total_outstanding: Money
    total_payables: Money
    net_receivables: Money
    total_overdue: Money


class AccountingMetrics(BaseModel):
    receivables: List[ReceivableItem]
    payables: List[PayableItem]
    summary: AccountingSummary


class ProfitLossReport(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    revenue: Money
    cost_of_goods_sold: Money
    gross_profit: Money
    operating_expenses: Money
    net_income: Money
    gross_margin: Money
    net_margin: Money


class BalanceSheetReport(BaseModel):
    as_of_date: date
    assets: Dict[str, Money]
    liabilities: Dict[str, Money]
    equity: Dict[str, Money]
    total_assets: Money
    total_liabilities: Money
    total_equity: Money
    total_liabilities_equity: Money
    balanced: bool
