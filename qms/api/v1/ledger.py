"""
QMS Ledger API Routes
Ledger entries, chart of accounts and financial reports
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from qms.api.deps import (
    FINANCE_READ_ROLES, FINANCE_ROLES, LEDGER_READ_ROLES, RoleChecker, get_cursor_params, get_db, success
)
from qms.core.exceptions import ValidationError
from qms.core.pagination import CursorParams
from qms.models.auth import User
from qms.models.enums import AccountType
from qms.schemas.common import ApiResponse, CursorPageSchema
from qms.schemas.ledger import (
    AccountCreate, AccountingMetrics, AccountResponse, BalanceSheetReport, LedgerEntryCreate, LedgerEntryResponse,
    LedgerMetrics, ProfitLossReport,
)
from qms.services.gl.ledger import LedgerService
from qms.services.gl.reports import FinancialReportsService

router = APIRouter()


def _check_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from cannot be after date_to")


@router.get("", response_model=ApiResponse[CursorPageSchema[LedgerEntryResponse]])
def list_entries(
    reference_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    params: CursorParams = Depends(get_cursor_params),
    current_user: User = Depends(RoleChecker(LEDGER_READ_ROLES)),
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    page = LedgerService(db, current_user).list(
        params, reference_type=reference_type, date_from=date_from, date_to=date_to
    )
    return success(page)


@router.post("", response_model=ApiResponse[LedgerEntryResponse], status_code=status.HTTP_201_CREATED)
def create_entry(
    entry_in: LedgerEntryCreate,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Post a ledger entry.

    Debits and credits must balance within 0.01; otherwise the entry is
    rejected with UNBALANCED_ENTRY and nothing is written.
    """
    entry = LedgerService(db, current_user).create_entry(entry_in)
    return success(entry, f"Ledger entry {entry.entry_number} created successfully")


@router.get("/accounts/chart", response_model=ApiResponse[List[AccountResponse]])
def chart_of_accounts(
    account_type: Optional[AccountType] = None,
    active_only: bool = False,
    current_user: User = Depends(RoleChecker(LEDGER_READ_ROLES)),
    db: Session = Depends(get_db),
):
    accounts = LedgerService(db, current_user).list_accounts(account_type=account_type, active_only=active_only)
    return success(accounts)


@router.post("/accounts", response_model=ApiResponse[AccountResponse], status_code=status.HTTP_201_CREATED)
def create_account(
    account_in: AccountCreate,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    account = LedgerService(db, current_user).create_account(account_in)
    return success(account, f"Account {account.account_code} created successfully")


@router.get("/metrics/summary", response_model=ApiResponse[LedgerMetrics])
def ledger_metrics(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: User = Depends(RoleChecker(FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    return success(FinancialReportsService(db).metrics(date_from, date_to))


@router.get("/metrics/accounting", response_model=ApiResponse[AccountingMetrics])
def accounting_metrics(
    current_user: User = Depends(RoleChecker(FINANCE_READ_ROLES)),
    db: Session = Depends(get_db),
):
    """Open receivables and payables"""
    return success(FinancialReportsService(db).accounting_metrics())


@router.get("/reports/profit-loss", response_model=ApiResponse[ProfitLossReport])
def profit_loss(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: User = Depends(RoleChecker(FINANCE_READ_ROLES)),
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    return success(FinancialReportsService(db).profit_loss(date_from, date_to))


@router.get("/reports/balance-sheet", response_model=ApiResponse[BalanceSheetReport])
def balance_sheet(
    as_of_date: Optional[date] = None,
    current_user: User = Depends(RoleChecker(FINANCE_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(FinancialReportsService(db).balance_sheet(as_of_date))


@router.get("/{entry_id}", response_model=ApiResponse[LedgerEntryResponse])
def get_entry(
    entry_id: int,
    current_user: User = Depends(RoleChecker(LEDGER_READ_ROLES)),
    db: Session = Depends(get_db),
):
    return success(LedgerService(db, current_user).get(entry_id))
