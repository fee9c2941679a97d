"""
Ledger Service
Double-entry ledger postings and the chart of accounts
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from qms.core.config import settings
from qms.core.database import unit_of_work
from qms.core.exceptions import ConflictError, NotFoundError, UnbalancedEntryError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import enum_value
from qms.models.ledger import ChartOfAccount, LedgerEntry, LedgerEntryLine
from qms.services.numbering import LEDGER_ENTRY_PREFIX, DocumentNumberAllocator
from qms.services.totals import to_decimal, to_money

logger = get_logger("business")

SORTABLE = {
    "created_at": LedgerEntry.created_at,
    "entry_date": LedgerEntry.entry_date,
    "entry_number": LedgerEntry.entry_number,
}


def check_balance(debits: Decimal, credits: Decimal, tolerance: Optional[Decimal] = None) -> None:
    """Raise UnbalancedEntryError when debits and credits differ by more than the tolerance"""
    tolerance = settings.LEDGER_BALANCE_TOLERANCE if tolerance is None else tolerance
    if abs(debits - credits) > tolerance:
        raise UnbalancedEntryError(debits, credits)


class LedgerService:
    """
    General ledger

    An entry is written with all its lines in one transaction, and only
    when its debits and credits balance.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    def get(self, entry_id: int) -> LedgerEntry:
        entry = (
            self.db.query(LedgerEntry)
            .options(selectinload(LedgerEntry.lines).selectinload(LedgerEntryLine.account))
            .filter(LedgerEntry.id == entry_id)
            .first()
        )
        if not entry:
            raise NotFoundError("Ledger entry", entry_id)
        return entry

    def list(
        self,
        params: CursorParams,
        reference_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CursorPage:
        query = self.db.query(LedgerEntry).options(selectinload(LedgerEntry.lines))
        if reference_type:
            query = query.filter(LedgerEntry.reference_type == reference_type)
        if date_from:
            query = query.filter(LedgerEntry.entry_date >= date_from)
        if date_to:
            query = query.filter(LedgerEntry.entry_date <= date_to)
        return paginate(query, LedgerEntry, params, SORTABLE)

    def create_entry(self, entry_in) -> LedgerEntry:
        account_ids = {line.account_id for line in entry_in.lines}
        accounts = {
            account.id: account
            for account in self.db.query(ChartOfAccount).filter(ChartOfAccount.id.in_(account_ids))
        }
        for account_id in account_ids:
            account = accounts.get(account_id)
            if account is None:
                raise NotFoundError("Account", account_id)
            if not account.is_active:
                raise ValidationError(f"Account {account.account_code} is inactive")

        total_debit = sum((to_decimal(line.debit_amount) for line in entry_in.lines), Decimal("0"))
        total_credit = sum((to_decimal(line.credit_amount) for line in entry_in.lines), Decimal("0"))
        try:
            check_balance(total_debit, total_credit)
        except UnbalancedEntryError:
            logger.warning(f"Rejected unbalanced ledger entry: debits {total_debit}, credits {total_credit}")
            raise

        with unit_of_work(self.db):
            entry = LedgerEntry(
                entry_date=entry_in.entry_date,
                reference_type=entry_in.reference_type,
                reference_id=entry_in.reference_id,
                description=entry_in.description,
                total_debit=to_money(total_debit),
                total_credit=to_money(total_credit),
                created_by=self.current_user.id if self.current_user else None,
                lines=[
                    LedgerEntryLine(
                        account_id=line.account_id,
                        description=line.description,
                        debit_amount=to_money(line.debit_amount),
                        credit_amount=to_money(line.credit_amount),
                    )
                    for line in entry_in.lines
                ],
            )
            DocumentNumberAllocator(self.db).insert(entry, "entry_number", LEDGER_ENTRY_PREFIX)

        logger.info(f"Ledger entry {entry.entry_number} posted, {total_debit} / {total_credit}")
        return self.get(entry.id)

    # Chart of accounts

    def list_accounts(self, account_type: Optional[str] = None, active_only: bool = False) -> List[ChartOfAccount]:
        query = self.db.query(ChartOfAccount)
        if account_type:
            query = query.filter(ChartOfAccount.account_type == enum_value(account_type))
        if active_only:
            query = query.filter(ChartOfAccount.is_active.is_(True))
        return query.order_by(ChartOfAccount.account_code).all()

    def create_account(self, account_in) -> ChartOfAccount:
        exists = self.db.query(ChartOfAccount.id).filter(
            ChartOfAccount.account_code == account_in.account_code
        ).first()
        if exists:
            raise ConflictError(f"Account code {account_in.account_code} already exists")

        account = ChartOfAccount(**account_in.model_dump())
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        logger.info(f"Account {account.account_code} {account.account_name} created")
        return account
