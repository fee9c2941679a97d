"""
Tests for General Ledger Services
Balanced entries and financial reports
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, UnbalancedEntryError
from qms.models.ledger import ChartOfAccount, LedgerEntry, LedgerEntryLine
from qms.schemas.ledger import AccountCreate, LedgerEntryCreate, LedgerLineCreate
from qms.services.gl.ledger import LedgerService, check_balance
from qms.services.gl.reports import FinancialReportsService


def entry(debit_account, credit_account, debit, credit, reference_type=None, description="Test entry"):
    return LedgerEntryCreate(
        description=description,
        reference_type=reference_type,
        lines=[
            LedgerLineCreate(account_id=debit_account.id, debit_amount=Decimal(debit)),
            LedgerLineCreate(account_id=credit_account.id, credit_amount=Decimal(credit)),
        ],
    )


class TestBalanceCheck:
    def test_within_tolerance(self):
        check_balance(Decimal("500.00"), Decimal("500.00"))
        check_balance(Decimal("500.00"), Decimal("500.005"))
        check_balance(Decimal("500.00"), Decimal("500.01"))

    def test_beyond_tolerance(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            check_balance(Decimal("500.00"), Decimal("499.98"))

        assert exc_info.value.code == "UNBALANCED_ENTRY"
        assert exc_info.value.details["difference"] == pytest.approx(0.02)


class TestLedgerService:
    """Test suite for LedgerService"""

    def test_balanced_entry_posted(self, db_session: Session, accounts):
        posted = LedgerService(db_session).create_entry(
            entry(accounts["asset"], accounts["revenue"], "500.00", "500.00")
        )

        assert posted.entry_number.startswith("LE-")
        assert posted.total_debit == Decimal("500.00")
        assert posted.total_credit == Decimal("500.00")
        assert len(posted.lines) == 2

    def test_half_cent_difference_accepted(self, db_session: Session, accounts):
        posted = LedgerService(db_session).create_entry(
            entry(accounts["asset"], accounts["revenue"], "500.00", "500.005")
        )

        assert posted.id is not None

    def test_unbalanced_entry_writes_nothing(self, db_session: Session, accounts):
        with pytest.raises(UnbalancedEntryError):
            LedgerService(db_session).create_entry(
                entry(accounts["asset"], accounts["revenue"], "500.00", "499.98")
            )

        assert db_session.query(LedgerEntry).count() == 0
        assert db_session.query(LedgerEntryLine).count() == 0

    def test_line_must_post_one_side(self, accounts):
        with pytest.raises(SchemaValidationError):
            LedgerLineCreate(account_id=accounts["asset"].id, debit_amount=Decimal("1"), credit_amount=Decimal("1"))
        with pytest.raises(SchemaValidationError):
            LedgerLineCreate(account_id=accounts["asset"].id)

    def test_duplicate_account_code(self, db_session: Session, accounts):
        with pytest.raises(ConflictError):
            LedgerService(db_session).create_account(AccountCreate(
                account_code="1000", account_name="Petty cash", account_type="asset",
            ))

    def test_list_accounts_by_type(self, db_session: Session, accounts):
        revenue = LedgerService(db_session).list_accounts(account_type="revenue")

        assert [a.account_code for a in revenue] == ["4000"]


class TestFinancialReports:
    """Test suite for FinancialReportsService"""

    def post_sample_entries(self, db_session: Session, accounts):
        service = LedgerService(db_session)
        service.create_entry(entry(accounts["asset"], accounts["equity"], "1000.00", "1000.00", description="Capital"))
        service.create_entry(entry(accounts["asset"], accounts["revenue"], "800.00", "800.00", reference_type="sale"))
        service.create_entry(entry(accounts["expense"], accounts["asset"], "300.00", "300.00", reference_type="purchase"))
        service.create_entry(entry(accounts["expense"], accounts["liability"], "100.00", "100.00", reference_type="expense"))

    def test_metrics(self, db_session: Session, accounts):
        self.post_sample_entries(db_session, accounts)

        metrics = FinancialReportsService(db_session).metrics()

        assert metrics["total_sales"] == Decimal("800.00")
        assert metrics["expenses"] == Decimal("400.00")
        assert metrics["net_profit"] == Decimal("400.00")
        assert metrics["entry_count"] == 4

    def test_profit_and_loss(self, db_session: Session, accounts):
        self.post_sample_entries(db_session, accounts)

        report = FinancialReportsService(db_session).profit_loss()

        assert report["revenue"] == Decimal("800.00")
        assert report["cost_of_goods_sold"] == Decimal("300.00")
        assert report["gross_profit"] == Decimal("500.00")
        assert report["operating_expenses"] == Decimal("100.00")
        assert report["net_income"] == Decimal("400.00")

    def test_balance_sheet_balances(self, db_session: Session, accounts):
        self.post_sample_entries(db_session, accounts)

        sheet = FinancialReportsService(db_session).balance_sheet()

        assert sheet["total_assets"] == Decimal("1500.00")
        assert sheet["total_liabilities"] == Decimal("100.00")
        assert sheet["total_equity"] == Decimal("1400.00")
        assert sheet["balanced"] is True

    def test_profit_and_loss_date_range(self, db_session: Session, accounts):
        self.post_sample_entries(db_session, accounts)
        tomorrow = date.today() + timedelta(days=1)

        report = FinancialReportsService(db_session).profit_loss(date_from=tomorrow)

        assert report["revenue"] == 0
        assert report["net_income"] == 0

    def test_balance_sheet_accounts_sharing_a_name(self, db_session: Session, accounts):
        second_cash = ChartOfAccount(account_code="1001", account_name="Cash", account_type="asset")
        db_session.add(second_cash)
        db_session.commit()
        service = LedgerService(db_session)
        service.create_entry(entry(accounts["asset"], accounts["equity"], "100.00", "100.00"))
        service.create_entry(entry(second_cash, accounts["equity"], "50.00", "50.00"))

        sheet = FinancialReportsService(db_session).balance_sheet()

        assert sheet["assets"] == {"1000 Cash": Decimal("100.00"), "1001 Cash": Decimal("50.00")}
        assert sheet["total_assets"] == Decimal("150.00")
        assert sheet["total_equity"] == Decimal("150.00")
        assert sheet["balanced"] is True
