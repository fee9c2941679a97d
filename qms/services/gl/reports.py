"""
Financial Reports Service
Ledger metrics, receivables/payables, profit and loss, balance sheet
"""
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from qms.core.config import settings
from qms.core.logging import get_logger
from qms.models.enums import AccountType, InvoiceStatus, VendorBillStatus
from qms.models.invoice import Invoice
from qms.models.ledger import ChartOfAccount, LedgerEntry, LedgerEntryLine
from qms.models.vendor_bill import VendorBill
from qms.services.totals import to_decimal, to_money

logger = get_logger("business")

ZERO = Decimal("0")

# Entry reference types feeding the profit and loss statement
SALE_REFERENCE = "sale"
PURCHASE_REFERENCE = "purchase"
EXPENSE_REFERENCE = "expense"
PURCHASE_ORDER_REFERENCE = "purchase_order"

# Account types carrying a debit normal balance
DEBIT_NORMAL = {AccountType.ASSET.value, AccountType.EXPENSE.value}


def _margin(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return to_money(part / whole * Decimal("100"))


class FinancialReportsService:
    def __init__(self, db: Session):
        self.db = db

    def _date_filtered(self, query, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(LedgerEntry.entry_date >= date_from)
        if date_to:
            query = query.filter(LedgerEntry.entry_date <= date_to)
        return query

    def _line_sum(self, column, account_type: AccountType, date_from=None, date_to=None) -> Decimal:
        query = (
            self.db.query(func.coalesce(func.sum(column), 0))
            .join(LedgerEntry, LedgerEntryLine.ledger_entry_id == LedgerEntry.id)
            .join(ChartOfAccount, LedgerEntryLine.account_id == ChartOfAccount.id)
            .filter(ChartOfAccount.account_type == account_type.value)
        )
        return to_decimal(self._date_filtered(query, date_from, date_to).scalar())

    def metrics(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict:
        """
        Ledger summary.

        Sales are credits posted to revenue accounts, expenses are debits
        posted to expense accounts and purchases are the debit totals of
        purchase_order entries.
        """
        total_sales = self._line_sum(LedgerEntryLine.credit_amount, AccountType.REVENUE, date_from, date_to)
        expenses = self._line_sum(LedgerEntryLine.debit_amount, AccountType.EXPENSE, date_from, date_to)

        purchases_query = self.db.query(func.coalesce(func.sum(LedgerEntry.total_debit), 0)).filter(
            LedgerEntry.reference_type == PURCHASE_ORDER_REFERENCE
        )
        total_purchases = to_decimal(self._date_filtered(purchases_query, date_from, date_to).scalar())

        entry_count = self._date_filtered(self.db.query(func.count(LedgerEntry.id)), date_from, date_to).scalar()

        return {
            "total_sales": to_money(total_sales),
            "total_purchases": to_money(total_purchases),
            "expenses": to_money(expenses),
            "net_profit": to_money(total_sales - total_purchases - expenses),
            "entry_count": entry_count or 0,
        }

    def accounting_metrics(self, today: Optional[date] = None) -> Dict:
        """Open receivables and payables with overdue totals"""
        today = today or date.today()

        invoices = (
            self.db.query(Invoice)
            .options(joinedload(Invoice.customer))
            .filter(Invoice.status.notin_([InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value]))
            .order_by(Invoice.due_date)
            .all()
        )
        bills = (
            self.db.query(VendorBill)
            .options(joinedload(VendorBill.vendor))
            .filter(VendorBill.status != VendorBillStatus.PAID.value)
            .order_by(VendorBill.due_date)
            .all()
        )

        receivables, payables = [], []
        total_receivable = total_payable = total_overdue = ZERO

        for invoice in invoices:
            outstanding = to_decimal(invoice.total_amount) - to_decimal(invoice.paid_amount)
            is_overdue = invoice.due_date is not None and invoice.due_date < today
            total_receivable += outstanding
            if is_overdue:
                total_overdue += outstanding
            receivables.append({
                "invoice_id": invoice.id,
                "invoice_number": invoice.invoice_number,
                "customer_name": invoice.customer.name if invoice.customer else None,
                "due_date": invoice.due_date,
                "outstanding_amount": to_money(outstanding),
                "is_overdue": is_overdue,
            })

        for bill in bills:
            outstanding = to_decimal(bill.total_amount) - to_decimal(bill.paid_amount)
            is_overdue = bill.due_date is not None and bill.due_date < today
            total_payable += outstanding
            if is_overdue:
                total_overdue += outstanding
            payables.append({
                "bill_id": bill.id,
                "bill_number": bill.bill_number,
                "vendor_name": bill.vendor.name if bill.vendor else None,
                "due_date": bill.due_date,
                "outstanding_amount": to_money(outstanding),
                "is_overdue": is_overdue,
            })

        return {
            "receivables": receivables,
            "payables": payables,
            "summary": {
                "total_outstanding": to_money(total_receivable + total_payable),
                "total_payables": to_money(total_payable),
                "net_receivables": to_money(total_receivable - total_payable),
                "total_overdue": to_money(total_overdue),
            },
        }

    def profit_loss(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict:
        """
        Profit and loss by entry reference type.

        Each entry counts as the larger of its debit and credit totals.
        """
        amount = func.sum(case(
            (LedgerEntry.total_debit >= LedgerEntry.total_credit, LedgerEntry.total_debit),
            else_=LedgerEntry.total_credit,
        ))
        query = self.db.query(LedgerEntry.reference_type, amount).filter(
            LedgerEntry.reference_type.in_([SALE_REFERENCE, PURCHASE_REFERENCE, EXPENSE_REFERENCE])
        )
        rows = dict(self._date_filtered(query, date_from, date_to).group_by(LedgerEntry.reference_type).all())

        revenue = to_decimal(rows.get(SALE_REFERENCE))
        cost_of_goods_sold = to_decimal(rows.get(PURCHASE_REFERENCE))
        operating_expenses = to_decimal(rows.get(EXPENSE_REFERENCE))
        gross_profit = revenue - cost_of_goods_sold
        net_income = gross_profit - operating_expenses
        logger.info(f"Profit and loss {date_from} to {date_to}: revenue {revenue}, net income {net_income}")

        return {
            "date_from": date_from,
            "date_to": date_to,
            "revenue": to_money(revenue),
            "cost_of_goods_sold": to_money(cost_of_goods_sold),
            "gross_profit": to_money(gross_profit),
            "operating_expenses": to_money(operating_expenses),
            "net_income": to_money(net_income),
            "gross_margin": _margin(gross_profit, revenue),
            "net_margin": _margin(net_income, revenue),
        }

    def balance_sheet(self, as_of_date: Optional[date] = None) -> Dict:
        """
        Account balances by type as of a date.

        Revenue less expenses is folded into equity as current earnings so
        that assets equal liabilities plus equity for balanced postings.
        """
        as_of_date = as_of_date or date.today()
        rows = (
            self.db.query(
                ChartOfAccount.account_code,
                ChartOfAccount.account_name,
                ChartOfAccount.account_type,
                func.coalesce(func.sum(LedgerEntryLine.debit_amount), 0),
                func.coalesce(func.sum(LedgerEntryLine.credit_amount), 0),
            )
            .join(LedgerEntryLine, LedgerEntryLine.account_id == ChartOfAccount.id)
            .join(LedgerEntry, LedgerEntryLine.ledger_entry_id == LedgerEntry.id)
            .filter(LedgerEntry.entry_date <= as_of_date)
            .group_by(
                ChartOfAccount.id,
                ChartOfAccount.account_code,
                ChartOfAccount.account_name,
                ChartOfAccount.account_type,
            )
            .order_by(ChartOfAccount.account_code)
            .all()
        )

        sections = {AccountType.ASSET.value: {}, AccountType.LIABILITY.value: {}, AccountType.EQUITY.value: {}}
        current_earnings = ZERO
        # Keyed by code as well, account names are not unique
        for code, name, account_type, debits, credits in rows:
            debits, credits = to_decimal(debits), to_decimal(credits)
            balance = debits - credits if account_type in DEBIT_NORMAL else credits - debits
            if account_type == AccountType.REVENUE.value:
                current_earnings += balance
            elif account_type == AccountType.EXPENSE.value:
                current_earnings -= balance
            else:
                sections[account_type][f"{code} {name}"] = to_money(balance)

        if current_earnings:
            sections[AccountType.EQUITY.value]["Current Earnings"] = to_money(current_earnings)

        total_assets = sum(sections[AccountType.ASSET.value].values(), ZERO)
        total_liabilities = sum(sections[AccountType.LIABILITY.value].values(), ZERO)
        total_equity = sum(sections[AccountType.EQUITY.value].values(), ZERO)
        total_liabilities_equity = total_liabilities + total_equity

        return {
            "as_of_date": as_of_date,
            "assets": sections[AccountType.ASSET.value],
            "liabilities": sections[AccountType.LIABILITY.value],
            "equity": sections[AccountType.EQUITY.value],
            "total_assets": to_money(total_assets),
            "total_liabilities": to_money(total_liabilities),
            "total_equity": to_money(total_equity),
            "total_liabilities_equity": to_money(total_liabilities_equity),
            "balanced": abs(total_assets - total_liabilities_equity) <= settings.LEDGER_BALANCE_TOLERANCE,
        }
