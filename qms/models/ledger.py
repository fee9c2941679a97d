"""
QMS Ledger Models
Chart of accounts and double-entry ledger entries
"""
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from qms.core.database import Base
from .enums import AccountType, check_in
from .mixins import CreatedByMixin, TimestampMixin, utcnow


class ChartOfAccount(TimestampMixin, Base):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_code = Column(String(20), nullable=False, unique=True, doc="Account code")
    account_name = Column(String(150), nullable=False)
    account_type = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(check_in("account_type", AccountType), name="account_type"),
    )

    def __repr__(self):
        return f"<ChartOfAccount(code='{self.account_code}', type='{self.account_type}')>"


class LedgerEntry(CreatedByMixin, Base):
    """
    Ledger entry header

    total_debit and total_credit are the sums of the lines, checked to
    balance within tolerance when the entry is written.
    """
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_number = Column(String(30), nullable=False, unique=True, doc="LE-YYYY-NNN")
    entry_date = Column(Date, nullable=False)
    reference_type = Column(String(30), nullable=True, doc="e.g. sale, purchase, expense, purchase_order")
    reference_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=False)
    total_debit = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    total_credit = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    lines = relationship(
        "LedgerEntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="LedgerEntryLine.id",
    )

    __table_args__ = (
        Index("ix_ledger_entries_date", "entry_date"),
        Index("ix_ledger_entries_reference", "reference_type", "reference_id"),
    )

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, number='{self.entry_number}')>"


class LedgerEntryLine(Base):
    __tablename__ = "ledger_entry_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("chart_of_accounts.id", ondelete="RESTRICT"), nullable=False, index=True)
    description = Column(String(500))
    debit_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    credit_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    entry = relationship("LedgerEntry", back_populates="lines")
    account = relationship("ChartOfAccount")

    __table_args__ = (
        CheckConstraint("debit_amount >= 0 AND credit_amount >= 0", name="non_negative"),
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) OR (credit_amount > 0 AND debit_amount = 0)",
            name="one_side"
        ),
    )
