"""
Document Numbering Service
Allocates <PREFIX>-<YEAR>-<NNN> numbers backed by unique constraints
"""
import random
import time
from datetime import date
from itertools import chain
from typing import Iterator, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qms.core.config import settings
from qms.core.exceptions import ConflictError
from qms.core.logging import get_logger

logger = get_logger("business")

# Prefixes per document type
QUOTATION_PREFIX = "Q"
SALES_ORDER_PREFIX = "SO"
PURCHASE_ORDER_PREFIX = "PO"
INVOICE_PREFIX = "INV"
LEDGER_ENTRY_PREFIX = "LE"
DELIVERY_CHALLAN_PREFIX = "DC"


def format_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:03d}"


def fallback_number(prefix: str, year: int) -> str:
    """
    Timestamp-derived number used once sequential attempts keep colliding.

    T + last 6 digits of epoch milliseconds + 3-digit random salt.
    """
    millis = str(int(time.time() * 1000))[-6:]
    salt = random.randint(0, 999)
    return f"{prefix}-{year}-T{millis}{salt:03d}"


class DocumentNumberAllocator:
    """
    Sequential document numbering without locks.

    The next number is derived from the highest existing sequential number
    for the year. Two concurrent requests may derive the same number; the
    unique constraint rejects the loser, which retries inside a SAVEPOINT
    and eventually falls back to a timestamp-derived number. Numbers are
    unique but only gapless and ordered under serialized execution.
    """

    def __init__(self, db: Session, max_retries: Optional[int] = None, fallback_attempts: Optional[int] = None):
        self.db = db
        self.max_retries = max_retries if max_retries is not None else settings.NUMBER_MAX_RETRIES
        self.fallback_attempts = (
            fallback_attempts if fallback_attempts is not None else settings.NUMBER_FALLBACK_ATTEMPTS
        )

    def next_sequential(self, column, prefix: str, year: int) -> str:
        """Next number after the highest sequential (non-fallback) number of the year"""
        last = (
            self.db.query(column)
            .filter(
                column.like(f"{prefix}-{year}-%"),
                ~column.like(f"{prefix}-{year}-T%"),
            )
            .order_by(func.length(column).desc(), column.desc())
            .first()
        )

        sequence = 1
        if last and last[0]:
            try:
                sequence = int(last[0].rsplit("-", 1)[1]) + 1
            except (IndexError, ValueError):
                logger.warning(f"Unparseable document number {last[0]!r}, restarting sequence")
        return format_number(prefix, year, sequence)

    def _candidates(self, column, prefix: str, year: int) -> Iterator[str]:
        sequential = (self.next_sequential(column, prefix, year) for _ in range(self.max_retries))
        fallback = (fallback_number(prefix, year) for _ in range(self.fallback_attempts))
        return chain(sequential, fallback)

    def insert(self, instance, attribute: str, prefix: str, year: Optional[int] = None) -> str:
        """
        Assign a number to instance and flush it (with its cascaded children).

        Args:
            instance: New mapped object, not yet added to the session
            attribute: Name of the unique number column on the instance
            prefix: Document prefix (Q, SO, PO, INV, LE, DC)
            year: Numbering year, defaults to the current year

        Returns:
            The number that was stored

        Raises:
            ConflictError: every candidate collided
        """
        year = year or date.today().year
        column = getattr(type(instance), attribute)

        for attempt, number in enumerate(self._candidates(column, prefix, year), start=1):
            setattr(instance, attribute, number)
            try:
                with self.db.begin_nested():
                    self.db.add(instance)
                    self.db.flush()
                if attempt > 1:
                    logger.info(f"Allocated {number} after {attempt} attempts")
                return number
            except IntegrityError:
                logger.warning(f"Document number {number} already taken (attempt {attempt})")

        raise ConflictError(f"Could not allocate a unique {prefix} number, please retry")
