"""
Quotations Service
Quotation entry, maintenance and status control
"""
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from qms.core.database import unit_of_work
from qms.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.enums import QuotationStatus, enum_value
from qms.models.party import Customer
from qms.models.quotation import Quotation, QuotationItem
from qms.services.numbering import QUOTATION_PREFIX, DocumentNumberAllocator
from qms.services.totals import apply_totals, build_line_items

logger = get_logger("business")

SORTABLE = {
    "created_at": Quotation.created_at,
    "quotation_date": Quotation.quotation_date,
    "quotation_number": Quotation.quotation_number,
    "total_amount": Quotation.total_amount,
}

EDITABLE_STATUSES = {QuotationStatus.DRAFT.value, QuotationStatus.SENT.value}
PROTECTED_FROM_DELETE = {QuotationStatus.APPROVED.value, QuotationStatus.CONVERTED.value}
CLOSED_STATUSES = {QuotationStatus.REJECTED.value, QuotationStatus.EXPIRED.value}


class QuotationService:
    """
    Quotation processing

    Quotations are created in draft; conversion to a sales order is handled
    by QuotationConversionService.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get(self, quotation_id: int) -> Quotation:
        quotation = (
            self.db.query(Quotation)
            .options(selectinload(Quotation.items))
            .filter(Quotation.id == quotation_id)
            .first()
        )
        if not quotation:
            raise NotFoundError("Quotation", quotation_id)
        return quotation

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> CursorPage:
        query = self.db.query(Quotation)
        if status:
            query = query.filter(Quotation.status == enum_value(status))
        if customer_id:
            query = query.filter(Quotation.customer_id == customer_id)
        if date_from:
            query = query.filter(Quotation.quotation_date >= date_from)
        if date_to:
            query = query.filter(Quotation.quotation_date <= date_to)
        if search:
            query = query.filter(Quotation.quotation_number.ilike(f"%{search}%"))
        return paginate(query, Quotation, params, SORTABLE)

    def _require_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    def create(self, quotation_in) -> Quotation:
        """Create a draft quotation with a sequential number and computed totals"""
        self._require_customer(quotation_in.customer_id)

        with unit_of_work(self.db):
            items, totals = build_line_items(self.db, QuotationItem, quotation_in.items)
            quotation = Quotation(
                customer_id=quotation_in.customer_id,
                quotation_date=quotation_in.quotation_date,
                valid_until=quotation_in.valid_until,
                terms_conditions=quotation_in.terms_conditions,
                notes=quotation_in.notes,
                status=QuotationStatus.DRAFT.value,
                created_by=self.user_id,
                items=items,
            )
            apply_totals(quotation, totals)
            DocumentNumberAllocator(self.db).insert(quotation, "quotation_number", QUOTATION_PREFIX)

        logger.info(f"Quotation {quotation.quotation_number} created, total {quotation.total_amount}")
        return self.get(quotation.id)

    def update(self, quotation_id: int, quotation_in) -> Quotation:
        """Update header fields; items, when given, replace all items and totals are recomputed"""
        quotation = self.get(quotation_id)
        if quotation.status not in EDITABLE_STATUSES:
            raise InvalidStateError(
                f"Quotation {quotation.quotation_number} is {quotation.status} and can no longer be edited"
            )

        data = quotation_in.model_dump(exclude_unset=True, exclude={"items"})
        if "customer_id" in data:
            self._require_customer(data["customer_id"])

        quotation_date = data.get("quotation_date", quotation.quotation_date)
        valid_until = data.get("valid_until", quotation.valid_until)
        if quotation_date and valid_until and valid_until < quotation_date:
            raise ValidationError("valid_until cannot be before quotation_date")

        with unit_of_work(self.db):
            for key, value in data.items():
                setattr(quotation, key, value)
            if quotation_in.items is not None:
                items, totals = build_line_items(self.db, QuotationItem, quotation_in.items)
                quotation.items = items
                apply_totals(quotation, totals)

        logger.info(f"Quotation {quotation.quotation_number} updated")
        return self.get(quotation_id)

    def set_status(self, quotation_id: int, status) -> Quotation:
        quotation = self.get(quotation_id)
        status = enum_value(status)

        if status == QuotationStatus.CONVERTED.value:
            raise InvalidStateError("Quotations are marked converted only by converting them to a sales order")
        if quotation.status == QuotationStatus.CONVERTED.value:
            raise InvalidStateError(f"Quotation {quotation.quotation_number} has already been converted")
        if quotation.status in CLOSED_STATUSES and status != quotation.status:
            raise InvalidStateError(f"Quotation {quotation.quotation_number} is {quotation.status}")

        previous = quotation.status
        quotation.status = status
        if status == QuotationStatus.APPROVED.value:
            quotation.approved_by = self.user_id
            quotation.approved_at = datetime.now(timezone.utc)
        self.db.commit()

        logger.info(f"Quotation {quotation.quotation_number} status {previous} -> {status}")
        return self.get(quotation_id)

    def delete(self, quotation_id: int) -> None:
        quotation = self.get(quotation_id)
        if quotation.status in PROTECTED_FROM_DELETE:
            raise InvalidStateError(
                f"Quotation {quotation.quotation_number} is {quotation.status} and cannot be deleted"
            )
        self.db.delete(quotation)
        self.db.commit()
        logger.info(f"Quotation {quotation.quotation_number} deleted")
