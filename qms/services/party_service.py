"""
Party Service
Customer and vendor maintenance
"""
from typing import Optional, Sequence, Type

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, NotFoundError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.enums import enum_value
from qms.models.invoice import Invoice
from qms.models.party import Customer, Vendor
from qms.models.purchase_order import PurchaseOrder
from qms.models.quotation import Quotation
from qms.models.sales_order import SalesOrder
from qms.models.vendor_bill import VendorBill

logger = get_logger("business")


class PartyService:
    """
    CRUD for a party model

    Subclasses name the model and the document columns that reference it.
    """
    model: Type = None
    label: str = "Party"
    references: Sequence = ()

    def __init__(self, db: Session, current_user=None):
        self.db = db
        self.current_user = current_user

    def get(self, party_id: int):
        party = self.db.get(self.model, party_id)
        if not party:
            raise NotFoundError(self.label, party_id)
        return party

    def list(self, params: CursorParams, status: Optional[str] = None, search: Optional[str] = None) -> CursorPage:
        query = self.db.query(self.model)
        if status:
            query = query.filter(self.model.status == enum_value(status))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                self.model.name.ilike(pattern),
                self.model.email.ilike(pattern),
                self.model.contact_person.ilike(pattern),
            ))
        sortable = {"created_at": self.model.created_at, "name": self.model.name}
        return paginate(query, self.model, params, sortable)

    def create(self, party_in):
        party = self.model(**party_in.model_dump())
        self.db.add(party)
        self.db.commit()
        self.db.refresh(party)
        logger.info(f"{self.label} {party.id} created: {party.name}")
        return party

    def update(self, party_id: int, party_in):
        party = self.get(party_id)
        for key, value in party_in.model_dump(exclude_unset=True).items():
            setattr(party, key, value)
        self.db.commit()
        self.db.refresh(party)
        return party

    def delete(self, party_id: int) -> None:
        party = self.get(party_id)
        for column in self.references:
            if self.db.query(column).filter(column == party_id).first():
                raise ConflictError(
                    f"{self.label} {party.name} is referenced by existing documents; "
                    f"set the status to inactive instead"
                )
        self.db.delete(party)
        self.db.commit()
        logger.info(f"{self.label} {party_id} deleted")


class CustomerService(PartyService):
    model = Customer
    label = "Customer"
    references = (Quotation.customer_id, SalesOrder.customer_id, Invoice.customer_id)


class VendorService(PartyService):
    model = Vendor
    label = "Vendor"
    references = (PurchaseOrder.vendor_id, VendorBill.vendor_id)
