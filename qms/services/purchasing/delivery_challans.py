"""
Delivery Challans Service
Dispatch notes for purchase orders and their status tracking
"""
from datetime import date
from typing import Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.delivery_challan import DeliveryChallan
from qms.models.enums import AttachmentEntity, DeliveryChallanStatus, PurchaseOrderStatus, enum_value
from qms.models.purchase_order import PurchaseOrder
from qms.services.document_service import DocumentService
from qms.services.numbering import DELIVERY_CHALLAN_PREFIX, DocumentNumberAllocator

logger = get_logger("business")

SORTABLE = {
    "created_at": DeliveryChallan.created_at,
    "challan_date": DeliveryChallan.challan_date,
    "challan_number": DeliveryChallan.challan_number,
}

CLOSED_STATUSES = {DeliveryChallanStatus.DELIVERED.value, DeliveryChallanStatus.CANCELLED.value}


class DeliveryChallanService:
    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    @property
    def user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user else None

    def get(self, challan_id: int) -> DeliveryChallan:
        challan = self.db.get(DeliveryChallan, challan_id)
        if not challan:
            raise NotFoundError("Delivery challan", challan_id)
        return challan

    def detail(self, challan_id: int) -> Dict:
        """Challan with its purchase order and attached files"""
        challan = self.get(challan_id)
        attachments = DocumentService(self.db, self.current_user).list(AttachmentEntity.DELIVERY_CHALLAN, challan.id)
        return {"challan": challan, "purchase_order": challan.purchase_order, "attachments": attachments}

    def list(
        self,
        params: CursorParams,
        status: Optional[str] = None,
        purchase_order_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> CursorPage:
        query = self.db.query(DeliveryChallan)
        if status:
            query = query.filter(DeliveryChallan.status == enum_value(status))
        if purchase_order_id:
            query = query.filter(DeliveryChallan.purchase_order_id == purchase_order_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                DeliveryChallan.challan_number.ilike(pattern),
                DeliveryChallan.contact_person.ilike(pattern),
            ))
        return paginate(query, DeliveryChallan, params, SORTABLE)

    def create(self, challan_in) -> DeliveryChallan:
        po = self.db.get(PurchaseOrder, challan_in.purchase_order_id)
        if not po:
            raise NotFoundError("Purchase order", challan_in.purchase_order_id)
        if po.status == PurchaseOrderStatus.CANCELLED.value:
            raise InvalidStateError(f"Purchase order {po.po_number} is cancelled")

        data = challan_in.model_dump(exclude={"challan_number"})
        challan = DeliveryChallan(
            **data,
            status=DeliveryChallanStatus.GENERATED.value,
            created_by=self.user_id,
        )

        if challan_in.challan_number:
            exists = (
                self.db.query(DeliveryChallan.id)
                .filter(DeliveryChallan.challan_number == challan_in.challan_number)
                .first()
            )
            if exists:
                raise ConflictError(f"Delivery challan {challan_in.challan_number} already exists")
            challan.challan_number = challan_in.challan_number
            self.db.add(challan)
        else:
            DocumentNumberAllocator(self.db).insert(
                challan, "challan_number", DELIVERY_CHALLAN_PREFIX, year=challan_in.challan_date.year
            )
        self.db.commit()
        self.db.refresh(challan)

        logger.info(f"Delivery challan {challan.challan_number} created for purchase order {po.po_number}")
        return challan

    def set_status(self, challan_id: int, status, delivery_date: Optional[date] = None) -> DeliveryChallan:
        """Move a challan along; delivered and cancelled challans are final"""
        challan = self.get(challan_id)
        status = enum_value(status)
        if challan.status in CLOSED_STATUSES and status != challan.status:
            raise InvalidStateError(f"Delivery challan {challan.challan_number} is {challan.status}")

        previous = challan.status
        challan.status = status
        if status == DeliveryChallanStatus.DELIVERED.value:
            challan.delivery_date = delivery_date or challan.delivery_date or date.today()
        self.db.commit()
        self.db.refresh(challan)

        logger.info(f"Delivery challan {challan.challan_number} status {previous} -> {status}")
        return challan
