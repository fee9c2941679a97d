"""
Document Service
File attachments for customers, vendors, products and business documents
"""
import uuid
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import Session

from qms.core.config import settings
from qms.core.exceptions import NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.models.auth import User
from qms.models.delivery_challan import DeliveryChallan
from qms.models.document import DocumentAttachment
from qms.models.enums import AttachmentEntity, enum_value
from qms.models.invoice import Invoice
from qms.models.ledger import LedgerEntry
from qms.models.party import Customer, Vendor
from qms.models.product import Product
from qms.models.purchase_order import PurchaseOrder
from qms.models.quotation import Quotation
from qms.models.sales_order import SalesOrder
from qms.models.vendor_bill import VendorBill

logger = get_logger("business")

ENTITY_MODELS = {
    AttachmentEntity.CUSTOMER.value: Customer,
    AttachmentEntity.VENDOR.value: Vendor,
    AttachmentEntity.PRODUCT.value: Product,
    AttachmentEntity.QUOTATION.value: Quotation,
    AttachmentEntity.SALES_ORDER.value: SalesOrder,
    AttachmentEntity.PURCHASE_ORDER.value: PurchaseOrder,
    AttachmentEntity.INVOICE.value: Invoice,
    AttachmentEntity.VENDOR_BILL.value: VendorBill,
    AttachmentEntity.LEDGER_ENTRY.value: LedgerEntry,
    AttachmentEntity.DELIVERY_CHALLAN.value: DeliveryChallan,
}


class DocumentService:
    """
    Attachment storage

    Files are written under UPLOAD_DIR with a random uuid4 name; the
    original name is kept only as metadata.
    """

    def __init__(self, db: Session, current_user: Optional[User] = None, upload_dir: Optional[Path] = None):
        self.db = db
        self.current_user = current_user
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def _require_entity(self, entity_type: str, entity_id: int) -> None:
        model = ENTITY_MODELS.get(entity_type)
        if model is None:
            raise ValidationError(f"Unknown entity type '{entity_type}'")
        if not self.db.get(model, entity_id):
            raise NotFoundError(entity_type.replace("_", " ").capitalize(), entity_id)

    def validate_file(self, file_name: str, content_type: Optional[str], size: int) -> str:
        """Check extension, mime type and size; returns the lower-cased extension"""
        extension = Path(file_name or "").suffix.lower()
        if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
            raise ValidationError(
                f"File type '{extension or file_name}' is not allowed",
                details={"allowed_extensions": settings.ALLOWED_UPLOAD_EXTENSIONS},
            )
        if content_type not in settings.ALLOWED_UPLOAD_MIME_TYPES:
            raise ValidationError(f"Content type '{content_type}' is not allowed")
        if size == 0:
            raise ValidationError("Uploaded file is empty")
        if size > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(
                f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
                details={"max_size": settings.MAX_UPLOAD_SIZE, "size": size},
            )
        return extension

    def upload(
        self,
        entity_type,
        entity_id: int,
        file_name: str,
        content_type: Optional[str],
        content: bytes,
        description: Optional[str] = None,
    ) -> DocumentAttachment:
        entity_type = enum_value(entity_type)
        self._require_entity(entity_type, entity_id)
        extension = self.validate_file(file_name, content_type, len(content))

        stored_name = f"{uuid.uuid4().hex}{extension}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / stored_name
        path.write_bytes(content)

        document = DocumentAttachment(
            entity_type=entity_type,
            entity_id=entity_id,
            file_name=Path(file_name).name,
            stored_name=stored_name,
            file_path=str(path),
            file_size=len(content),
            mime_type=content_type,
            description=description,
            uploaded_by=self.current_user.id if self.current_user else None,
        )
        self.db.add(document)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            path.unlink(missing_ok=True)
            raise
        self.db.refresh(document)

        logger.info(f"Document {document.file_name} attached to {entity_type} {entity_id} as {stored_name}")
        return document

    def get(self, document_id: int) -> DocumentAttachment:
        document = self.db.get(DocumentAttachment, document_id)
        if not document:
            raise NotFoundError("Document", document_id)
        return document

    def list(self, entity_type, entity_id: int) -> List[DocumentAttachment]:
        return (
            self.db.query(DocumentAttachment)
            .filter(
                DocumentAttachment.entity_type == enum_value(entity_type),
                DocumentAttachment.entity_id == entity_id,
            )
            .order_by(DocumentAttachment.created_at.desc(), DocumentAttachment.id.desc())
            .all()
        )

    def file_path(self, document: DocumentAttachment) -> Path:
        path = Path(document.file_path)
        if not path.is_file():
            logger.error(f"Stored file missing for document {document.id}: {path}")
            raise NotFoundError("Document file", document.id)
        return path

    def delete(self, document_id: int) -> None:
        document = self.get(document_id)
        path = Path(document.file_path)
        self.db.delete(document)
        self.db.commit()
        if path.exists():
            path.unlink()
        logger.info(f"Document {document_id} deleted")
