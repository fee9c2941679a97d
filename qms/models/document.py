"""
QMS Document Attachment Model
Uploaded files attached to a business record
"""
from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Index, Integer, String, Text

from qms.core.database import Base
from .enums import AttachmentEntity, check_in
from .mixins import utcnow


class DocumentAttachment(Base):
    """
    File attached to a record identified by (entity_type, entity_id)

    Only uploaded files live here. Payments and expense details have their
    own tables.
    """
    __tablename__ = "document_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(Integer, nullable=False)
    file_name = Column(String(255), nullable=False, doc="Original client file name")
    stored_name = Column(String(255), nullable=False, unique=True, doc="Randomized name on disk")
    file_path = Column(String(500), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(150), nullable=False)
    description = Column(Text)
    uploaded_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(check_in("entity_type", AttachmentEntity), name="entity_type"),
        Index("ix_document_attachments_entity", "entity_type", "entity_id"),
    )

    def __repr__(self):
        return f"<DocumentAttachment(id={self.id}, entity='{self.entity_type}:{self.entity_id}')>"
