"""
QMS Document Attachment Schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from qms.models.enums import AttachmentEntity


class DocumentResponse(BaseModel):
    id: int
    entity_type: AttachmentEntity
    entity_id: int
    file_name: str
    file_size: int
    mime_type: str
    description: Optional[str] = None
    uploaded_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
