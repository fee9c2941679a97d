"""
Settings Service
Company-wide defaults and document terms
"""
from typing import Optional

from sqlalchemy.orm import Session

from qms.core.logging import get_logger
from qms.models.auth import User
from qms.models.settings import SystemSettings

logger = get_logger("business")


class SettingsService:
    """The settings row is created with its column defaults on first access"""

    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    def get(self) -> SystemSettings:
        row = self.db.query(SystemSettings).order_by(SystemSettings.id).first()
        if row is None:
            row = SystemSettings()
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info("Default system settings created")
        return row

    def update(self, settings_in) -> SystemSettings:
        row = self.get()
        changes = settings_in.model_dump(exclude_none=True)
        for key, value in changes.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)

        changed_by = self.current_user.email if self.current_user else "system"
        logger.info(f"System settings updated by {changed_by}: {', '.join(sorted(changes)) or 'no changes'}")
        return row
