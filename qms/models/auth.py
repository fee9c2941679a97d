"""
QMS Authentication Models
Application users and their roles
"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from qms.core.database import Base
from .enums import UserRole, check_in
from .mixins import TimestampMixin


class User(TimestampMixin, Base):
    """
    Application user

    A user holds exactly one role; routes check the role against an allow-list.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True, doc="Login e-mail")
    password_hash = Column(String(255), nullable=False, doc="bcrypt password hash")
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.SALES.value, doc="Access role")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(check_in("role", UserRole), name="role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
