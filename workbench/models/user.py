"""User model."""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship, validates

from workbench.db.base import Base, TimestampMixin


class UserStatus(str, enum.Enum):
    Active = "Active"
    Inactive = "Inactive"
    Suspended = "Suspended"
    OnLeave = "OnLeave"
    Pending = "Pending"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class User(TimestampMixin, Base):
    """Platform user with exactly one role."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    status = Column(Enum(UserStatus), default=UserStatus.Pending, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    role = relationship("Role")
    employee = relationship("Employee", uselist=False, viewonly=True)

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value)

    @property
    def employee_id(self):
        """Id of the linked employee record, derived from ``Employee.user_id``."""
        return self.employee.id if self.employee is not None else None
