"""Role model for RBAC."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import validates

from workbench.db.base import Base, TimestampMixin


def normalize_role_name(name: str) -> str:
    return name.strip().lower()


class Role(TimestampMixin, Base):
    """Named bucket of permissions assignable to users.

    ``normalized_name`` mirrors ``name`` lower-cased so the UNIQUE constraint
    enforces case-insensitive uniqueness at the storage level.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    normalized_name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)

    @validates("name")
    def _sync_normalized_name(self, key, value):
        value = value.strip()
        self.normalized_name = normalize_role_name(value)
        return value
