"""Permission model: one row per resource with its permitted actions."""

import enum
from typing import Iterable, List

from sqlalchemy import JSON, Column, Integer, String
from sqlalchemy.orm import validates

from workbench.db.base import Base, TimestampMixin


class Action(str, enum.Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"


ACTION_ORDER = [a.value for a in Action]


def normalize_resource(resource: str) -> str:
    return resource.strip().lower()


def canonical_actions(actions: Iterable) -> List[str]:
    """Deduplicate and sort actions into read, create, update, delete order."""
    values = {Action(a).value for a in actions}
    return [a for a in ACTION_ORDER if a in values]


class Permission(TimestampMixin, Base):
    """The full set of actions permitted on one resource."""
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource = Column(String(50), unique=True, nullable=False, index=True)
    action = Column(JSON, nullable=False, default=list)

    @validates("resource")
    def _normalize_resource(self, key, value):
        return normalize_resource(value)

    @validates("action")
    def _normalize_action(self, key, value):
        return canonical_actions(value)

    def allows(self, action) -> bool:
        return Action(action).value in (self.action or [])
