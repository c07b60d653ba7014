"""Role service: CRUD with case-insensitive name uniqueness."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError
from workbench.db.pagination import paginate
from workbench.db.session import flush_or_conflict
from workbench.models.role import Role, normalize_role_name
from workbench.models.role_permission import RolePermission
from workbench.models.user import User

logger = logging.getLogger(__name__)

NAME_TAKEN = "Role name already taken"


class RoleService:
    """Handles role persistence."""

    @staticmethod
    def ensure_name_available(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Role.id).filter(Role.normalized_name == normalize_role_name(name))
        if exclude_id is not None:
            query = query.filter(Role.id != exclude_id)
        if query.first():
            raise ResourceConflictError(NAME_TAKEN, code="ROLE_NAME_TAKEN")

    @staticmethod
    def create(
        db: Session,
        name: str,
        description: Optional[str] = None,
        role_id: Optional[int] = None,
    ) -> Role:
        RoleService.ensure_name_available(db, name)
        role = Role(name=name, description=description)
        if role_id is not None:
            role.id = role_id
        db.add(role)
        flush_or_conflict(db, NAME_TAKEN, code="ROLE_NAME_TAKEN")
        logger.info("Created role %s", role.name)
        return role

    @staticmethod
    def query(
        db: Session,
        name: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> Dict[str, Any]:
        query = db.query(Role)
        if name:
            query = query.filter(Role.normalized_name == normalize_role_name(name))
        return paginate(query, Role, sort_by=sort_by, limit=limit, page=page)

    @staticmethod
    def get_by_id(db: Session, role_id: int) -> Optional[Role]:
        return db.query(Role).filter(Role.id == role_id).first()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[Role]:
        return db.query(Role).filter(Role.normalized_name == normalize_role_name(name)).first()

    @staticmethod
    def require(db: Session, role_id: int) -> Role:
        role = RoleService.get_by_id(db, role_id)
        if not role:
            raise ResourceNotFoundError("Role not found", code="ROLE_NOT_FOUND")
        return role

    @staticmethod
    def update_by_id(db: Session, role_id: int, data: Dict[str, Any]) -> Role:
        role = RoleService.require(db, role_id)
        if data.get("name") is not None:
            RoleService.ensure_name_available(db, data["name"], exclude_id=role.id)
            role.name = data["name"]
        if "description" in data:
            role.description = data["description"]
        flush_or_conflict(db, NAME_TAKEN, code="ROLE_NAME_TAKEN")
        return role

    @staticmethod
    def replace_by_id(db: Session, role_id: int, name: str, description: Optional[str] = None) -> Role:
        return RoleService.update_by_id(db, role_id, {"name": name, "description": description})

    @staticmethod
    def remove_by_id(db: Session, role_id: int) -> Role:
        """Delete a role and its grants.

        Raises:
            ResourceConflictError: If users still hold the role.
        """
        role = RoleService.require(db, role_id)
        if db.query(User.id).filter(User.role_id == role.id).first():
            raise ResourceConflictError("Role is assigned to users", code="ROLE_IN_USE")

        db.query(RolePermission).filter(RolePermission.role_id == role.id).delete(
            synchronize_session=False
        )
        db.delete(role)
        db.flush()
        logger.info("Deleted role %s", role.name)
        return role


role_service = RoleService()
