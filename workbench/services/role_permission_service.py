"""Role-permission service: grants of a permission to a role."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError
from workbench.db.pagination import paginate
from workbench.db.session import flush_or_conflict
from workbench.models.role_permission import RolePermission
from workbench.services.permission_service import permission_service
from workbench.services.role_service import role_service

logger = logging.getLogger(__name__)

PAIR_TAKEN = "Role permission already exists"


class RolePermissionService:
    """Handles role-permission links."""

    @staticmethod
    def ensure_pair_available(
        db: Session, role_id: int, permission_id: int, exclude_id: Optional[int] = None
    ) -> None:
        query = db.query(RolePermission.id).filter(
            RolePermission.role_id == role_id,
            RolePermission.permission_id == permission_id,
        )
        if exclude_id is not None:
            query = query.filter(RolePermission.id != exclude_id)
        if query.first():
            raise ResourceConflictError(PAIR_TAKEN, code="ROLE_PERMISSION_EXISTS")

    @staticmethod
    def create(
        db: Session,
        role_id: int,
        permission_id: int,
        role_permission_id: Optional[int] = None,
    ) -> RolePermission:
        role_service.require(db, role_id)
        permission_service.require(db, permission_id)
        RolePermissionService.ensure_pair_available(db, role_id, permission_id)

        link = RolePermission(role_id=role_id, permission_id=permission_id)
        if role_permission_id is not None:
            link.id = role_permission_id
        db.add(link)
        flush_or_conflict(db, PAIR_TAKEN, code="ROLE_PERMISSION_EXISTS")
        logger.info("Granted permission %s to role %s", permission_id, role_id)
        return link

    @staticmethod
    def query(
        db: Session,
        role: Optional[int] = None,
        permission: Optional[int] = None,
        sort_by: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> Dict[str, Any]:
        query = db.query(RolePermission).options(
            joinedload(RolePermission.role), joinedload(RolePermission.permission)
        )
        if role is not None:
            query = query.filter(RolePermission.role_id == role)
        if permission is not None:
            query = query.filter(RolePermission.permission_id == permission)
        return paginate(query, RolePermission, sort_by=sort_by, limit=limit, page=page)

    @staticmethod
    def get_by_id(db: Session, role_permission_id: int) -> Optional[RolePermission]:
        return (
            db.query(RolePermission)
            .options(joinedload(RolePermission.role), joinedload(RolePermission.permission))
            .filter(RolePermission.id == role_permission_id)
            .first()
        )

    @staticmethod
    def require(db: Session, role_permission_id: int) -> RolePermission:
        link = RolePermissionService.get_by_id(db, role_permission_id)
        if not link:
            raise ResourceNotFoundError("Role permission not found", code="ROLE_PERMISSION_NOT_FOUND")
        return link

    @staticmethod
    def list_for_role(db: Session, role_id: int) -> List[RolePermission]:
        """Every grant of ``role_id`` with its permission loaded in the same query."""
        return (
            db.query(RolePermission)
            .options(joinedload(RolePermission.permission))
            .filter(RolePermission.role_id == role_id)
            .all()
        )

    @staticmethod
    def update_by_id(db: Session, role_permission_id: int, data: Dict[str, Any]) -> RolePermission:
        link = RolePermissionService.require(db, role_permission_id)
        role_id = data.get("role") or link.role_id
        permission_id = data.get("permission") or link.permission_id

        if role_id != link.role_id:
            role_service.require(db, role_id)
        if permission_id != link.permission_id:
            permission_service.require(db, permission_id)
        RolePermissionService.ensure_pair_available(db, role_id, permission_id, exclude_id=link.id)

        link.role_id = role_id
        link.permission_id = permission_id
        flush_or_conflict(db, PAIR_TAKEN, code="ROLE_PERMISSION_EXISTS")
        db.refresh(link)
        return link

    @staticmethod
    def replace_by_id(db: Session, role_permission_id: int, role_id: int, permission_id: int) -> RolePermission:
        return RolePermissionService.update_by_id(
            db, role_permission_id, {"role": role_id, "permission": permission_id}
        )

    @staticmethod
    def remove_by_id(db: Session, role_permission_id: int) -> RolePermission:
        link = RolePermissionService.require(db, role_permission_id)
        db.delete(link)
        db.flush()
        return link


role_permission_service = RolePermissionService()
