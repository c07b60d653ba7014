"""Permission service: per-resource action sets."""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.orm import Session

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from workbench.db.pagination import paginate
from workbench.db.session import flush_or_conflict
from workbench.models.permission import Permission, canonical_actions, normalize_resource
from workbench.models.role_permission import RolePermission

logger = logging.getLogger(__name__)

RESOURCE_TAKEN = "Permission for this resource already exists"


class PermissionService:
    """Handles permission persistence and action edits."""

    @staticmethod
    def ensure_resource_available(db: Session, resource: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Permission.id).filter(Permission.resource == normalize_resource(resource))
        if exclude_id is not None:
            query = query.filter(Permission.id != exclude_id)
        if query.first():
            raise ResourceConflictError(RESOURCE_TAKEN, code="PERMISSION_EXISTS")

    @staticmethod
    def create(
        db: Session,
        resource: str,
        action: Iterable,
        permission_id: Optional[int] = None,
    ) -> Permission:
        PermissionService.ensure_resource_available(db, resource)
        permission = Permission(resource=resource, action=list(action))
        if permission_id is not None:
            permission.id = permission_id
        db.add(permission)
        flush_or_conflict(db, RESOURCE_TAKEN, code="PERMISSION_EXISTS")
        logger.info("Created permission %s %s", permission.resource, permission.action)
        return permission

    @staticmethod
    def query(
        db: Session,
        resource: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> Dict[str, Any]:
        query = db.query(Permission)
        if resource:
            query = query.filter(Permission.resource == normalize_resource(resource))
        return paginate(query, Permission, sort_by=sort_by, limit=limit, page=page)

    @staticmethod
    def get_by_id(db: Session, permission_id: int) -> Optional[Permission]:
        return db.query(Permission).filter(Permission.id == permission_id).first()

    @staticmethod
    def get_by_resource(db: Session, resource: str) -> Optional[Permission]:
        return db.query(Permission).filter(Permission.resource == normalize_resource(resource)).first()

    @staticmethod
    def require(db: Session, permission_id: int) -> Permission:
        permission = PermissionService.get_by_id(db, permission_id)
        if not permission:
            raise ResourceNotFoundError("Permission not found", code="PERMISSION_NOT_FOUND")
        return permission

    @staticmethod
    def update_by_id(db: Session, permission_id: int, data: Dict[str, Any]) -> Permission:
        permission = PermissionService.require(db, permission_id)
        if data.get("resource") is not None:
            PermissionService.ensure_resource_available(db, data["resource"], exclude_id=permission.id)
            permission.resource = data["resource"]
        if data.get("action") is not None:
            permission.action = list(data["action"])
        flush_or_conflict(db, RESOURCE_TAKEN, code="PERMISSION_EXISTS")
        return permission

    @staticmethod
    def replace_by_id(db: Session, permission_id: int, resource: str, action: Iterable) -> Permission:
        return PermissionService.update_by_id(
            db, permission_id, {"resource": resource, "action": list(action)}
        )

    @staticmethod
    def add_actions(db: Session, permission_id: int, actions: Iterable) -> Permission:
        """Union ``actions`` into the permission; adding a present action is a no-op."""
        permission = PermissionService.require(db, permission_id)
        permission.action = list(permission.action or []) + list(actions)
        db.flush()
        return permission

    @staticmethod
    def remove_actions(db: Session, permission_id: int, actions: Iterable) -> Permission:
        """Drop ``actions``; removing an absent action is a no-op.

        Raises:
            ValidationError: If nothing would be left.
        """
        permission = PermissionService.require(db, permission_id)
        removed = set(canonical_actions(actions))
        remaining = [a for a in permission.action or [] if a not in removed]
        if not remaining:
            raise ValidationError(
                "A permission must keep at least one action",
                invalid_fields=[{"field": "actions", "message": "Cannot remove every action"}],
            )
        permission.action = remaining
        db.flush()
        return permission

    @staticmethod
    def remove_by_id(db: Session, permission_id: int) -> Permission:
        permission = PermissionService.require(db, permission_id)
        db.query(RolePermission).filter(RolePermission.permission_id == permission.id).delete(
            synchronize_session=False
        )
        db.delete(permission)
        db.flush()
        logger.info("Deleted permission %s", permission.resource)
        return permission


permission_service = PermissionService()
