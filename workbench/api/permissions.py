"""Permissions API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import PageParams, get_page_params, id_path
from workbench.core.exceptions import ResourceNotFoundError
from workbench.core.responses import send_response, serialize_page
from workbench.db.session import get_db, transaction
from workbench.schemas.schemas import (
    PermissionActions, PermissionCreate, PermissionOut, PermissionUpdate,
)
from workbench.services.permission_service import permission_service

router = APIRouter(tags=["permissions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_permission(body: PermissionCreate, db: Session = Depends(get_db)):
    with transaction(db):
        permission = permission_service.create(db, body.resource, body.action)
    return send_response(
        "Permission created", PermissionOut.model_validate(permission), status.HTTP_201_CREATED
    )


@router.get("")
def list_permissions(
    resource: Optional[str] = Query(None),
    params: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    page = permission_service.query(
        db, resource=resource, sort_by=params.sort_by, limit=params.limit, page=params.page
    )
    return send_response("Permissions retrieved", serialize_page(page, PermissionOut))


@router.get("/{permission_id}")
def get_permission(permission_id: int = id_path(), db: Session = Depends(get_db)):
    permission = permission_service.get_by_id(db, permission_id)
    if not permission:
        raise ResourceNotFoundError("Permission not found", code="PERMISSION_NOT_FOUND")
    return send_response("Permission retrieved", PermissionOut.model_validate(permission))


@router.patch("/{permission_id}")
def update_permission(
    body: PermissionUpdate, permission_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        permission = permission_service.update_by_id(db, permission_id, body.model_dump(exclude_unset=True))
    return send_response("Permission updated", PermissionOut.model_validate(permission))


@router.put("/{permission_id}")
def replace_permission(
    body: PermissionCreate, permission_id: int = id_path(), db: Session = Depends(get_db)
):
    """Replace the permission, or create it under this id when it does not exist."""
    with transaction(db):
        if permission_service.get_by_id(db, permission_id) is None:
            permission = permission_service.create(
                db, body.resource, body.action, permission_id=permission_id
            )
            message, code = "Permission created", status.HTTP_201_CREATED
        else:
            permission = permission_service.replace_by_id(db, permission_id, body.resource, body.action)
            message, code = "Permission replaced", status.HTTP_200_OK
    return send_response(message, PermissionOut.model_validate(permission), code)


@router.delete("/{permission_id}")
def delete_permission(permission_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        permission_service.remove_by_id(db, permission_id)
    return send_response("Permission deleted", {"id": permission_id})


@router.post("/{permission_id}/actions")
def add_permission_actions(
    body: PermissionActions, permission_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        permission = permission_service.add_actions(db, permission_id, body.actions)
    return send_response("Actions added", PermissionOut.model_validate(permission))


@router.delete("/{permission_id}/actions")
def remove_permission_actions(
    body: PermissionActions, permission_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        permission = permission_service.remove_actions(db, permission_id, body.actions)
    return send_response("Actions removed", PermissionOut.model_validate(permission))
