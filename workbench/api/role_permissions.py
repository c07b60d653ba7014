"""Role-permissions API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import PageParams, get_page_params, id_path
from workbench.core.exceptions import ResourceNotFoundError
from workbench.core.responses import send_response, serialize_page
from workbench.db.base import MAX_ID
from workbench.db.session import get_db, transaction
from workbench.schemas.schemas import RolePermissionCreate, RolePermissionOut, RolePermissionUpdate
from workbench.services.role_permission_service import role_permission_service

router = APIRouter(tags=["role-permissions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_role_permission(body: RolePermissionCreate, db: Session = Depends(get_db)):
    with transaction(db):
        link = role_permission_service.create(db, body.role, body.permission)
    return send_response(
        "Role permission created", RolePermissionOut.model_validate(link), status.HTTP_201_CREATED
    )


@router.get("")
def list_role_permissions(
    role: Optional[int] = Query(None, ge=1, le=MAX_ID),
    permission: Optional[int] = Query(None, ge=1, le=MAX_ID),
    params: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    page = role_permission_service.query(
        db, role=role, permission=permission,
        sort_by=params.sort_by, limit=params.limit, page=params.page,
    )
    return send_response("Role permissions retrieved", serialize_page(page, RolePermissionOut))


@router.get("/{role_permission_id}")
def get_role_permission(role_permission_id: int = id_path(), db: Session = Depends(get_db)):
    link = role_permission_service.get_by_id(db, role_permission_id)
    if not link:
        raise ResourceNotFoundError("Role permission not found", code="ROLE_PERMISSION_NOT_FOUND")
    return send_response("Role permission retrieved", RolePermissionOut.model_validate(link))


@router.patch("/{role_permission_id}")
def update_role_permission(
    body: RolePermissionUpdate, role_permission_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        link = role_permission_service.update_by_id(
            db, role_permission_id, body.model_dump(exclude_unset=True)
        )
    return send_response("Role permission updated", RolePermissionOut.model_validate(link))


@router.put("/{role_permission_id}")
def replace_role_permission(
    body: RolePermissionCreate, role_permission_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        if role_permission_service.get_by_id(db, role_permission_id) is None:
            link = role_permission_service.create(
                db, body.role, body.permission, role_permission_id=role_permission_id
            )
            message, code = "Role permission created", status.HTTP_201_CREATED
        else:
            link = role_permission_service.replace_by_id(
                db, role_permission_id, body.role, body.permission
            )
            message, code = "Role permission replaced", status.HTTP_200_OK
    return send_response(message, RolePermissionOut.model_validate(link), code)


@router.delete("/{role_permission_id}")
def delete_role_permission(role_permission_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        role_permission_service.remove_by_id(db, role_permission_id)
    return send_response("Role permission deleted", {"id": role_permission_id})
