"""Roles API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import PageParams, get_page_params, id_path
from workbench.core.exceptions import ResourceNotFoundError
from workbench.core.responses import send_response, serialize_page
from workbench.db.session import get_db, transaction
from workbench.schemas.schemas import RoleCreate, RoleOut, RoleUpdate
from workbench.services.role_service import role_service

router = APIRouter(tags=["roles"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_role(body: RoleCreate, db: Session = Depends(get_db)):
    with transaction(db):
        role = role_service.create(db, body.name, body.description)
    return send_response("Role created", RoleOut.model_validate(role), status.HTTP_201_CREATED)


@router.get("")
def list_roles(
    name: Optional[str] = Query(None),
    params: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    page = role_service.query(db, name=name, sort_by=params.sort_by, limit=params.limit, page=params.page)
    return send_response("Roles retrieved", serialize_page(page, RoleOut))


@router.get("/{role_id}")
def get_role(role_id: int = id_path(), db: Session = Depends(get_db)):
    role = role_service.get_by_id(db, role_id)
    if not role:
        raise ResourceNotFoundError("Role not found", code="ROLE_NOT_FOUND")
    return send_response("Role retrieved", RoleOut.model_validate(role))


@router.patch("/{role_id}")
def update_role(body: RoleUpdate, role_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        role = role_service.update_by_id(db, role_id, body.model_dump(exclude_unset=True))
    return send_response("Role updated", RoleOut.model_validate(role))


@router.put("/{role_id}")
def replace_role(body: RoleCreate, role_id: int = id_path(), db: Session = Depends(get_db)):
    """Replace the role, or create it under this id when it does not exist."""
    with transaction(db):
        if role_service.get_by_id(db, role_id) is None:
            role = role_service.create(db, body.name, body.description, role_id=role_id)
            message, code = "Role created", status.HTTP_201_CREATED
        else:
            role = role_service.replace_by_id(db, role_id, body.name, body.description)
            message, code = "Role replaced", status.HTTP_200_OK
    return send_response(message, RoleOut.model_validate(role), code)


@router.delete("/{role_id}")
def delete_role(role_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        role_service.remove_by_id(db, role_id)
    return send_response("Role deleted", {"id": role_id})
