"""Users API router (administration)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import PageParams, get_page_params, id_path
from workbench.core.exceptions import ResourceNotFoundError
from workbench.core.responses import send_response, serialize_page
from workbench.db.base import MAX_ID
from workbench.db.session import get_db, transaction
from workbench.models.user import UserStatus
from workbench.schemas.schemas import UserCreate, UserOut, UserUpdate
from workbench.services.user_service import user_service

router = APIRouter(tags=["users"])


def _create(db: Session, body: UserCreate, user_id: Optional[int] = None):
    return user_service.create(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role_id=body.role,
        status=body.status,
        is_email_verified=body.is_email_verified,
        user_id=user_id,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    with transaction(db):
        user = _create(db, body)
    return send_response("User created", UserOut.model_validate(user), status.HTTP_201_CREATED)


@router.get("")
def list_users(
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    role: Optional[int] = Query(None, ge=1, le=MAX_ID),
    params: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    page = user_service.query(
        db, name=name, email=email, status=user_status, role=role,
        sort_by=params.sort_by, limit=params.limit, page=params.page,
    )
    return send_response("Users retrieved", serialize_page(page, UserOut))


@router.get("/{user_id}")
def get_user(user_id: int = id_path(), db: Session = Depends(get_db)):
    user = user_service.get_by_id(db, user_id)
    if not user:
        raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")
    return send_response("User retrieved", UserOut.model_validate(user))


@router.patch("/{user_id}")
def update_user(body: UserUpdate, user_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        user = user_service.update_by_id(db, user_id, body.model_dump(exclude_unset=True))
    return send_response("User updated", UserOut.model_validate(user))


@router.put("/{user_id}")
def replace_user(body: UserCreate, user_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        if user_service.get_by_id(db, user_id) is None:
            user = _create(db, body, user_id=user_id)
            message, code = "User created", status.HTTP_201_CREATED
        else:
            user = user_service.replace_by_id(db, user_id, body.model_dump())
            message, code = "User replaced", status.HTTP_200_OK
    return send_response(message, UserOut.model_validate(user), code)


@router.delete("/{user_id}")
def delete_user(user_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        user_service.remove_by_id(db, user_id)
    return send_response("User deleted", {"id": user_id})
