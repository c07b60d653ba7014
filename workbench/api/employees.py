"""Employees API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import PageParams, get_page_params, id_path
from workbench.core.exceptions import ResourceNotFoundError
from workbench.core.responses import send_response, serialize_page
from workbench.db.base import MAX_ID
from workbench.db.session import get_db, transaction
from workbench.schemas.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from workbench.services.employee_service import employee_service

router = APIRouter(tags=["employees"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_employee(body: EmployeeCreate, db: Session = Depends(get_db)):
    with transaction(db):
        employee = employee_service.create(db, body.model_dump())
    return send_response("Employee created", EmployeeOut.model_validate(employee), status.HTTP_201_CREATED)


@router.get("")
def list_employees(
    job_title: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    params: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    page = employee_service.query(
        db, job_title=job_title, user_id=user_id,
        sort_by=params.sort_by, limit=params.limit, page=params.page,
    )
    return send_response("Employees retrieved", serialize_page(page, EmployeeOut))


@router.get("/{employee_id}")
def get_employee(employee_id: int = id_path(), db: Session = Depends(get_db)):
    employee = employee_service.get_by_id(db, employee_id)
    if not employee:
        raise ResourceNotFoundError("Employee not found", code="EMPLOYEE_NOT_FOUND")
    return send_response("Employee retrieved", EmployeeOut.model_validate(employee))


@router.patch("/{employee_id}")
def update_employee(
    body: EmployeeUpdate, employee_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        employee = employee_service.update_by_id(db, employee_id, body.model_dump(exclude_unset=True))
    return send_response("Employee updated", EmployeeOut.model_validate(employee))


@router.put("/{employee_id}")
def replace_employee(
    body: EmployeeCreate, employee_id: int = id_path(), db: Session = Depends(get_db)
):
    with transaction(db):
        if employee_service.get_by_id(db, employee_id) is None:
            employee = employee_service.create(db, body.model_dump(), employee_id=employee_id)
            message, code = "Employee created", status.HTTP_201_CREATED
        else:
            employee = employee_service.replace_by_id(db, employee_id, body.model_dump())
            message, code = "Employee replaced", status.HTTP_200_OK
    return send_response(message, EmployeeOut.model_validate(employee), code)


@router.delete("/{employee_id}")
def delete_employee(employee_id: int = id_path(), db: Session = Depends(get_db)):
    with transaction(db):
        employee_service.remove_by_id(db, employee_id)
    return send_response("Employee deleted", {"id": employee_id})
