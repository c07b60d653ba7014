"""Employee service."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError
from workbench.db.pagination import paginate
from workbench.db.session import flush_or_conflict
from workbench.models.employee import Employee
from workbench.models.user import User
from workbench.services.user_service import user_service

EMPLOYEE_EXISTS = "Employee already exists for this user"


class EmployeeService:
    """Employee records. ``User.employee_id`` is read from here, never stored twice."""

    @staticmethod
    def _expire_links(db: Session, *user_ids: int) -> None:
        # drop any cached User.employee so the derived employee_id is reloaded
        for user_id in user_ids:
            user = db.get(User, user_id)
            if user is not None:
                db.expire(user, ["employee"])

    @staticmethod
    def ensure_user_free(db: Session, user_id: int, exclude_id: Optional[int] = None) -> None:
        query = db.query(Employee.id).filter(Employee.user_id == user_id)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise ResourceConflictError(EMPLOYEE_EXISTS, code="EMPLOYEE_EXISTS")

    @staticmethod
    def create(db: Session, data: Dict[str, Any], employee_id: Optional[int] = None) -> Employee:
        user_service.require(db, data["user_id"])
        EmployeeService.ensure_user_free(db, data["user_id"])

        employee = Employee(**data)
        if employee_id is not None:
            employee.id = employee_id
        db.add(employee)
        flush_or_conflict(db, EMPLOYEE_EXISTS, code="EMPLOYEE_EXISTS")
        EmployeeService._expire_links(db, employee.user_id)
        return employee

    @staticmethod
    def query(
        db: Session,
        job_title: Optional[str] = None,
        user_id: Optional[int] = None,
        sort_by: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> Dict[str, Any]:
        query = db.query(Employee)
        if job_title:
            query = query.filter(Employee.job_title == job_title)
        if user_id is not None:
            query = query.filter(Employee.user_id == user_id)
        return paginate(query, Employee, sort_by=sort_by, limit=limit, page=page)

    @staticmethod
    def get_by_id(db: Session, employee_id: int) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()

    @staticmethod
    def require(db: Session, employee_id: int) -> Employee:
        employee = EmployeeService.get_by_id(db, employee_id)
        if not employee:
            raise ResourceNotFoundError("Employee not found", code="EMPLOYEE_NOT_FOUND")
        return employee

    @staticmethod
    def update_by_id(db: Session, employee_id: int, data: Dict[str, Any]) -> Employee:
        employee = EmployeeService.require(db, employee_id)
        previous_user_id = employee.user_id
        if data.get("user_id") is not None and data["user_id"] != employee.user_id:
            user_service.require(db, data["user_id"])
            EmployeeService.ensure_user_free(db, data["user_id"], exclude_id=employee.id)
        for field, value in data.items():
            setattr(employee, field, value)
        flush_or_conflict(db, EMPLOYEE_EXISTS, code="EMPLOYEE_EXISTS")
        EmployeeService._expire_links(db, previous_user_id, employee.user_id)
        return employee

    @staticmethod
    def replace_by_id(db: Session, employee_id: int, data: Dict[str, Any]) -> Employee:
        data = dict(data)
        data.setdefault("phone_number", None)
        data.setdefault("date_of_hire", None)
        return EmployeeService.update_by_id(db, employee_id, data)

    @staticmethod
    def remove_by_id(db: Session, employee_id: int) -> Employee:
        employee = EmployeeService.require(db, employee_id)
        db.delete(employee)
        db.flush()
        EmployeeService._expire_links(db, employee.user_id)
        return employee


employee_service = EmployeeService()
