"""User service: accounts, registration and role assignment."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, joinedload

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError
from workbench.core.security import hash_password
from workbench.db.pagination import paginate
from workbench.db.session import flush_or_conflict
from workbench.models.employee import Employee
from workbench.models.token import Token
from workbench.models.user import User, UserStatus, normalize_email
from workbench.services.role_service import role_service

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already taken"


class UserService:
    """Handles user persistence. Passwords are only ever stored hashed."""

    @staticmethod
    def ensure_email_available(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(User.id).filter(User.email == normalize_email(email))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ResourceConflictError(EMAIL_TAKEN, code="EMAIL_TAKEN")

    @staticmethod
    def create(
        db: Session,
        name: str,
        email: str,
        password: str,
        role_id: int,
        status: UserStatus = UserStatus.Pending,
        is_email_verified: bool = False,
        user_id: Optional[int] = None,
    ) -> User:
        UserService.ensure_email_available(db, email)
        role = role_service.require(db, role_id)

        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role_id=role.id,
            status=status,
            is_email_verified=is_email_verified,
        )
        if user_id is not None:
            user.id = user_id
        user.role = role
        db.add(user)
        flush_or_conflict(db, EMAIL_TAKEN, code="EMAIL_TAKEN")
        logger.info("Created user %s with role %s", user.id, role.name)
        return user

    @staticmethod
    def register(db: Session, name: str, email: str, password: str, default_role_name: str) -> User:
        """Self sign-up: the account gets the default role and stays Pending."""
        role = role_service.get_by_name(db, default_role_name)
        if not role:
            role = role_service.create(db, default_role_name, "Default role for self-registered users")
        return UserService.create(db, name, email, password, role.id, status=UserStatus.Pending)

    @staticmethod
    def query(
        db: Session,
        name: Optional[str] = None,
        email: Optional[str] = None,
        status: Optional[UserStatus] = None,
        role: Optional[int] = None,
        sort_by: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> Dict[str, Any]:
        query = db.query(User).options(joinedload(User.role))
        if name:
            query = query.filter(User.name == name)
        if email:
            query = query.filter(User.email == normalize_email(email))
        if status is not None:
            query = query.filter(User.status == status)
        if role is not None:
            query = query.filter(User.role_id == role)
        return paginate(query, User, sort_by=sort_by, limit=limit, page=page)

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).options(joinedload(User.role)).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.role))
            .filter(User.email == normalize_email(email))
            .first()
        )

    @staticmethod
    def require(db: Session, user_id: int) -> User:
        user = UserService.get_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    @staticmethod
    def update_by_id(db: Session, user_id: int, data: Dict[str, Any]) -> User:
        user = UserService.require(db, user_id)

        if data.get("email") is not None:
            UserService.ensure_email_available(db, data["email"], exclude_id=user.id)
            user.email = data["email"]
        if data.get("role") is not None:
            user.role = role_service.require(db, data["role"])
        if data.get("password") is not None:
            user.hashed_password = hash_password(data["password"])
        for field in ("name", "status", "is_email_verified"):
            if data.get(field) is not None:
                setattr(user, field, data[field])
        flush_or_conflict(db, EMAIL_TAKEN, code="EMAIL_TAKEN")
        return user

    @staticmethod
    def replace_by_id(db: Session, user_id: int, data: Dict[str, Any]) -> User:
        return UserService.update_by_id(db, user_id, data)

    @staticmethod
    def remove_by_id(db: Session, user_id: int) -> User:
        user = UserService.require(db, user_id)
        db.query(Token).filter(Token.user_id == user.id).delete(synchronize_session=False)
        db.query(Employee).filter(Employee.user_id == user.id).delete(synchronize_session=False)
        db.delete(user)
        db.flush()
        logger.info("Deleted user %s", user.id)
        return user


user_service = UserService()
