"""Authorization decision: does the caller's role grant (resource, action)?"""

import logging

from sqlalchemy.orm import Session

from workbench.core.exceptions import AuthorizationError
from workbench.models.permission import Action, normalize_resource
from workbench.models.user import User
from workbench.services.role_permission_service import role_permission_service

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Evaluates grants fresh on every call; nothing is cached."""

    @staticmethod
    def has_permission(db: Session, user: User, resource: str, action) -> bool:
        resource = normalize_resource(resource)
        action = Action(action)
        for link in role_permission_service.list_for_role(db, user.role_id):
            permission = link.permission
            if permission is not None and permission.resource == resource and permission.allows(action):
                return True
        return False

    @staticmethod
    def authorize(db: Session, user: User, resource: str, action) -> None:
        """Raise unless ``user`` may perform ``action`` on ``resource``.

        Raises:
            AuthorizationError: With the same message whatever the cause.
        """
        action = Action(action)
        if AuthorizationService.has_permission(db, user, resource, action):
            return
        logger.warning("Denied user %s: %s %s", user.id, action.value, resource)
        raise AuthorizationError(
            f"Access denied. You do not have permission to {action.value} {resource}."
        )


authorization_service = AuthorizationService()
