"""Models package: import all models so metadata.create_all can discover them."""

from workbench.models.role import Role
from workbench.models.permission import Action, Permission
from workbench.models.role_permission import RolePermission
from workbench.models.user import User, UserStatus
from workbench.models.token import Token, TokenType
from workbench.models.employee import Employee

__all__ = [
    "Role", "Permission", "Action", "RolePermission",
    "User", "UserStatus", "Token", "TokenType", "Employee",
]
