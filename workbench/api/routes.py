"""Router registration and the mount -> resource table used for authorization."""

from fastapi import APIRouter, Depends, FastAPI

from workbench.api import auth, employees, permissions, resources, role_permissions, roles, users
from workbench.api.deps import RequirePermission
from workbench.core.config import Settings
from workbench.services.resource_service import ResourceRegistry

# (mount path, resource name, router, HTTP methods the router serves)
RESOURCE_ROUTES = [
    ("/users", "user", users.router, None),
    ("/employees", "employee", employees.router, None),
    ("/roles", "role", roles.router, None),
    ("/permissions", "permission", permissions.router, None),
    ("/rolePermissions", "role-permission", role_permissions.router, None),
    ("/resources", "resource", resources.router, ["GET"]),
]


def register_routes(app: FastAPI, registry: ResourceRegistry, settings: Settings) -> None:
    """Mount every router under ``API_PREFIX``; protected ones behind RequirePermission."""
    api = APIRouter(prefix=settings.API_PREFIX)
    api.include_router(auth.router)

    for mount_path, resource, router, methods in RESOURCE_ROUTES:
        registry.register(mount_path, resource, methods)
        api.include_router(
            router,
            prefix=mount_path,
            dependencies=[Depends(RequirePermission(mount_path))],
        )

    app.include_router(api)
