"""Seed the super-admin role, its permissions and user from settings."""

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from workbench.core.config import Settings
from workbench.db.session import transaction
from workbench.models.permission import ACTION_ORDER
from workbench.models.user import User, UserStatus
from workbench.services.permission_service import permission_service
from workbench.services.resource_service import ResourceRegistry
from workbench.services.role_permission_service import role_permission_service
from workbench.services.role_service import role_service
from workbench.services.user_service import user_service

logger = logging.getLogger(__name__)


def seed_super_admin(db: Session, registry: ResourceRegistry, settings: Settings) -> User:
    """Create the super-admin with every action on every registered resource.

    Runs in one transaction; a failure at any step leaves nothing behind.
    Re-running fills in missing grants and returns the existing user.
    """
    with transaction(db):
        role = role_service.get_by_name(db, settings.SUPER_ADMIN_ROLE_NAME)
        if not role:
            role = role_service.create(db, settings.SUPER_ADMIN_ROLE_NAME, "Full access to every resource")

        granted = {link.permission_id for link in role_permission_service.list_for_role(db, role.id)}
        for resource in registry.resource_names():
            permission = permission_service.get_by_resource(db, resource)
            if not permission:
                permission = permission_service.create(db, resource, ACTION_ORDER)
            elif permission.action != ACTION_ORDER:
                permission_service.add_actions(db, permission.id, ACTION_ORDER)
            if permission.id not in granted:
                role_permission_service.create(db, role.id, permission.id)

        if not role_service.get_by_name(db, settings.DEFAULT_ROLE_NAME):
            role_service.create(db, settings.DEFAULT_ROLE_NAME, "Default role for self-registered users")

        user = user_service.get_by_email(db, settings.SUPER_ADMIN_EMAIL)
        if not user:
            user = user_service.create(
                db,
                name="Super Admin",
                email=settings.SUPER_ADMIN_EMAIL,
                password=settings.SUPER_ADMIN_PASSWORD,
                role_id=role.id,
                status=UserStatus.Active,
                is_email_verified=True,
            )
            logger.info("Created super admin %s", settings.SUPER_ADMIN_EMAIL)
    return user


def run_seed_if_needed(
    session_factory: sessionmaker, registry: ResourceRegistry, settings: Settings
) -> Optional[User]:
    """Seed unless running in production or the super-admin already exists."""
    if settings.is_production:
        logger.info("Production environment, skipping super admin seed")
        return None

    db = session_factory()
    try:
        if user_service.get_by_email(db, settings.SUPER_ADMIN_EMAIL):
            logger.info("Super admin '%s' already exists, skipping", settings.SUPER_ADMIN_EMAIL)
            return None
        return seed_super_admin(db, registry, settings)
    finally:
        db.close()
