"""
Super-admin bootstrap seed tests
"""

from unittest.mock import patch

import pytest

from workbench.core.security import verify_password
from workbench.db.seeds.seed_super_admin import run_seed_if_needed, seed_super_admin
from workbench.db.session import create_session_factory
from workbench.models.permission import Permission
from workbench.models.role import Role
from workbench.models.role_permission import RolePermission
from workbench.models.user import User, UserStatus
from workbench.services.authorization_service import authorization_service
from workbench.services.permission_service import permission_service
from workbench.services.role_service import role_service


@pytest.mark.unit
class TestSeedSuperAdmin:

    def test_grants_every_action_on_every_resource(self, db, registry, settings):
        user = seed_super_admin(db, registry, settings)

        assert user.status == UserStatus.Active
        assert user.is_email_verified is True
        assert verify_password(settings.SUPER_ADMIN_PASSWORD, user.hashed_password)
        for resource in registry.resource_names():
            for action in ("read", "create", "update", "delete"):
                assert authorization_service.has_permission(db, user, resource, action)

    def test_creates_default_role(self, db, registry, settings):
        seed_super_admin(db, registry, settings)

        assert role_service.get_by_name(db, settings.DEFAULT_ROLE_NAME) is not None

    def test_is_idempotent_and_fills_missing_actions(self, db, registry, settings):
        permission_service.create(db, "employee", ["read"])
        db.commit()

        first = seed_super_admin(db, registry, settings)
        second = seed_super_admin(db, registry, settings)

        assert first.id == second.id
        assert db.query(User).count() == 1
        assert db.query(Permission).count() == len(registry.resource_names())
        assert db.query(RolePermission).count() == len(registry.resource_names())
        assert permission_service.get_by_resource(db, "employee").action == [
            "read", "create", "update", "delete",
        ]

    def test_failure_rolls_back_everything(self, db, registry, settings):
        with patch(
            "workbench.db.seeds.seed_super_admin.user_service.create",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError):
                seed_super_admin(db, registry, settings)

        assert db.query(Role).count() == 0
        assert db.query(Permission).count() == 0
        assert db.query(RolePermission).count() == 0


@pytest.mark.unit
class TestRunSeedIfNeeded:

    def test_skips_in_production(self, db, registry, settings):
        prod = settings.model_copy(update={"ENV": "production"})
        session_factory = create_session_factory(db.get_bind())

        assert run_seed_if_needed(session_factory, registry, prod) is None
        assert db.query(User).count() == 0

    def test_seeds_once(self, db, registry, settings):
        session_factory = create_session_factory(db.get_bind())

        first = run_seed_if_needed(session_factory, registry, settings)
        second = run_seed_if_needed(session_factory, registry, settings)

        assert first is not None
        assert first.email == settings.SUPER_ADMIN_EMAIL
        assert second is None
