"""
Identity store tests: roles, permissions, role-permissions and users
"""

from unittest.mock import patch

import pytest

from workbench.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from workbench.core.security import verify_password
from workbench.db.session import transaction
from workbench.models.employee import Employee
from workbench.models.role import Role
from workbench.models.role_permission import RolePermission
from workbench.models.user import User, UserStatus
from workbench.services.employee_service import employee_service
from workbench.services.permission_service import PermissionService, permission_service
from workbench.services.role_permission_service import role_permission_service
from workbench.services.role_service import RoleService, role_service
from workbench.services.user_service import UserService, user_service


@pytest.mark.unit
class TestRoleService:

    def test_create_and_lookup_by_name_ignores_case(self, db):
        role = role_service.create(db, "  Editor ", "Can edit")

        assert role.name == "Editor"
        assert role_service.get_by_name(db, "EDITOR").id == role.id
        assert role_service.get_by_name(db, "missing") is None

    def test_duplicate_name_differing_in_case(self, db):
        role_service.create(db, "Editor")

        with pytest.raises(ResourceConflictError) as exc_info:
            role_service.create(db, "editor")

        assert exc_info.value.status_code == 409

    def test_rename_to_own_name_succeeds(self, db):
        role = role_service.create(db, "Editor")

        updated = role_service.update_by_id(db, role.id, {"name": "EDITOR"})

        assert updated.name == "EDITOR"

    def test_rename_into_taken_name(self, db):
        role_service.create(db, "Editor")
        other = role_service.create(db, "Viewer")

        with pytest.raises(ResourceConflictError):
            role_service.update_by_id(db, other.id, {"name": "editor"})

    def test_replace_clears_description(self, db):
        role = role_service.create(db, "Editor", "Can edit")

        replaced = role_service.replace_by_id(db, role.id, "Writer")

        assert replaced.name == "Writer"
        assert replaced.description is None

    def test_update_missing_role(self, db):
        with pytest.raises(ResourceNotFoundError):
            role_service.update_by_id(db, 999, {"name": "Ghost"})

    def test_remove_deletes_grants(self, db):
        role = role_service.create(db, "Editor")
        permission = permission_service.create(db, "employee", ["read"])
        role_permission_service.create(db, role.id, permission.id)

        role_service.remove_by_id(db, role.id)

        assert role_service.get_by_id(db, role.id) is None
        assert db.query(RolePermission).count() == 0

    def test_remove_role_in_use(self, db, make_user):
        user = make_user()

        with pytest.raises(ResourceConflictError) as exc_info:
            role_service.remove_by_id(db, user.role_id)

        assert exc_info.value.code == "ROLE_IN_USE"

    def test_query_filters_and_paginates(self, db):
        for name in ("Alpha", "Beta", "Gamma"):
            role_service.create(db, name)

        page = role_service.query(db, sort_by="name:desc", limit=2, page=1)
        filtered = role_service.query(db, name="beta")

        assert [r.name for r in page["results"]] == ["Gamma", "Beta"]
        assert page["total_results"] == 3
        assert page["total_pages"] == 2
        assert [r.name for r in filtered["results"]] == ["Beta"]


@pytest.mark.unit
class TestPermissionService:

    def test_resource_is_normalised_and_actions_canonical(self, db):
        permission = permission_service.create(db, " Employee ", ["delete", "read"])

        assert permission.resource == "employee"
        assert permission.action == ["read", "delete"]

    def test_duplicate_resource(self, db):
        permission_service.create(db, "employee", ["read"])

        with pytest.raises(ResourceConflictError):
            permission_service.create(db, "EMPLOYEE", ["create"])

    def test_update_to_own_resource_succeeds(self, db):
        permission = permission_service.create(db, "employee", ["read"])

        updated = permission_service.update_by_id(db, permission.id, {"resource": "Employee", "action": ["create"]})

        assert updated.action == ["create"]

    def test_add_actions_is_idempotent(self, db):
        permission = permission_service.create(db, "employee", ["read"])

        permission_service.add_actions(db, permission.id, ["create"])
        again = permission_service.add_actions(db, permission.id, ["create", "read"])

        assert again.action == ["read", "create"]

    def test_remove_actions_is_idempotent(self, db):
        permission = permission_service.create(db, "employee", ["read", "create", "delete"])

        permission_service.remove_actions(db, permission.id, ["delete"])
        again = permission_service.remove_actions(db, permission.id, ["delete"])

        assert again.action == ["read", "create"]

    def test_add_then_remove_restores(self, db):
        permission = permission_service.create(db, "employee", ["read"])

        permission_service.add_actions(db, permission.id, ["update"])
        restored = permission_service.remove_actions(db, permission.id, ["update"])

        assert restored.action == ["read"]

    def test_cannot_remove_every_action(self, db):
        permission = permission_service.create(db, "employee", ["read"])

        with pytest.raises(ValidationError):
            permission_service.remove_actions(db, permission.id, ["read"])

    def test_remove_deletes_grants(self, db, make_role):
        role = make_role()
        permission = permission_service.create(db, "employee", ["read"])
        role_permission_service.create(db, role.id, permission.id)

        permission_service.remove_by_id(db, permission.id)

        assert db.query(RolePermission).count() == 0


@pytest.mark.unit
class TestRolePermissionService:

    def test_pair_is_unique(self, db, make_role):
        role = make_role()
        permission = permission_service.create(db, "employee", ["read"])
        role_permission_service.create(db, role.id, permission.id)

        with pytest.raises(ResourceConflictError):
            role_permission_service.create(db, role.id, permission.id)

    def test_missing_role(self, db):
        permission = permission_service.create(db, "employee", ["read"])

        with pytest.raises(ResourceNotFoundError) as exc_info:
            role_permission_service.create(db, 999, permission.id)

        assert exc_info.value.message == "Role not found"

    def test_missing_permission(self, db, make_role):
        role = make_role()

        with pytest.raises(ResourceNotFoundError) as exc_info:
            role_permission_service.create(db, role.id, 999)

        assert exc_info.value.message == "Permission not found"

    def test_update_into_existing_pair(self, db, make_role):
        role = make_role()
        first = permission_service.create(db, "employee", ["read"])
        second = permission_service.create(db, "user", ["read"])
        role_permission_service.create(db, role.id, first.id)
        link = role_permission_service.create(db, role.id, second.id)

        with pytest.raises(ResourceConflictError):
            role_permission_service.update_by_id(db, link.id, {"permission": first.id})

    def test_update_to_same_pair_succeeds(self, db, make_role):
        role = make_role()
        permission = permission_service.create(db, "employee", ["read"])
        link = role_permission_service.create(db, role.id, permission.id)

        updated = role_permission_service.update_by_id(db, link.id, {"role": role.id})

        assert updated.id == link.id

    def test_list_for_role_loads_permission(self, db, make_role):
        role = make_role()
        other = make_role("Other")
        permission = permission_service.create(db, "employee", ["read"])
        role_permission_service.create(db, role.id, permission.id)
        role_permission_service.create(db, other.id, permission.id)

        links = role_permission_service.list_for_role(db, role.id)

        assert len(links) == 1
        assert links[0].permission.resource == "employee"


@pytest.mark.unit
class TestUserService:

    def test_password_is_hashed(self, db, make_user):
        user = make_user(password="password123")

        assert user.hashed_password != "password123"
        assert verify_password("password123", user.hashed_password)

    def test_email_unique_case_insensitive(self, db, make_user):
        make_user("jane@example.com")

        with pytest.raises(ResourceConflictError) as exc_info:
            make_user("JANE@example.com")

        assert exc_info.value.code == "EMAIL_TAKEN"

    def test_update_email_to_own_succeeds(self, db, make_user):
        user = make_user("jane@example.com")

        updated = user_service.update_by_id(db, user.id, {"email": "Jane@Example.com"})

        assert updated.email == "jane@example.com"

    def test_update_password_rehashes(self, db, make_user):
        user = make_user(password="password123")

        user_service.update_by_id(db, user.id, {"password": "newpassword1"})

        assert verify_password("newpassword1", user.hashed_password)

    def test_update_to_missing_role(self, db, make_user):
        user = make_user()

        with pytest.raises(ResourceNotFoundError):
            user_service.update_by_id(db, user.id, {"role": 999})

    def test_register_uses_default_role_and_pending(self, db, settings):
        user = user_service.register(db, "New User", "new@example.com", "password123", settings.DEFAULT_ROLE_NAME)

        assert user.role.name == settings.DEFAULT_ROLE_NAME
        assert user.status == UserStatus.Pending
        assert user.is_email_verified is False

    def test_register_reuses_existing_default_role(self, db, settings, make_role):
        role = make_role(settings.DEFAULT_ROLE_NAME)

        user = user_service.register(db, "New User", "new@example.com", "password123", settings.DEFAULT_ROLE_NAME)

        assert user.role_id == role.id

    def test_get_by_email(self, db, make_user):
        user = make_user("jane@example.com")

        assert user_service.get_by_email(db, " JANE@example.com").id == user.id
        assert user_service.get_by_email(db, "nobody@example.com") is None

    def test_remove_deletes_employee_record(self, db, make_user):
        user = make_user()
        employee_service.create(db, {"user_id": user.id, "first_name": "Jane", "last_name": "Doe", "job_title": "Clerk"})

        user_service.remove_by_id(db, user.id)

        assert user_service.get_by_id(db, user.id) is None
        assert db.query(Employee).count() == 0


@pytest.mark.unit
class TestEmployeeService:

    def test_one_employee_per_user(self, db, make_user):
        user = make_user()
        data = {"user_id": user.id, "first_name": "Jane", "last_name": "Doe", "job_title": "Clerk"}
        employee_service.create(db, data)

        with pytest.raises(ResourceConflictError):
            employee_service.create(db, dict(data))

    def test_missing_user(self, db):
        with pytest.raises(ResourceNotFoundError):
            employee_service.create(db, {"user_id": 999, "first_name": "Jo", "last_name": "Doe", "job_title": "Clerk"})

    def test_user_employee_id_is_derived_from_the_employee(self, db, make_user):
        user = make_user()
        assert user.employee_id is None

        employee = employee_service.create(
            db, {"user_id": user.id, "first_name": "Jane", "last_name": "Doe", "job_title": "Clerk"}
        )
        assert user.employee_id == employee.id

        employee_service.remove_by_id(db, employee.id)
        assert user.employee_id is None


@pytest.mark.unit
class TestStorageUniqueness:
    """Duplicates that slip past the pre-write checks are still refused by the database."""

    def test_role_name(self, db):
        role_service.create(db, "Auditor")
        db.commit()

        with patch.object(RoleService, "ensure_name_available"):
            with pytest.raises(ResourceConflictError) as exc_info:
                with transaction(db):
                    role_service.create(db, "AUDITOR")

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "ROLE_NAME_TAKEN"
        assert db.query(Role).count() == 1
        assert role_service.create(db, "Reviewer").id is not None

    def test_permission_resource(self, db):
        permission_service.create(db, "report", ["read"])
        db.commit()

        with patch.object(PermissionService, "ensure_resource_available"):
            with pytest.raises(ResourceConflictError) as exc_info:
                with transaction(db):
                    permission_service.create(db, "Report", ["create"])

        assert exc_info.value.code == "PERMISSION_EXISTS"
        assert permission_service.get_by_resource(db, "report").action == ["read"]

    def test_user_email(self, db, make_user):
        user = make_user("jane@example.com")
        db.commit()

        with patch.object(UserService, "ensure_email_available"):
            with pytest.raises(ResourceConflictError) as exc_info:
                with transaction(db):
                    user_service.create(db, "Other Jane", "JANE@example.com", "password123", user.role_id)

        assert exc_info.value.code == "EMAIL_TAKEN"
        assert db.query(User).count() == 1
        assert user_service.get_by_email(db, "jane@example.com").id == user.id
