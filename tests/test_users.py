from __future__ import annotations

import pytest

from modules.users.models.schemas import UserUpsert
from modules.users.permissions import (
    ADMIN_ROLE_ID,
    ALL_PERMISSION_IDS,
    EMPLOYEE_ROLE_ID,
    Access,
    first_allowed_tab,
)
from modules.users.services import UserService


@pytest.fixture
def users(store):
    service = UserService(store)
    service.ensure_defaults()
    return service


def test_defaults_are_seeded_once(users):
    users.ensure_defaults()

    assert [u.username for u in users.list_users()] == ["admin"]
    assert {r.id for r in users.list_roles()} == {ADMIN_ROLE_ID, EMPLOYEE_ROLE_ID}
    assert users.get_role(ADMIN_ROLE_ID).perms == list(ALL_PERMISSION_IDS)


def test_login_matches_username_and_password(users):
    assert users.login("admin", "admin").username == "admin"
    assert users.login("admin", "wrong") is None
    assert users.login("nobody", "admin") is None


def test_admin_account_is_protected(users):
    admin = users.login("admin", "admin")

    with pytest.raises(ValueError):
        users.save_user(UserUpsert(username="root", password="x"), admin.id)
    with pytest.raises(ValueError):
        users.delete_user(admin.id)

    updated = users.save_user(UserUpsert(username="admin", password="s3cret", role_id=ADMIN_ROLE_ID), admin.id)
    assert updated.password == "s3cret"


def test_usernames_are_unique(users):
    sara = users.save_user(UserUpsert(username="sara", password="1", role_id=EMPLOYEE_ROLE_ID))

    with pytest.raises(ValueError):
        users.save_user(UserUpsert(username="sara", password="2"))
    with pytest.raises(ValueError):
        users.save_user(UserUpsert(username="admin", password="2"), sara.id)
    users.delete_user(sara.id)
    assert users.get_user(sara.id) is None


def test_roles_validate_permissions_and_system_roles_stay(users):
    role = users.create_role(" Clerk ", iter(["workspace", "archive", "workspace"]))

    assert role.name == "Clerk"
    assert role.perms == ["workspace", "archive"]
    with pytest.raises(ValueError):
        users.create_role("Bad", ["fly"])
    with pytest.raises(ValueError):
        users.create_role("", ["workspace"])
    with pytest.raises(ValueError):
        users.delete_role(EMPLOYEE_ROLE_ID)
    users.delete_role(role.id)
    assert users.get_role(role.id) is None


def test_access_for_custom_role(users):
    role = users.create_role("Accountant", ["accounting", "reports"])
    user = users.save_user(UserUpsert(username="omid", password="1", role_id=role.id))

    access = users.access_for(user)

    assert access.visible_tabs() == ["accounting", "reports"]
    assert not access.can_create
    assert first_allowed_tab(access, "workspace") == "accounting"
    assert first_allowed_tab(access, "reports") == "reports"


def test_strict_employee_rules():
    employee = Access.for_user("sara", EMPLOYEE_ROLE_ID, ["workspace_create", "workspace_search", "archive_delete"])

    assert employee.is_strict_employee
    assert employee.visible_tabs() == ["workspace", "archive"]
    assert not employee.can_create
    assert not employee.can_search
    assert not employee.can_delete_contracts
    assert employee.can_edit_contracts and employee.can_print


def test_admin_sees_everything_regardless_of_role():
    admin = Access.for_user("admin", None, ())

    assert admin.is_admin and not admin.is_strict_employee
    assert admin.visible_tabs() == ["workspace", "archive", "accounting", "reports", "settings"]
    assert admin.has("settings_backup")


def test_user_without_tabs_has_no_landing_tab():
    assert first_allowed_tab(Access.for_user("ghost", None, ())) is None
