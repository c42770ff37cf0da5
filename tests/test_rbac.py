import pytest

from stockbook.core.errors import InvalidArgument
from stockbook.core.rbac import (
    Capability, Role, can_delete_finished_goods, can_delete_materials,
    can_manage_finished_goods, can_manage_users, can_view_reports,
    capabilities_for, evaluate_permission, migrate_legacy_role, parse_role,
    permission_denial_message, permission_matrix
)


@pytest.mark.parametrize("role", [None, "", "FACTORY", "OFFICE", "SUPERUSER", 42])
def test_unknown_roles_are_denied_everything(role):
    assert capabilities_for(role) == frozenset()
    for capability in Capability:
        assert evaluate_permission(role, capability) is False


def test_admin_has_every_capability():
    assert capabilities_for(Role.ADMIN) == frozenset(Capability)
    assert can_manage_users("ADMIN")
    assert can_delete_finished_goods(Role.ADMIN)


@pytest.mark.parametrize("role", [Role.OFFICE_WAREHOUSE, Role.OFFICE_PURCHASING])
def test_office_roles(role):
    assert can_view_reports(role)
    assert can_manage_finished_goods(role)
    assert not can_delete_finished_goods(role)
    assert not can_delete_materials(role)
    assert not can_manage_users(role)


def test_office_roles_share_permissions():
    assert capabilities_for(Role.OFFICE_WAREHOUSE) == capabilities_for(Role.OFFICE_PURCHASING)


def test_evaluate_accepts_capability_names():
    assert evaluate_permission("ADMIN", "manageUsers")
    assert not evaluate_permission("OFFICE_WAREHOUSE", "manageUsers")
    assert not evaluate_permission("ADMIN", "launchRockets")


def test_denial_message():
    assert permission_denial_message("delete finished goods", Role.OFFICE_WAREHOUSE) == (
        "You do not have permission to delete finished goods. Current role: OFFICE_WAREHOUSE."
    )
    assert permission_denial_message("manage users", None) == (
        "You do not have permission to manage users. Current role: none."
    )


def test_parse_role():
    assert parse_role("OFFICE_PURCHASING") is Role.OFFICE_PURCHASING
    assert parse_role(Role.ADMIN) is Role.ADMIN
    assert parse_role("FACTORY") is None


def test_migrate_legacy_role():
    assert migrate_legacy_role("OFFICE") is Role.OFFICE_PURCHASING
    assert migrate_legacy_role("FACTORY") is Role.OFFICE_PURCHASING
    assert migrate_legacy_role("ADMIN") is Role.ADMIN
    with pytest.raises(InvalidArgument):
        migrate_legacy_role("JANITOR")


def test_permission_matrix_lists_every_role():
    matrix = permission_matrix()
    assert set(matrix) == {r.value for r in Role}
    assert "manageUsers" in matrix["ADMIN"]
    assert "manageUsers" not in matrix["OFFICE_WAREHOUSE"]
