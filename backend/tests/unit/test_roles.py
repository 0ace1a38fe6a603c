"""Unit tests for membership roles and permissions"""

import pytest

from buildtrack.tenancy.roles import (
    MemberRole,
    Permission,
    has_permission,
    is_valid_permission,
    parse_role,
    role_permissions,
)


class TestRoleHierarchy:

    def test_admin_has_every_permission(self):
        assert role_permissions(MemberRole.ADMIN) == {p.value for p in Permission}

    def test_viewer_is_read_only(self):
        assert role_permissions(MemberRole.VIEWER) == {"projects.read", "tasks.read", "files.read"}

    def test_each_role_includes_the_roles_below(self):
        order = [MemberRole.VIEWER, MemberRole.FIELD_WORKER, MemberRole.PROJECT_MANAGER, MemberRole.ADMIN]
        for lower, higher in zip(order, order[1:]):
            assert role_permissions(lower) < role_permissions(higher)

    @pytest.mark.parametrize("role, permission, expected", [
        ("FIELD_WORKER", "tasks.write", True),
        ("FIELD_WORKER", "files.write", True),
        ("FIELD_WORKER", "projects.write", False),
        ("PROJECT_MANAGER", "tasks.delete", True),
        ("PROJECT_MANAGER", "projects.delete", False),
        ("PROJECT_MANAGER", "audit.read", False),
        ("ADMIN", "team.manage", True),
    ])
    def test_permission_matrix(self, role, permission, expected):
        assert has_permission(role, permission) is expected


class TestHasPermission:

    def test_accepts_enum_members(self):
        assert has_permission("ADMIN", Permission.AUDIT_READ)

    def test_explicit_permissions_are_added(self):
        assert has_permission("VIEWER", "tasks.write", ["tasks.write"])
        assert not has_permission("VIEWER", "tasks.delete", ["tasks.write"])

    @pytest.mark.parametrize("role", [None, "", "OWNER", "admin"])
    def test_unknown_role_grants_nothing(self, role):
        assert has_permission(role, "projects.read") is False

    def test_unknown_role_still_gets_explicit_grants(self):
        assert has_permission("OWNER", "files.read", ["files.read"])


def test_parse_role():
    assert parse_role("VIEWER") is MemberRole.VIEWER
    assert parse_role("superuser") is None


def test_is_valid_permission():
    assert is_valid_permission("team.manage")
    assert not is_valid_permission("team.destroy")
