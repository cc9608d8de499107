"""
Tests: permission catalog exhaustiveness.

A token added to ``Permission`` without being placed in a group or the
derived sets would silently be denied to every tenant admin; these checks
fail first.
"""

from eodflow.services.permission_catalog import (
    ALL_PERMISSIONS,
    EMPLOYEE_PERMISSIONS,
    LEGACY_ROLE_PERMISSIONS,
    MANAGER_PERMISSIONS,
    PERMISSION_GROUPS,
    PLATFORM_ONLY_PERMISSIONS,
    SYSTEM_ROLES,
    TEAM_LEAD_PERMISSIONS,
    TENANT_ADMIN_PERMISSIONS,
    LegacyRole,
    Permission,
    parse_permission,
    permission_groups,
)


def test_every_token_is_platform_only_or_tenant_admin():
    for p in Permission:
        assert (p in PLATFORM_ONLY_PERMISSIONS) != (p in TENANT_ADMIN_PERMISSIONS), p


def test_platform_only_set():
    assert PLATFORM_ONLY_PERMISSIONS == {
        Permission.PLATFORM_ADMIN,
        Permission.CAN_MANAGE_TENANTS,
        Permission.CAN_VIEW_ALL_TENANTS,
    }


def test_every_token_belongs_to_exactly_one_group():
    seen = []
    for group in PERMISSION_GROUPS.values():
        seen.extend(group["permissions"])
    assert len(seen) == len(set(seen))
    assert set(seen) == ALL_PERMISSIONS


def test_legacy_templates_are_subsets_of_tenant_admin_set():
    for kind, permissions in LEGACY_ROLE_PERMISSIONS.items():
        assert permissions <= TENANT_ADMIN_PERMISSIONS, kind


def test_legacy_template_sizes():
    assert len(MANAGER_PERMISSIONS) == 30
    assert len(TEAM_LEAD_PERMISSIONS) == 19
    assert len(EMPLOYEE_PERMISSIONS) == 8
    assert LEGACY_ROLE_PERMISSIONS[LegacyRole.UNRECOGNIZED] == frozenset()
    assert LEGACY_ROLE_PERMISSIONS[LegacyRole.TENANT_ADMIN] == TENANT_ADMIN_PERMISSIONS


def test_templates_are_nested():
    assert EMPLOYEE_PERMISSIONS <= TEAM_LEAD_PERMISSIONS <= MANAGER_PERMISSIONS


def test_every_legacy_role_has_a_template():
    assert set(LEGACY_ROLE_PERMISSIONS) == set(LegacyRole)


def test_system_roles_cover_recognised_kinds():
    kinds = {kind for _, kind, _ in SYSTEM_ROLES}
    assert kinds == set(LegacyRole) - {LegacyRole.UNRECOGNIZED}


def test_parse_permission():
    assert parse_permission("CAN_SUBMIT_OWN_EOD") is Permission.CAN_SUBMIT_OWN_EOD
    assert parse_permission(Permission.CAN_EXPORT_EODS) is Permission.CAN_EXPORT_EODS
    assert parse_permission("NOPE") is None
    assert parse_permission(None) is None


def test_permission_groups_serialisable():
    groups = permission_groups()
    assert groups[0]["key"] == "platform_admin"
    assert all(isinstance(p, str) for g in groups for p in g["permissions"])
