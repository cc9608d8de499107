"""
Tests: permission resolution precedence.

Chain under test (first match wins):
    platform admin → verified tenant-admin claim → role document
    → legacy role name → deny
"""

import pytest

from eodflow.core.exceptions import ErrorKind, PermissionDeniedError
from eodflow.services.identity import Actor, RoleGrant
from eodflow.services.permission_catalog import (
    ALL_PERMISSIONS,
    EMPLOYEE_PERMISSIONS,
    MANAGER_PERMISSIONS,
    PLATFORM_ONLY_PERMISSIONS,
    TENANT_ADMIN_PERMISSIONS,
    LegacyRole,
    Permission as P,
)
from eodflow.services.permission_service import (
    check_permission,
    effective_permissions,
    evaluate_permission,
    has_all_permissions,
    has_any_permission,
    resolve,
)

ALL_SORTED = sorted(ALL_PERMISSIONS, key=lambda p: p.value)


def _actor(**kwargs):
    kwargs.setdefault("tenant_id", 1)
    return Actor(id="u-1", **kwargs)


def _role(*permissions):
    return RoleGrant(id=7, tenant_id=1, name="Custom", permissions=frozenset(permissions))


# ── Platform admin ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("permission", ALL_SORTED)
def test_platform_admin_allowed_everything(permission):
    admin = Actor(id="root", tenant_id=None, is_platform_admin=True)
    assert resolve(admin, None, permission) is True
    assert resolve(admin, _role(), permission) is True


def test_platform_admin_gets_platform_only_tokens():
    admin = Actor(id="root", is_platform_admin=True)
    for p in PLATFORM_ONLY_PERMISSIONS:
        assert resolve(admin, None, p)


# ── Verified tenant-admin claim ──────────────────────────────────────────────


@pytest.mark.parametrize("permission", ALL_SORTED)
def test_tenant_admin_claim_matches_tenant_admin_set(permission):
    actor = _actor(verified_tenant_admin_claim=True, role_name="Employee")
    expected = permission in TENANT_ADMIN_PERMISSIONS
    assert resolve(actor, None, permission) is expected
    # Claim overrides whatever the role document says.
    assert resolve(actor, _role(), permission) is expected
    assert resolve(actor, _role(*ALL_PERMISSIONS), permission) is expected


def test_tenant_admin_claim_never_grants_platform_only():
    actor = _actor(verified_tenant_admin_claim=True)
    role = _role(P.CAN_MANAGE_TENANTS)
    assert resolve(actor, role, P.CAN_MANAGE_TENANTS) is False
    assert resolve(actor, None, P.PLATFORM_ADMIN) is False


# ── Role document ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("permission", ALL_SORTED)
def test_role_document_is_exact(permission):
    granted = {P.CAN_APPROVE_LEAVE, P.CAN_VIEW_TEAM_REPORTS}
    actor = _actor(role_id=7, role_name="Manager")
    assert resolve(actor, _role(*granted), permission) is (permission in granted)


def test_role_document_present_ignores_legacy_name():
    """An empty role must not fall back to the 'Tenant Admin' template."""
    actor = _actor(role_id=7, role_name="Tenant Admin")
    assert resolve(actor, _role(), P.CAN_MANAGE_USERS) is False


# ── Legacy fallback ──────────────────────────────────────────────────────────


@pytest.mark.parametrize("permission", ALL_SORTED)
def test_employee_legacy_fallback(permission):
    actor = _actor(role_name="Employee")
    assert resolve(actor, None, permission) is (permission in EMPLOYEE_PERMISSIONS)


def test_employee_cannot_approve_leave():
    assert resolve(_actor(role_name="Employee"), None, P.CAN_APPROVE_LEAVE) is False


@pytest.mark.parametrize("name", ["tenant admin", "Admin", "SUPER ADMIN", "  Tenant   Admin "])
def test_legacy_admin_names(name):
    actor = _actor(role_name=name)
    assert actor.legacy_role is LegacyRole.TENANT_ADMIN
    assert resolve(actor, None, P.CAN_MANAGE_USERS) is True
    assert resolve(actor, None, P.CAN_MANAGE_TENANTS) is False


def test_legacy_manager_name_case_insensitive():
    actor = _actor(role_name="MANAGER")
    assert actor.legacy_role is LegacyRole.MANAGER
    assert effective_permissions(actor, None) == MANAGER_PERMISSIONS


@pytest.mark.parametrize("name", [None, "", "Intern", "managers"])
def test_unrecognized_role_name_denies_everything(name):
    actor = _actor(role_name=name)
    assert actor.legacy_role is LegacyRole.UNRECOGNIZED
    assert effective_permissions(actor, None) == frozenset()


# ── Unknown tokens ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("token", ["CAN_FLY", "", "can_submit_own_eod", None, 42])
def test_unknown_tokens_are_denied(token):
    actor = _actor(verified_tenant_admin_claim=True)
    assert resolve(actor, None, token) is False
    assert resolve(_actor(role_name="Tenant Admin"), None, token) is False


def test_string_tokens_resolve_like_enum_members():
    actor = _actor(role_name="Employee")
    assert resolve(actor, None, "CAN_SUBMIT_OWN_EOD") is True


# ── Helpers ──────────────────────────────────────────────────────────────────


def test_evaluate_permission_reports_deciding_rule():
    cases = [
        (Actor(id="a", is_platform_admin=True), None, "allow_platform_admin"),
        (_actor(verified_tenant_admin_claim=True), None, "allow_tenant_admin_claim"),
        (_actor(role_id=7), _role(P.CAN_SUBMIT_OWN_EOD), "allow_role_grant"),
        (_actor(role_name="Employee"), None, "allow_legacy_role"),
        (_actor(role_name="Intern"), None, "deny_by_default"),
    ]
    for actor, role, decision in cases:
        result = evaluate_permission(actor, role, P.CAN_SUBMIT_OWN_EOD)
        assert result["decision"] == decision
        assert result["allowed"] is decision.startswith("allow")
        assert result["permission"] == "CAN_SUBMIT_OWN_EOD"


def test_any_and_all_wrappers():
    actor = _actor(role_name="Employee")
    assert has_any_permission(actor, None, [P.CAN_APPROVE_LEAVE, P.CAN_SUBMIT_OWN_EOD])
    assert not has_all_permissions(actor, None, [P.CAN_APPROVE_LEAVE, P.CAN_SUBMIT_OWN_EOD])
    assert has_all_permissions(actor, None, [P.CAN_VIEW_OWN_REPORTS, P.CAN_SUBMIT_OWN_EOD])


def test_check_permission_raises_permission_denied():
    actor = _actor(role_name="Employee")
    check_permission(actor, None, P.CAN_SUBMIT_OWN_EOD)
    with pytest.raises(PermissionDeniedError) as exc_info:
        check_permission(actor, None, P.CAN_ACKNOWLEDGE_REPORTS, report_id="r-1")
    assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED
    assert exc_info.value.permission == "CAN_ACKNOWLEDGE_REPORTS"
    assert exc_info.value.report_id == "r-1"


def test_effective_permissions_platform_admin_is_whole_catalog():
    assert effective_permissions(Actor(id="a", is_platform_admin=True), None) == ALL_PERMISSIONS
