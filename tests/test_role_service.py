"""
Tests: role seeding, permission-set migration and role document loading.
"""

import pytest
from sqlalchemy.exc import OperationalError

from eodflow.core.exceptions import NotFoundError
from eodflow.models import db as _db
from eodflow.models.auth import Role, RolePermission, Tenant
from eodflow.services import permission_service
from eodflow.services.permission_catalog import (
    MANAGER_PERMISSIONS,
    TENANT_ADMIN_PERMISSIONS,
    Permission as P,
)
from eodflow.services.permission_service import load_role, resolve, role_for_actor
from eodflow.services.role_service import migrate_role_permissions, seed_default_roles


def _role(tenant_id, name):
    return Role.query.filter_by(tenant_id=tenant_id, name=name).first()


# ── Seeding ──────────────────────────────────────────────────────────────────


def test_seed_creates_system_roles(default_tenant):
    created = seed_default_roles(default_tenant.id)

    names = {r["name"] for r in created}
    assert names == {"Tenant Admin", "Manager", "Team Lead", "Employee"}
    manager = next(r for r in created if r["name"] == "Manager")
    assert len(manager["permissions"]) == len(MANAGER_PERMISSIONS)
    assert all(r["is_system"] for r in created)

    admin = _role(default_tenant.id, "Tenant Admin")
    assert admin.codenames == {p.value for p in TENANT_ADMIN_PERMISSIONS}


def test_seed_is_idempotent(default_tenant):
    seed_default_roles(default_tenant.id)
    assert seed_default_roles(default_tenant.id) == []
    assert Role.query.filter_by(tenant_id=default_tenant.id).count() == 4


def test_seed_unknown_tenant():
    with pytest.raises(NotFoundError):
        seed_default_roles(99999)


# ── Migration ────────────────────────────────────────────────────────────────


def test_migrate_aligns_system_roles_and_cleans_custom_roles(default_tenant):
    seed_default_roles(default_tenant.id)
    manager = _role(default_tenant.id, "Manager")

    # Drift: one template token missing, one foreign token, one unknown token
    RolePermission.query.filter_by(
        role_id=manager.id, codename=P.CAN_ACKNOWLEDGE_REPORTS.value
    ).delete()
    _db.session.add(RolePermission(role_id=manager.id, codename=P.CAN_MANAGE_TENANTS.value))
    _db.session.add(RolePermission(role_id=manager.id, codename="can_time_travel"))

    custom = Role(tenant_id=default_tenant.id, name="Reviewer", is_system=False)
    _db.session.add(custom)
    _db.session.flush()
    _db.session.add(RolePermission(role_id=custom.id, codename=P.CAN_ACKNOWLEDGE_ANY_EOD.value))
    _db.session.add(RolePermission(role_id=custom.id, codename="can_fly"))
    _db.session.commit()

    summary = migrate_role_permissions(default_tenant.id)

    assert summary == {"roles": 5, "added": 1, "removed": 3}
    assert _role(default_tenant.id, "Manager").codenames == {p.value for p in MANAGER_PERMISSIONS}
    assert _role(default_tenant.id, "Reviewer").codenames == {P.CAN_ACKNOWLEDGE_ANY_EOD.value}


def test_migrate_is_a_no_op_when_aligned(default_tenant):
    seed_default_roles(default_tenant.id)
    assert migrate_role_permissions(default_tenant.id) == {"roles": 4, "added": 0, "removed": 0}


# ── Loading ──────────────────────────────────────────────────────────────────


def test_load_role_returns_grant_and_caches(default_tenant):
    seed_default_roles(default_tenant.id)
    manager = _role(default_tenant.id, "Manager")

    grant = load_role(manager.id, default_tenant.id)
    assert grant.permissions == frozenset(MANAGER_PERMISSIONS)
    assert load_role(manager.id, default_tenant.id) is grant


def test_load_role_drops_unknown_tokens(default_tenant):
    role = Role(tenant_id=default_tenant.id, name="Odd")
    _db.session.add(role)
    _db.session.flush()
    _db.session.add(RolePermission(role_id=role.id, codename="can_fly"))
    _db.session.add(RolePermission(role_id=role.id, codename=P.CAN_SUBMIT_OWN_EOD.value))
    _db.session.commit()

    assert load_role(role.id, default_tenant.id).permissions == frozenset({P.CAN_SUBMIT_OWN_EOD})


def test_load_role_of_other_tenant_is_none(default_tenant):
    other = Tenant(name="Other", slug="other")
    _db.session.add(other)
    _db.session.commit()
    seed_default_roles(other.id)

    foreign = _role(other.id, "Manager")
    assert load_role(foreign.id, default_tenant.id) is None
    assert load_role(None, default_tenant.id) is None
    assert load_role(424242, default_tenant.id) is None


def test_failed_role_read_falls_back_to_legacy_role(default_tenant, make_actor, monkeypatch, caplog):
    seed_default_roles(default_tenant.id)
    employee_role = _role(default_tenant.id, "Employee")

    def _boom(role):
        raise OperationalError("SELECT", {}, Exception("database is gone"))

    monkeypatch.setattr(permission_service, "role_to_grant", _boom)

    actor = make_actor("mgr-1", role_id=employee_role.id, role_name="Manager")
    role = role_for_actor(actor)

    assert role is None
    assert resolve(actor, role, P.CAN_ACKNOWLEDGE_REPORTS) is True
    assert "falling back to legacy role name" in caplog.text


def test_role_document_outranks_legacy_name(default_tenant, make_actor):
    seed_default_roles(default_tenant.id)
    employee_role = _role(default_tenant.id, "Employee")

    # Legacy name says Manager but the role document is Employee
    actor = make_actor("emp-7", role_id=employee_role.id, role_name="Manager")
    role = role_for_actor(actor)

    assert resolve(actor, role, P.CAN_SUBMIT_OWN_EOD) is True
    assert resolve(actor, role, P.CAN_ACKNOWLEDGE_REPORTS) is False
