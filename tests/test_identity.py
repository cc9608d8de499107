"""Tests: Actor construction from verified claims and user rows."""

import dataclasses

import pytest

from eodflow.models import db as _db
from eodflow.models.auth import User
from eodflow.services.identity import Actor, actor_from_claims, actor_from_user
from eodflow.services.jwt_service import decode_access_token, generate_access_token
from eodflow.services.permission_catalog import LegacyRole


def test_actor_is_frozen():
    actor = Actor(id="1", role_name="Manager")
    with pytest.raises(dataclasses.FrozenInstanceError):
        actor.tenant_id = 2


def test_legacy_role_resolved_at_construction():
    assert Actor(id="1", role_name="Team Lead").legacy_role is LegacyRole.TEAM_LEAD
    assert Actor(id="1").legacy_role is LegacyRole.UNRECOGNIZED


def test_actor_from_claims_round_trip_through_jwt():
    token = generate_access_token(
        42, 3,
        is_tenant_admin=True,
        role_id=9,
        role_name="Manager",
        name="Grace Hopper",
        designation="Director",
    )
    actor = actor_from_claims(decode_access_token(token))

    assert actor.id == "42"
    assert actor.tenant_id == 3
    assert actor.verified_tenant_admin_claim is True
    assert actor.is_platform_admin is False
    assert actor.role_id == 9
    assert actor.legacy_role is LegacyRole.MANAGER
    assert actor.designation == "Director"


def test_platform_admin_token_has_no_tenant():
    token = generate_access_token(1, None, is_platform_admin=True)
    actor = actor_from_claims(decode_access_token(token))
    assert actor.tenant_id is None
    assert actor.is_platform_admin is True


def test_actor_from_user_never_assumes_tenant_admin(default_tenant):
    user = User(
        tenant_id=default_tenant.id,
        email="ada@example.com",
        full_name="Ada",
        role_name="Tenant Admin",
        designation="CTO",
    )
    _db.session.add(user)
    _db.session.flush()

    actor = actor_from_user(user)
    assert actor.id == str(user.id)
    assert actor.verified_tenant_admin_claim is False
    assert actor.legacy_role is LegacyRole.TENANT_ADMIN
    assert actor.to_dict()["is_tenant_admin"] is False
    assert actor_from_user(user, is_tenant_admin=True).verified_tenant_admin_claim is True
