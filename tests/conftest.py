"""
Shared pytest fixtures for the EOD Flow test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - default_tenant: Pre-created Tenant entity
    - make_actor / auth_headers: identity helpers
"""

from datetime import date, datetime, timezone

import pytest

from eodflow import create_app
from eodflow.models import db as _db
from eodflow.services.identity import Actor
from eodflow.services.permission_service import invalidate_all_cache

# Fixed "now" for lifecycle tests: 10:00 UTC on a weekday.
NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
TODAY = date(2026, 3, 2)


def _ensure_default_tenant():
    from eodflow.models.auth import Tenant
    t = Tenant.query.filter_by(slug="test-default").first()
    if not t:
        t = Tenant(name="Test Default", slug="test-default")
        _db.session.add(t)
        _db.session.commit()
    return t.id


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        # Role ids are reused after each recreate; stale cache entries would leak.
        invalidate_all_cache()
        _ensure_default_tenant()
        yield
        invalidate_all_cache()
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def default_tenant():
    """Return the auto-created default test tenant."""
    from eodflow.models.auth import Tenant
    return Tenant.query.filter_by(slug="test-default").first()


# ── Identity helpers ─────────────────────────────────────────────────────


@pytest.fixture()
def make_actor(default_tenant):
    """Factory: ``make_actor("emp-1", role_name="Employee")``; tenant defaults to the test tenant."""

    def _make(actor_id="emp-1", **kwargs):
        kwargs.setdefault("tenant_id", default_tenant.id)
        kwargs.setdefault("name", f"User {actor_id}")
        return Actor(id=str(actor_id), **kwargs)

    return _make


@pytest.fixture()
def auth_headers():
    """Factory: Bearer headers for an Actor, signed with the testing secret."""
    from eodflow.services.jwt_service import generate_access_token

    def _headers(actor: Actor):
        token = generate_access_token(
            actor.id,
            actor.tenant_id,
            is_platform_admin=actor.is_platform_admin,
            is_tenant_admin=actor.verified_tenant_admin_claim,
            role_id=actor.role_id,
            role_name=actor.role_name,
            name=actor.name,
            designation=actor.designation,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
