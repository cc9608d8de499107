"""
Permission Service — claim-aware RBAC resolution with a legacy fallback.

Resolution order (first match wins, deny-by-default):

  1. platform admin            → allow everything
  2. verified tenant-admin claim → allow iff token in TENANT_ADMIN_PERMISSIONS
  3. role document present     → allow iff token in role.permissions
  4. no role document          → legacy template for actor.legacy_role
  5. otherwise                 → deny

``resolve`` is pure: it takes the actor, the already-fetched role and the
token, touches no I/O and never raises. Fetching the role document is a
separate step (``load_role``) that degrades to ``None`` on database errors
so the resolver falls back to the legacy template instead of locking the
user out.
"""

import logging
import threading
import time
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from eodflow.core.exceptions import PermissionDeniedError
from eodflow.models import db
from eodflow.models.auth import Role
from eodflow.services.identity import Actor, RoleGrant
from eodflow.services.permission_catalog import (
    ALL_PERMISSIONS,
    LEGACY_ROLE_PERMISSIONS,
    TENANT_ADMIN_PERMISSIONS,
    Permission,
    parse_permission,
)

logger = logging.getLogger(__name__)

CACHE_TTL = 300  # 5 minutes

# Cache key: (role_id, tenant_id)
_role_cache: dict[tuple[int, int | None], tuple[float, RoleGrant]] = {}
_cache_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════
# Resolution
# ═══════════════════════════════════════════════════════════════
def _decide(actor: Actor, role: RoleGrant | None, permission) -> tuple[bool, str]:
    if actor.is_platform_admin:
        return True, "allow_platform_admin"

    token = parse_permission(permission)
    if token is None:
        return False, "deny_unknown_permission"

    if actor.verified_tenant_admin_claim:
        if token in TENANT_ADMIN_PERMISSIONS:
            return True, "allow_tenant_admin_claim"
        return False, "deny_platform_only"

    if role is not None:
        if token in role.permissions:
            return True, "allow_role_grant"
        return False, "deny_by_default"

    if token in LEGACY_ROLE_PERMISSIONS[actor.legacy_role]:
        return True, "allow_legacy_role"
    return False, "deny_by_default"


def resolve(actor: Actor, role: RoleGrant | None, permission: Permission | str) -> bool:
    """Return True when *actor* may perform *permission*."""
    allowed, _ = _decide(actor, role, permission)
    return allowed


def evaluate_permission(actor: Actor, role: RoleGrant | None, permission: Permission | str) -> dict:
    """Explain a resolution; same answer as ``resolve`` plus the deciding rule."""
    allowed, decision = _decide(actor, role, permission)
    return {
        "allowed": allowed,
        "decision": decision,
        "permission": permission.value if isinstance(permission, Permission) else permission,
        "actor_id": actor.id,
    }


def has_any_permission(actor: Actor, role: RoleGrant | None, permissions: Iterable) -> bool:
    return any(resolve(actor, role, p) for p in permissions)


def has_all_permissions(actor: Actor, role: RoleGrant | None, permissions: Iterable) -> bool:
    return all(resolve(actor, role, p) for p in permissions)


def effective_permissions(actor: Actor, role: RoleGrant | None) -> frozenset[Permission]:
    """The full set of catalog tokens ``resolve`` would grant."""
    return frozenset(p for p in ALL_PERMISSIONS if resolve(actor, role, p))


def check_permission(
    actor: Actor,
    role: RoleGrant | None,
    permission: Permission | str,
    report_id: str | None = None,
) -> None:
    """Assert *actor* holds *permission*; raise PermissionDeniedError if not."""
    if not resolve(actor, role, permission):
        name = permission.value if isinstance(permission, Permission) else str(permission)
        logger.warning(
            "Actor %s denied: missing permission '%s'", actor.id, name,
            extra={"tenant_id": actor.tenant_id, "event_type": "permission_denied"},
        )
        raise PermissionDeniedError(actor.id, name, report_id=report_id)


# ═══════════════════════════════════════════════════════════════
# Role document loading (cached)
# ═══════════════════════════════════════════════════════════════
def _ttl() -> int:
    return current_app.config.get("ROLE_CACHE_TTL", CACHE_TTL)


def _get_cached(key: tuple[int, int | None]) -> Optional[RoleGrant]:
    with _cache_lock:
        entry = _role_cache.get(key)
        if entry is None:
            return None
        cached_at, grant = entry
        if time.time() - cached_at > _ttl():
            del _role_cache[key]
            return None
        return grant


def _set_cached(key: tuple[int, int | None], grant: RoleGrant) -> None:
    with _cache_lock:
        _role_cache[key] = (time.time(), grant)


def invalidate_cache(role_id: int) -> None:
    with _cache_lock:
        keys = [k for k in _role_cache if k[0] == role_id]
        for k in keys:
            _role_cache.pop(k, None)


def invalidate_all_cache() -> None:
    with _cache_lock:
        _role_cache.clear()


def role_to_grant(role: Role) -> RoleGrant:
    """Convert a Role row to the resolver's value type, dropping unknown tokens."""
    tokens = {parse_permission(c) for c in role.codenames}
    tokens.discard(None)
    return RoleGrant(
        id=role.id,
        tenant_id=role.tenant_id,
        name=role.name,
        permissions=frozenset(tokens),
    )


def load_role(role_id: int | None, tenant_id: int | None) -> RoleGrant | None:
    """Fetch the role document for an actor, or None.

    None is returned when there is no role id, the role does not exist,
    it belongs to another tenant, or the read fails. The last case is
    logged and otherwise tolerated: the resolver then uses the legacy
    role-name template.
    """
    if role_id is None:
        return None

    key = (role_id, tenant_id)
    cached = _get_cached(key)
    if cached is not None:
        return cached

    try:
        role = db.session.get(Role, role_id)
        if role is None:
            return None
        if tenant_id is not None and role.tenant_id != tenant_id:
            logger.warning(
                "Role %s requested outside its tenant", role_id,
                extra={"tenant_id": tenant_id, "event_type": "role_scope_mismatch"},
            )
            return None
        grant = role_to_grant(role)
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning(
            "Could not read role %s; falling back to legacy role name", role_id,
            exc_info=True,
            extra={"tenant_id": tenant_id, "event_type": "role_fetch_failed"},
        )
        return None

    _set_cached(key, grant)
    return grant


def role_for_actor(actor: Actor) -> RoleGrant | None:
    return load_role(actor.role_id, actor.tenant_id)
