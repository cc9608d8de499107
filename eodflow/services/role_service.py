"""
Role Service — system role seeding and permission-set migration.

Every tenant gets four system roles (Tenant Admin, Manager, Team Lead,
Employee) built from the legacy templates in ``permission_catalog``. When the
templates change, ``migrate_role_permissions`` brings the stored role
documents up to date; until it runs, the verified tenant-admin claim and the
legacy fallback keep users working.
"""

import logging

from sqlalchemy import select

from eodflow.core.exceptions import NotFoundError
from eodflow.models import db
from eodflow.models.auth import Role, RolePermission, Tenant
from eodflow.services.permission_catalog import LEGACY_ROLE_PERMISSIONS, SYSTEM_ROLES, parse_permission
from eodflow.services.permission_service import invalidate_cache, role_to_grant

logger = logging.getLogger(__name__)

__all__ = ["seed_default_roles", "migrate_role_permissions", "role_to_grant"]


def _get_tenant(tenant_id: int) -> Tenant:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant", tenant_id)
    return tenant


def seed_default_roles(tenant_id: int) -> list[dict]:
    """Create the system roles for a tenant.

    Idempotent: roles that already exist by name are left untouched.
    Returns the roles that were created.
    """
    _get_tenant(tenant_id)

    existing = set(
        db.session.execute(
            select(Role.name).where(Role.tenant_id == tenant_id)
        ).scalars()
    )

    created = []
    for name, legacy_role, description in SYSTEM_ROLES:
        if name in existing:
            continue
        role = Role(tenant_id=tenant_id, name=name, description=description, is_system=True)
        db.session.add(role)
        db.session.flush()
        for permission in sorted(LEGACY_ROLE_PERMISSIONS[legacy_role], key=lambda p: p.value):
            db.session.add(RolePermission(role_id=role.id, codename=permission.value))
        created.append(role)

    db.session.commit()
    if created:
        logger.info(
            "Default roles seeded",
            extra={"tenant_id": tenant_id, "count": len(created), "event_type": "roles_seeded"},
        )
    return [r.to_dict(include_permissions=True) for r in created]


def migrate_role_permissions(tenant_id: int) -> dict:
    """Align each system role's permission rows with the current template.

    Adds missing tokens and removes tokens that are not in the template or
    no longer exist in the catalog. Custom (non-system) roles are only
    stripped of unknown tokens.

    Returns ``{"roles": n, "added": n, "removed": n}``.
    """
    _get_tenant(tenant_id)
    templates = {name: LEGACY_ROLE_PERMISSIONS[kind] for name, kind, _ in SYSTEM_ROLES}

    roles = db.session.execute(
        select(Role).where(Role.tenant_id == tenant_id)
    ).scalars().all()

    added = removed = 0
    for role in roles:
        rows = role.role_permissions.all()
        current = {rp.codename for rp in rows}
        template = templates.get(role.name) if role.is_system else None

        for rp in rows:
            token = parse_permission(rp.codename)
            if token is None or (template is not None and token not in template):
                db.session.delete(rp)
                removed += 1

        if template is not None:
            for permission in sorted(template - {parse_permission(c) for c in current}, key=lambda p: p.value):
                db.session.add(RolePermission(role_id=role.id, codename=permission.value))
                added += 1

        invalidate_cache(role.id)

    db.session.commit()
    summary = {"roles": len(roles), "added": added, "removed": removed}
    logger.info(
        "Role permissions migrated",
        extra={"tenant_id": tenant_id, "event_type": "roles_migrated", **summary},
    )
    return summary
