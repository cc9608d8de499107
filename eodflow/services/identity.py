"""
Identity Context — immutable per-session facts about the acting user.

An ``Actor`` is built once per request/session from claims the identity
provider signed (see ``jwt_service``) and is threaded explicitly through the
permission resolver and the report lifecycle. Nothing here reads ambient
request state; a tenant switch means building a new Actor.

Usage:
    from eodflow.services.identity import actor_from_claims

    payload = jwt_service.decode_access_token(token)
    actor = actor_from_claims(payload)
"""

from dataclasses import dataclass, field

from eodflow.services.permission_catalog import LegacyRole, Permission


@dataclass(frozen=True)
class Actor:
    id: str
    tenant_id: int | None = None
    is_platform_admin: bool = False
    role_id: int | None = None
    role_name: str | None = None
    verified_tenant_admin_claim: bool = False
    name: str | None = None
    designation: str | None = None
    legacy_role: LegacyRole = field(init=False)

    def __post_init__(self):
        # Classified once; the resolver never re-parses the free-text name.
        object.__setattr__(self, "legacy_role", LegacyRole.from_name(self.role_name))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "is_platform_admin": self.is_platform_admin,
            "role_id": self.role_id,
            "role_name": self.role_name,
            "is_tenant_admin": self.verified_tenant_admin_claim,
            "legacy_role": self.legacy_role.value,
            "name": self.name,
            "designation": self.designation,
        }


@dataclass(frozen=True)
class RoleGrant:
    """Read-only view of a tenant role document."""

    id: int
    permissions: frozenset[Permission]
    tenant_id: int | None = None
    name: str | None = None


def actor_from_claims(payload: dict) -> Actor:
    """Build an Actor from a decoded, signature-verified token payload.

    Only call this with the output of ``jwt_service.decode_access_token``;
    the admin flags are trusted because the token signature was checked.
    """
    tenant_id = payload.get("tenant_id")
    role_id = payload.get("role_id")
    return Actor(
        id=str(payload["sub"]),
        tenant_id=int(tenant_id) if tenant_id is not None else None,
        is_platform_admin=bool(payload.get("is_platform_admin", False)),
        role_id=int(role_id) if role_id is not None else None,
        role_name=payload.get("role_name"),
        verified_tenant_admin_claim=bool(payload.get("is_tenant_admin", False)),
        name=payload.get("name"),
        designation=payload.get("designation"),
    )


def actor_from_user(user, *, is_tenant_admin: bool = False) -> Actor:
    """Build an Actor from a ``User`` row.

    ``is_tenant_admin`` must come from a verified claim, never from tenant
    data; the default denies the claim.
    """
    return Actor(
        id=str(user.id),
        tenant_id=user.tenant_id,
        is_platform_admin=bool(user.is_platform_admin),
        role_id=user.role_id,
        role_name=user.role_name,
        verified_tenant_admin_claim=is_tenant_admin,
        name=user.full_name,
        designation=user.designation,
    )
