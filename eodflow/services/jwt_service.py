"""
JWT Service — access token generation and verification.

Access token:  15 minutes (configurable via JWT_ACCESS_EXPIRES)
Algorithm:     HS256

Token payload:
{
    "sub": "<user_id>",
    "tenant_id": <tenant_id>,            # absent for platform admins
    "is_platform_admin": false,
    "is_tenant_admin": false,            # verified tenant-admin claim
    "role_id": <role_id | null>,
    "role_name": "Manager",              # legacy fallback
    "name": "Ada Lovelace",
    "designation": "Director",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

The admin flags are only trustworthy because the signature is checked on
decode; ``identity.actor_from_claims`` must only ever see decoded payloads.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

# ─── Defaults ────────────────────────────────────────────────
DEFAULT_ACCESS_EXPIRES = 900       # 15 minutes
ALGORITHM = "HS256"


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires():
    return current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)


# ═══════════════════════════════════════════════════════════════
# Token Generation
# ═══════════════════════════════════════════════════════════════
def generate_access_token(
    user_id,
    tenant_id: int | None,
    *,
    is_platform_admin: bool = False,
    is_tenant_admin: bool = False,
    role_id: int | None = None,
    role_name: str | None = None,
    name: str | None = None,
    designation: str | None = None,
) -> str:
    """Generate a short-lived access token carrying the identity claims."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "is_platform_admin": bool(is_platform_admin),
        "is_tenant_admin": bool(is_tenant_admin),
        "role_id": role_id,
        "role_name": role_name,
        "name": name,
        "designation": designation,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(seconds=_get_access_expires()),
        "jti": str(uuid.uuid4()),
    }
    if tenant_id is not None:
        payload["tenant_id"] = tenant_id
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def generate_token_for_user(user, *, is_tenant_admin: bool = False) -> dict:
    """Access token for a ``User`` row. The tenant-admin claim is issuer-side only."""
    token = generate_access_token(
        user.id,
        user.tenant_id,
        is_platform_admin=user.is_platform_admin,
        is_tenant_admin=is_tenant_admin,
        role_id=user.role_id,
        role_name=user.role_name,
        name=user.full_name,
        designation=user.designation,
    )
    return {
        "access_token": token,
        "token_type": "Bearer",
        "expires_in": _get_access_expires(),
    }


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def decode_token(token: str, expected_type: str = "access") -> dict:
    """
    Decode and verify a JWT token.

    Returns the payload dict on success.
    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])

    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")

    return payload


def decode_access_token(token: str) -> dict:
    """Decode a token and require ``type == "access"``."""
    return decode_token(token, expected_type="access")
