"""
JWT Auth Middleware — parses the Bearer token and sets ``g.actor``.

``g.actor`` is an immutable ``Actor`` built from the verified claims, or
None when no valid token was sent. Endpoints that need an identity wrap
themselves with ``require_actor``; this hook itself never rejects.
"""

import functools
import logging

import jwt as pyjwt
from flask import g, request

from eodflow.services.identity import actor_from_claims
from eodflow.services.jwt_service import decode_access_token
from eodflow.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/static/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.actor = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]
        try:
            payload = decode_access_token(token)
            g.actor = actor_from_claims(payload)
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired access token on %s", path, extra={"path": path})
        except (pyjwt.InvalidTokenError, KeyError, TypeError, ValueError):
            logger.warning("Rejected malformed access token on %s", path, extra={"path": path})


def require_actor(f):
    """Decorator: 401 unless the request carried a valid access token."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return f(*args, **kwargs)

    return decorated
