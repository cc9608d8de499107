"""
Rate limiting — applies per-blueprint limits using Flask-Limiter.

The Limiter instance is created in ``eodflow/__init__.py`` with no default
limits; this module applies the configured limits per blueprint. Keys are
the authenticated actor when there is one, else the remote IP.

Rate limiting is disabled in testing mode.

Usage:
    from eodflow.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

logger = logging.getLogger(__name__)


def actor_rate_limit_key():
    actor = getattr(g, "actor", None)
    if actor is not None:
        return f"actor:{actor.tenant_id}:{actor.id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    reports_limit = app.config.get("RATELIMIT_REPORTS", "120/minute")
    permissions_limit = app.config.get("RATELIMIT_PERMISSIONS", "300/minute")

    bp = app.blueprints.get("report_bp")
    if bp:
        limiter.limit(reports_limit, key_func=actor_rate_limit_key)(bp)

    bp = app.blueprints.get("permission_bp")
    if bp:
        limiter.limit(permissions_limit, key_func=actor_rate_limit_key)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — reports: %s, permissions: %s",
        reports_limit, permissions_limit,
    )
