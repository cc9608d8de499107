"""Standardised API error responses.

Usage
-----
    from eodflow.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Report not found")
    return api_error(E.VALIDATION_REQUIRED, "tasks_completed is required")

Service exceptions never reach Flask's generic 500 page:
``register_error_handlers`` maps each type from ``eodflow.core.exceptions``
to one code and status.
"""

from __future__ import annotations

import logging

from flask import jsonify

from eodflow.core.exceptions import (
    ConflictError,
    EmptyReportError,
    InvalidVersionError,
    NotFoundError,
    PermissionDeniedError,
    ReportLockedError,
    ValidationError,
    VersionConflictError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants."""

    # Validation – HTTP 400 / 422
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_RULE = "ERR_VALIDATION_RULE"
    INVALID_VERSION = "ERR_INVALID_VERSION"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    VERSION_CONFLICT = "ERR_VERSION_CONFLICT"

    # Locked – HTTP 423
    REPORT_LOCKED = "ERR_REPORT_LOCKED"

    # Server – HTTP 500
    DATA_INTEGRITY = "ERR_DATA_INTEGRITY"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_RULE: 422,
    E.INVALID_VERSION: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.VERSION_CONFLICT: 409,
    E.REPORT_LOCKED: 423,
    E.DATA_INTEGRITY: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map service-layer exceptions to ``api_error`` responses."""

    @app.errorhandler(PermissionDeniedError)
    def _permission_denied(exc):
        return api_error(E.FORBIDDEN, "Permission denied", details={"required": exc.permission})

    @app.errorhandler(ReportLockedError)
    def _report_locked(exc):
        return api_error(E.REPORT_LOCKED, str(exc), details={"reason": exc.reason})

    @app.errorhandler(InvalidVersionError)
    def _invalid_version(exc):
        return api_error(E.INVALID_VERSION, str(exc))

    @app.errorhandler(VersionConflictError)
    def _version_conflict(exc):
        return api_error(E.VERSION_CONFLICT, str(exc))

    @app.errorhandler(EmptyReportError)
    def _empty_report(exc):
        logger.error(
            "Data integrity error: %s", exc,
            extra={"report_id": exc.report_id, "event_type": "empty_report"},
        )
        return api_error(E.DATA_INTEGRITY, "Report data is corrupted")

    @app.errorhandler(NotFoundError)
    def _not_found(exc):
        return api_error(E.NOT_FOUND, f"{exc.resource} not found")

    @app.errorhandler(ConflictError)
    def _conflict(exc):
        return api_error(E.CONFLICT_DUPLICATE, str(exc))

    @app.errorhandler(ValidationError)
    def _validation(exc):
        return api_error(E.VALIDATION_RULE, str(exc), details=exc.details)

    @app.errorhandler(404)
    def _route_not_found(_e):
        return api_error(E.NOT_FOUND, "Resource not found")

    @app.errorhandler(500)
    def _internal(_e):
        return api_error(E.INTERNAL, "Internal server error")
