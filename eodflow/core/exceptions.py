"""
Platform-wide exception hierarchy.

Services raise these types; blueprints never build error responses from
ad-hoc exceptions. ``eodflow.utils.errors.register_error_handlers`` maps
each type to one HTTP status so every endpoint rejects the same way.

Two families live here:

* Generic lookup/validation errors (``NotFoundError``, ``ValidationError``,
  ``ConflictError``) shared by every service.
* Report lifecycle errors, each tagged with an ``ErrorKind`` so callers can
  branch on the kind without importing every subclass.

Usage:
    from eodflow.core.exceptions import ReportLockedError, ErrorKind

    raise ReportLockedError(report_id="rep-1", reason="edit window closed")

    try:
        ...
    except LifecycleError as exc:
        if exc.kind is ErrorKind.VERSION_CONFLICT:
            ...
"""

from enum import Enum


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given scope.

    Security note: used for BOTH genuinely missing records AND cross-tenant
    lookups. A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable entity name (e.g. "EODReport", "Role").
        resource_id: The key that was looked up. Included in logs.
        tenant_id: Optional scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        tenant_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.tenant_id = tenant_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if tenant_id is not None:
            msg += f" (tenant={tenant_id})"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique record.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


# ── Report lifecycle ─────────────────────────────────────────────────────────


class ErrorKind(str, Enum):
    """Machine-readable category of a lifecycle failure."""

    INVALID_VERSION = "InvalidVersion"
    EMPTY_REPORT = "EmptyReport"
    REPORT_LOCKED = "ReportLocked"
    VERSION_CONFLICT = "VersionConflict"
    PERMISSION_DENIED = "PermissionDenied"


class LifecycleError(Exception):
    """Base class for report lifecycle and authorization failures."""

    kind: ErrorKind

    def __init__(self, message: str, report_id: str | None = None) -> None:
        self.report_id = report_id
        super().__init__(message)


class InvalidVersionError(LifecycleError):
    """A version append carried a malformed or colliding version number."""

    kind = ErrorKind.INVALID_VERSION

    def __init__(self, report_id: str | None, version_number: int, reason: str) -> None:
        self.version_number = version_number
        super().__init__(
            f"Invalid version {version_number} for report {report_id}: {reason}",
            report_id=report_id,
        )


class EmptyReportError(LifecycleError):
    """A report record has no versions.

    Never expected; signals a corrupted or partially written record and is
    always surfaced to the caller.
    """

    kind = ErrorKind.EMPTY_REPORT

    def __init__(self, report_id: str | None) -> None:
        super().__init__(f"Report {report_id} has no versions", report_id=report_id)


class ReportLockedError(LifecycleError):
    """An edit was attempted while the editability predicate says no."""

    kind = ErrorKind.REPORT_LOCKED

    def __init__(self, report_id: str | None, reason: str | None = None) -> None:
        self.reason = reason
        msg = f"Report {report_id} is locked for editing"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, report_id=report_id)


class VersionConflictError(LifecycleError):
    """Another writer changed the report between read and write.

    Callers must re-read and decide; retrying by overwrite could drop a
    version or an acknowledgment.
    """

    kind = ErrorKind.VERSION_CONFLICT

    def __init__(self, report_id: str | None, detail: str | None = None) -> None:
        msg = f"Concurrent update detected on report {report_id}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg, report_id=report_id)


class PermissionDeniedError(LifecycleError):
    """The actor lacks the permission a lifecycle operation requires."""

    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, actor_id: str | int | None, permission: str, report_id: str | None = None) -> None:
        self.actor_id = actor_id
        self.permission = permission
        super().__init__(
            f"Actor {actor_id} does not have permission '{permission}'",
            report_id=report_id,
        )
