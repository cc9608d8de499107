"""
Report Version Ledger — immutable EOD report values and their version history.

A report is a frozen value; every operation here returns a new report built
with ``dataclasses.replace``. Versions are append-only: an edit adds a
version with number ``max(existing) + 1`` and never rewrites an older one.

"Latest" always means the highest ``version_number``, never the last
element of ``versions``. Stored records can come back in any order, so every
read re-sorts.

Usage:
    from eodflow.services import report_ledger as ledger

    report = ledger.new_report(
        tenant_id=1, employee_id="42", employee_name="Ada",
        report_date=date(2026, 3, 2),
        version_data={"tasks_completed": "Closed INC-12"},
    )
    report = ledger.append_version(report, {"tasks_completed": "Closed INC-12, INC-13"})
    ledger.latest_version(report).version_number   # 2
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Mapping

from eodflow.core.exceptions import (
    EmptyReportError,
    InvalidVersionError,
    NotFoundError,
    ValidationError,
)


class ReportStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"


class VersionAction(str, Enum):
    SUBMITTED = "submitted"
    EDITED = "edited"


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# ═══════════════════════════════════════════════════════════════
# Values
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Attachment:
    name: str
    type: str | None = None
    size: int = 0
    url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Attachment":
        raw_size = data.get("size") or 0
        try:
            size = int(raw_size)
        except (TypeError, ValueError):
            raise ValidationError(
                "Attachment size must be a whole number of bytes",
                details={"size": str(raw_size)},
            ) from None
        return cls(
            name=str(data.get("name") or ""),
            type=data.get("type"),
            size=size,
            url=data.get("url"),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type, "size": self.size, "url": self.url}


@dataclass(frozen=True)
class ReportVersion:
    version_number: int
    timestamp: datetime
    action: VersionAction
    tasks_completed: str = ""
    challenges_faced: str = ""
    plan_for_tomorrow: str = ""
    attachments: tuple[Attachment, ...] = ()
    is_copied: bool = False

    def to_dict(self) -> dict:
        return {
            "version_number": self.version_number,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "action": self.action.value,
            "tasks_completed": self.tasks_completed,
            "challenges_faced": self.challenges_faced,
            "plan_for_tomorrow": self.plan_for_tomorrow,
            "attachments": [a.to_dict() for a in self.attachments],
            "is_copied": self.is_copied,
        }


@dataclass(frozen=True)
class Acknowledgment:
    """One supervisor's sign-off, with a snapshot of their name at the time."""

    manager_id: str
    manager_name: str
    designation: str | None
    timestamp: datetime | None
    comments: str | None = None

    def to_dict(self) -> dict:
        return {
            "manager_id": self.manager_id,
            "manager_name": self.manager_name,
            "designation": self.designation,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "comments": self.comments,
        }


@dataclass(frozen=True)
class EODReport:
    id: str
    tenant_id: int | None
    employee_id: str
    employee_name: str | None
    date: date
    versions: tuple[ReportVersion, ...]
    status: ReportStatus = ReportStatus.PENDING
    manager_comments: str | None = None
    acknowledgments: tuple[Acknowledgment, ...] = ()
    submitted_at: datetime | None = None
    is_late: bool = False
    is_yesterday_submission: bool = False
    # Single-manager fields written before multi-manager acknowledgment
    legacy_acknowledged_by: str | None = None
    legacy_acknowledged_at: datetime | None = None
    # Store row revision; 0 until first persisted
    revision: int = field(default=0, compare=False)

    @property
    def is_acknowledged(self) -> bool:
        return self.status is ReportStatus.ACKNOWLEDGED

    def to_dict(self) -> dict:
        latest = latest_version(self)
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "manager_comments": self.manager_comments,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "is_late": self.is_late,
            "is_yesterday_submission": self.is_yesterday_submission,
            "version_count": len(self.versions),
            "latest_version": latest.to_dict(),
            "versions": [v.to_dict() for v in sorted_versions(self)],
            "revision": self.revision,
        }


# ═══════════════════════════════════════════════════════════════
# Ledger operations
# ═══════════════════════════════════════════════════════════════
def _attachments(raw) -> tuple[Attachment, ...]:
    items = []
    for item in raw or ():
        items.append(item if isinstance(item, Attachment) else Attachment.from_dict(item))
    return tuple(items)


def _build_version(
    version_data: Mapping[str, Any],
    version_number: int,
    action: VersionAction,
    now: datetime,
) -> ReportVersion:
    return ReportVersion(
        version_number=version_number,
        timestamp=now,
        action=action,
        tasks_completed=version_data.get("tasks_completed") or "",
        challenges_faced=version_data.get("challenges_faced") or "",
        plan_for_tomorrow=version_data.get("plan_for_tomorrow") or "",
        attachments=_attachments(version_data.get("attachments")),
        is_copied=bool(version_data.get("is_copied", False)),
    )


def latest_version(report: EODReport) -> ReportVersion:
    """Version with the highest number; raises EmptyReportError if none."""
    if not report.versions:
        raise EmptyReportError(report.id)
    return max(report.versions, key=lambda v: v.version_number)


def sorted_versions(report: EODReport) -> list[ReportVersion]:
    """Newest first."""
    return sorted(report.versions, key=lambda v: v.version_number, reverse=True)


def get_version(report: EODReport, version_number: int) -> ReportVersion:
    for v in report.versions:
        if v.version_number == version_number:
            return v
    raise NotFoundError("ReportVersion", version_number)


def append_version(
    report: EODReport,
    version_data: Mapping[str, Any],
    *,
    version_number: int | None = None,
    now: datetime | None = None,
) -> EODReport:
    """Return *report* with one more version appended.

    The number is assigned as ``max(existing) + 1``. Callers should not pass
    one; if they do (as the keyword or as ``version_data["version_number"]``)
    it must be exactly that next number, so a new edit is always the latest.
    """
    current = latest_version(report).version_number
    requested = version_number
    if requested is None:
        requested = version_data.get("version_number")

    number = current + 1
    if requested is not None:
        if isinstance(requested, bool) or not isinstance(requested, int):
            raise InvalidVersionError(report.id, requested, "version number must be an integer")
        if requested < 1:
            raise InvalidVersionError(report.id, requested, "version numbers start at 1")
        if any(v.version_number == requested for v in report.versions):
            raise InvalidVersionError(report.id, requested, "version number already exists")
        if requested != number:
            raise InvalidVersionError(report.id, requested, f"next version number is {number}")

    version = _build_version(version_data, number, VersionAction.EDITED, now or utcnow())
    return replace(report, versions=report.versions + (version,))


def new_report(
    *,
    tenant_id: int | None,
    employee_id: str,
    employee_name: str | None,
    report_date: date,
    version_data: Mapping[str, Any],
    now: datetime | None = None,
    report_id: str | None = None,
    is_late: bool = False,
    is_yesterday_submission: bool = False,
) -> EODReport:
    """A fresh PENDING report holding version 1."""
    now = now or utcnow()
    first = _build_version(version_data, 1, VersionAction.SUBMITTED, now)
    return EODReport(
        id=report_id or str(uuid.uuid4()),
        tenant_id=tenant_id,
        employee_id=str(employee_id),
        employee_name=employee_name,
        date=report_date,
        versions=(first,),
        submitted_at=now,
        is_late=is_late,
        is_yesterday_submission=is_yesterday_submission,
    )
