"""
Acknowledgment Tracker — multi-manager sign-off on EOD reports.

Each manager may acknowledge a report at most once; a line manager and a
director acknowledge independently and neither overwrites the other.
``manager_comments`` is the latest overall comment, not a log.

Reports written before multi-manager acknowledgment only carry
``legacy_acknowledged_by`` / ``legacy_acknowledged_at``. The read queries
fall back to those fields when ``acknowledgments`` is empty, and the first
new acknowledgment is mirrored into them so older readers keep working.
"""

import logging
from dataclasses import replace
from datetime import datetime

from eodflow.services.identity import Actor
from eodflow.services.report_ledger import (
    Acknowledgment,
    EODReport,
    ReportStatus,
    utcnow,
)

logger = logging.getLogger(__name__)

LEGACY_MANAGER_NAME = "Manager"


def _legacy_entry(report: EODReport) -> Acknowledgment | None:
    if report.acknowledgments or not report.legacy_acknowledged_by:
        return None
    return Acknowledgment(
        manager_id=str(report.legacy_acknowledged_by),
        manager_name=LEGACY_MANAGER_NAME,
        designation=None,
        timestamp=report.legacy_acknowledged_at,
    )


def _entries(report: EODReport) -> tuple[Acknowledgment, ...]:
    if report.acknowledgments:
        return report.acknowledgments
    legacy = _legacy_entry(report)
    return (legacy,) if legacy else ()


# ── Queries ──────────────────────────────────────────────────────────────────


def has_acknowledged(report: EODReport, manager_id) -> bool:
    manager_id = str(manager_id)
    return any(a.manager_id == manager_id for a in _entries(report))


def acknowledging_managers(report: EODReport) -> list[dict]:
    """Managers who signed off, in acknowledgment order."""
    return [a.to_dict() for a in _entries(report)]


def acknowledgment_count(report: EODReport) -> int:
    return len(_entries(report))


# ── Transitions ──────────────────────────────────────────────────────────────


def record_acknowledgment(
    report: EODReport,
    manager: Actor,
    comment: str | None = None,
    *,
    now: datetime | None = None,
) -> EODReport:
    """Append *manager*'s acknowledgment and mark the report acknowledged.

    A repeat from the same manager returns *report* itself, unchanged, even
    when a different comment is passed. Comment edits go through
    ``apply_comment``.
    """
    if has_acknowledged(report, manager.id):
        logger.debug(
            "Manager %s already acknowledged report %s", manager.id, report.id,
            extra={"report_id": report.id, "actor_id": manager.id},
        )
        return report

    now = now or utcnow()
    entry = Acknowledgment(
        manager_id=str(manager.id),
        manager_name=manager.name or LEGACY_MANAGER_NAME,
        designation=manager.designation,
        timestamp=now,
        comments=comment or None,
    )

    existing = _entries(report)
    changes = {
        "acknowledgments": existing + (entry,),
        "status": ReportStatus.ACKNOWLEDGED,
    }
    if not existing:
        changes["legacy_acknowledged_by"] = entry.manager_id
        changes["legacy_acknowledged_at"] = now
    if comment:
        changes["manager_comments"] = comment
    return replace(report, **changes)


def apply_comment(report: EODReport, comment: str | None) -> EODReport:
    """Overwrite the overall manager comment; status is left alone."""
    return replace(report, manager_comments=comment or None)
