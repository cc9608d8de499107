"""
Report Store — SQLAlchemy persistence for immutable EOD report values.

The lifecycle controller hands the store a ``before`` snapshot and the
``after`` value it derived from it. ``save`` then:

  1. bumps the header revision with ``UPDATE ... WHERE revision = before.revision``
     (zero rows touched means another writer got there first),
  2. inserts only the version and acknowledgment rows that are new in ``after``,
  3. appends an activity-log row,
  4. commits.

A unique-constraint violation in step 2 or a lost revision race in step 1
rolls back and raises ``VersionConflictError``. Nothing is retried: the
caller re-reads and decides.
"""

import logging
from dataclasses import replace
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from eodflow.core.exceptions import (
    ConflictError,
    EmptyReportError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from eodflow.models import db
from eodflow.models.audit import write_activity
from eodflow.models.report import (
    EODReportRecord,
    ReportAcknowledgmentRecord,
    ReportVersionRecord,
)
from eodflow.services.identity import Actor
from eodflow.services.report_ledger import (
    Acknowledgment,
    Attachment,
    EODReport,
    ReportStatus,
    ReportVersion,
    VersionAction,
    as_utc,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# Row <-> value mapping
# ═══════════════════════════════════════════════════════════════
def _version_to_domain(row: ReportVersionRecord) -> ReportVersion:
    return ReportVersion(
        version_number=row.version_number,
        timestamp=as_utc(row.timestamp),
        action=VersionAction(row.action),
        tasks_completed=row.tasks_completed or "",
        challenges_faced=row.challenges_faced or "",
        plan_for_tomorrow=row.plan_for_tomorrow or "",
        attachments=tuple(Attachment.from_dict(a) for a in (row.attachments or [])),
        is_copied=bool(row.is_copied),
    )


def _ack_to_domain(row: ReportAcknowledgmentRecord) -> Acknowledgment:
    return Acknowledgment(
        manager_id=row.manager_id,
        manager_name=row.manager_name,
        designation=row.designation,
        timestamp=as_utc(row.timestamp),
        comments=row.comments,
    )


def _to_domain(row: EODReportRecord) -> EODReport:
    if not row.versions:
        logger.error(
            "Report %s has no version rows", row.id,
            extra={"report_id": row.id, "tenant_id": row.tenant_id, "event_type": "empty_report"},
        )
        raise EmptyReportError(row.id)
    return EODReport(
        id=row.id,
        tenant_id=row.tenant_id,
        employee_id=row.employee_id,
        employee_name=row.employee_name,
        date=row.report_date,
        versions=tuple(_version_to_domain(v) for v in row.versions),
        status=ReportStatus(row.status),
        manager_comments=row.manager_comments,
        acknowledgments=tuple(_ack_to_domain(a) for a in row.acknowledgments),
        submitted_at=as_utc(row.submitted_at),
        is_late=bool(row.is_late),
        is_yesterday_submission=bool(row.is_yesterday_submission),
        legacy_acknowledged_by=row.acknowledged_by_manager_id,
        legacy_acknowledged_at=as_utc(row.acknowledged_at),
        revision=row.revision,
    )


def _version_row(report_id: str, v: ReportVersion) -> ReportVersionRecord:
    return ReportVersionRecord(
        report_id=report_id,
        version_number=v.version_number,
        action=v.action.value,
        timestamp=v.timestamp,
        tasks_completed=v.tasks_completed,
        challenges_faced=v.challenges_faced,
        plan_for_tomorrow=v.plan_for_tomorrow,
        attachments=[a.to_dict() for a in v.attachments],
        is_copied=v.is_copied,
    )


def _ack_row(report_id: str, a: Acknowledgment) -> ReportAcknowledgmentRecord:
    return ReportAcknowledgmentRecord(
        report_id=report_id,
        manager_id=a.manager_id,
        manager_name=a.manager_name,
        designation=a.designation,
        comments=a.comments,
        timestamp=a.timestamp,
    )


# ═══════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════
class ReportStore:
    """Reads and writes EOD reports through the Flask-SQLAlchemy session."""

    def get(self, report_id: str, tenant_id: int | None = None) -> EODReport:
        """Load one report; cross-tenant reads look like missing reports."""
        row = db.session.get(EODReportRecord, report_id)
        if row is None or (tenant_id is not None and row.tenant_id != tenant_id):
            raise NotFoundError("EODReport", report_id, tenant_id)
        return _to_domain(row)

    def get_for_employee_date(
        self, tenant_id: int, employee_id: str, report_date: date
    ) -> EODReport | None:
        row = db.session.execute(
            select(EODReportRecord).where(
                EODReportRecord.tenant_id == tenant_id,
                EODReportRecord.employee_id == str(employee_id),
                EODReportRecord.report_date == report_date,
            )
        ).scalar_one_or_none()
        return _to_domain(row) if row is not None else None

    def list_for_employee(self, tenant_id: int, employee_id: str, limit: int = 30) -> list[EODReport]:
        rows = db.session.execute(
            select(EODReportRecord)
            .where(
                EODReportRecord.tenant_id == tenant_id,
                EODReportRecord.employee_id == str(employee_id),
            )
            .order_by(EODReportRecord.report_date.desc())
            .limit(limit)
        ).scalars().all()
        return [_to_domain(r) for r in rows]

    def create(self, report: EODReport, *, actor: Actor | None = None) -> EODReport:
        """Insert a new report with all its versions; one per employee per day."""
        if report.tenant_id is None:
            raise ValidationError("A report must belong to a tenant")
        if not report.versions:
            raise EmptyReportError(report.id)

        row = EODReportRecord(
            id=report.id,
            tenant_id=report.tenant_id,
            employee_id=report.employee_id,
            employee_name=report.employee_name,
            report_date=report.date,
            status=report.status.value,
            manager_comments=report.manager_comments,
            submitted_at=report.submitted_at,
            is_late=report.is_late,
            is_yesterday_submission=report.is_yesterday_submission,
            revision=1,
        )
        db.session.add(row)
        for v in report.versions:
            db.session.add(_version_row(report.id, v))
        try:
            db.session.flush()
            self._log(report, actor, "report.submitted", {"version_number": 1})
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info(
                "Duplicate report for employee %s on %s", report.employee_id, report.date,
                extra={"tenant_id": report.tenant_id, "event_type": "report_duplicate"},
            )
            raise ConflictError("EODReport", "report_date", report.date.isoformat()) from None

        return replace(report, revision=1)

    def save(
        self,
        before: EODReport,
        after: EODReport,
        *,
        actor: Actor | None = None,
        action: str | None = None,
        details: dict | None = None,
    ) -> EODReport:
        """Persist the transition ``before -> after`` atomically."""
        if not after.versions:
            raise EmptyReportError(after.id)

        new_revision = before.revision + 1
        result = db.session.execute(
            update(EODReportRecord)
            .where(
                EODReportRecord.id == after.id,
                EODReportRecord.revision == before.revision,
            )
            .values(
                revision=new_revision,
                status=after.status.value,
                manager_comments=after.manager_comments,
                acknowledged_by_manager_id=after.legacy_acknowledged_by,
                acknowledged_at=after.legacy_acknowledged_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            self._conflict(after, "report was modified by another writer")

        known_versions = {v.version_number for v in before.versions}
        known_managers = {a.manager_id for a in before.acknowledgments}
        for v in after.versions:
            if v.version_number not in known_versions:
                db.session.add(_version_row(after.id, v))
        for a in after.acknowledgments:
            if a.manager_id not in known_managers:
                db.session.add(_ack_row(after.id, a))

        try:
            db.session.flush()
            if action:
                self._log(after, actor, action, details)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            self._conflict(after, "version or acknowledgment already recorded")

        # Drop cached rows so the next read sees the committed children.
        db.session.expire_all()
        return replace(after, revision=new_revision)

    # ── internals ────────────────────────────────────────────────────────

    @staticmethod
    def _conflict(report: EODReport, detail: str):
        logger.warning(
            "Version conflict on report %s: %s", report.id, detail,
            extra={
                "report_id": report.id,
                "tenant_id": report.tenant_id,
                "event_type": "version_conflict",
            },
        )
        raise VersionConflictError(report.id, detail)

    @staticmethod
    def _log(report: EODReport, actor: Actor | None, action: str, details: dict | None):
        write_activity(
            entity_id=report.id,
            action=action,
            tenant_id=report.tenant_id,
            actor_id=actor.id if actor else "system",
            actor_name=actor.name if actor else None,
            details=details,
        )
