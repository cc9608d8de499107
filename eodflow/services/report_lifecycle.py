"""
EOD Report Lifecycle — the only component that changes report state.

States and transitions:

    PENDING      --submit_edit-------------> PENDING        (new version)
    PENDING      --record_acknowledgment---> ACKNOWLEDGED   (first sign-off)
    ACKNOWLEDGED --record_acknowledgment---> ACKNOWLEDGED   (another manager)
    ACKNOWLEDGED --update_comment----------> ACKNOWLEDGED

Nothing moves a report back to PENDING.

Every operation takes the acting ``Actor`` and its ``RoleGrant`` (or None)
explicitly, and re-checks the permission resolver even though the caller is
expected to have done so already. When a store is attached each transition
is persisted together with an activity-log row; without one the controller
just returns the new value.

Usage:
    from eodflow.services.report_lifecycle import ReportLifecycle

    lifecycle = ReportLifecycle(editable=EditWindowPolicy(), store=ReportStore())
    report = lifecycle.submit_report(actor, role, {"tasks_completed": "..."})
    report = lifecycle.record_acknowledgment(manager, manager_role, report, "Thanks")
"""

import logging
from datetime import date, datetime
from typing import Callable, Iterable

from eodflow.core.exceptions import (
    ConflictError,
    PermissionDeniedError,
    ReportLockedError,
    ValidationError,
    VersionConflictError,
)
from eodflow.services import acknowledgment as ack
from eodflow.services import report_ledger as ledger
from eodflow.services.edit_policy import EditWindowPolicy
from eodflow.services.identity import Actor, RoleGrant
from eodflow.services.permission_catalog import Permission
from eodflow.services.permission_service import check_permission, has_any_permission
from eodflow.services.report_ledger import EODReport

logger = logging.getLogger(__name__)

LATE_SUBMISSION_HOUR = 19
BATCH_COMMENT = "Acknowledged in batch"

ACKNOWLEDGE_PERMISSIONS = (
    Permission.CAN_ACKNOWLEDGE_REPORTS,
    Permission.CAN_ACKNOWLEDGE_ANY_EOD,
)

VIEW_OTHERS_PERMISSIONS = (
    Permission.CAN_VIEW_TEAM_REPORTS,
    Permission.CAN_VIEW_ALL_REPORTS,
) + ACKNOWLEDGE_PERMISSIONS


class ReportLifecycle:
    def __init__(
        self,
        editable: Callable[[EODReport], bool] | None = None,
        store=None,
        *,
        late_hour: int = LATE_SUBMISSION_HOUR,
        clock: Callable[[], datetime] | None = None,
    ):
        self.clock = clock or ledger.utcnow
        self.editable = editable if editable is not None else EditWindowPolicy(clock=self.clock)
        self.store = store
        self.late_hour = late_hour

    # ── guards ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_tenant(actor: Actor, report: EODReport, permission: Permission) -> None:
        if actor.is_platform_admin:
            if report.tenant_id is None:
                raise PermissionDeniedError(actor.id, permission.value, report_id=report.id)
            return
        if actor.tenant_id is None or actor.tenant_id != report.tenant_id:
            logger.warning(
                "Actor %s attempted cross-tenant access to report %s", actor.id, report.id,
                extra={
                    "tenant_id": actor.tenant_id,
                    "report_id": report.id,
                    "event_type": "cross_tenant_denied",
                },
            )
            raise PermissionDeniedError(actor.id, permission.value, report_id=report.id)

    @staticmethod
    def _check_owner(actor: Actor, report: EODReport) -> None:
        if str(actor.id) != report.employee_id:
            raise PermissionDeniedError(
                actor.id, Permission.CAN_SUBMIT_OWN_EOD.value, report_id=report.id
            )

    @staticmethod
    def _check_can_acknowledge(actor: Actor, role: RoleGrant | None, report_id=None) -> None:
        if not has_any_permission(actor, role, ACKNOWLEDGE_PERMISSIONS):
            raise PermissionDeniedError(
                actor.id, Permission.CAN_ACKNOWLEDGE_REPORTS.value, report_id=report_id
            )

    def _editability(self, report: EODReport) -> tuple[bool, str | None]:
        explain = getattr(self.editable, "explain", None)
        if callable(explain):
            return explain(report)
        return bool(self.editable(report)), None

    def can_edit(self, report: EODReport) -> dict:
        allowed, reason = self._editability(report)
        return {"editable": allowed, "reason": reason}

    def _persist(self, before, after, actor, action, details=None) -> EODReport:
        if self.store is None:
            return after
        return self.store.save(before, after, actor=actor, action=action, details=details)

    # ── reads ────────────────────────────────────────────────────────────

    def check_can_view(self, actor: Actor, role: RoleGrant | None, report: EODReport) -> None:
        """Owners need CAN_VIEW_OWN_REPORTS; everyone else a team/all/acknowledge token."""
        self._check_tenant(actor, report, Permission.CAN_VIEW_OWN_REPORTS)
        if str(actor.id) == report.employee_id and has_any_permission(
            actor, role, (Permission.CAN_VIEW_OWN_REPORTS,)
        ):
            return
        if has_any_permission(actor, role, VIEW_OTHERS_PERMISSIONS):
            return
        raise PermissionDeniedError(
            actor.id, Permission.CAN_VIEW_TEAM_REPORTS.value, report_id=report.id
        )

    def get_report(self, actor: Actor, role: RoleGrant | None, report_id: str) -> EODReport:
        """Load a report through the store and check the actor may see it.

        Reports of other tenants are reported as missing, not forbidden.
        """
        if self.store is None:
            raise RuntimeError("ReportLifecycle.get_report requires a store")
        tenant_id = None if actor.is_platform_admin else actor.tenant_id
        if tenant_id is None and not actor.is_platform_admin:
            raise PermissionDeniedError(actor.id, Permission.CAN_VIEW_OWN_REPORTS.value, report_id)
        report = self.store.get(report_id, tenant_id=tenant_id)
        self.check_can_view(actor, role, report)
        return report

    # ── employee operations ──────────────────────────────────────────────

    def submit_report(
        self,
        actor: Actor,
        role: RoleGrant | None,
        version_data: dict,
        *,
        report_date: date | None = None,
        now: datetime | None = None,
    ) -> EODReport:
        """Create today's (or an earlier day's) report as version 1."""
        check_permission(actor, role, Permission.CAN_SUBMIT_OWN_EOD)
        if actor.tenant_id is None:
            raise ValidationError("Submitting a report requires a tenant context")

        now = now or self.clock()
        report_date = report_date or now.date()
        if report_date > now.date():
            raise ValidationError(
                "Cannot submit a report for a future date",
                details={"report_date": report_date.isoformat()},
            )

        if self.store is not None:
            existing = self.store.get_for_employee_date(actor.tenant_id, actor.id, report_date)
            if existing is not None:
                raise ConflictError("EODReport", "report_date", report_date.isoformat())

        report = ledger.new_report(
            tenant_id=actor.tenant_id,
            employee_id=actor.id,
            employee_name=actor.name,
            report_date=report_date,
            version_data=version_data,
            now=now,
            is_late=now.hour >= self.late_hour,
            is_yesterday_submission=report_date < now.date(),
        )
        if self.store is not None:
            report = self.store.create(report, actor=actor)

        logger.info(
            "EOD report submitted for %s", report.date,
            extra={
                "tenant_id": report.tenant_id,
                "report_id": report.id,
                "actor_id": actor.id,
                "event_type": "report_submitted",
            },
        )
        return report

    def submit_edit(
        self,
        actor: Actor,
        role: RoleGrant | None,
        report: EODReport,
        version_data: dict,
        *,
        now: datetime | None = None,
    ) -> EODReport:
        """Append a new version while the report is still editable."""
        check_permission(actor, role, Permission.CAN_SUBMIT_OWN_EOD, report_id=report.id)
        self._check_tenant(actor, report, Permission.CAN_SUBMIT_OWN_EOD)
        self._check_owner(actor, report)

        allowed, reason = self._editability(report)
        if not allowed:
            logger.info(
                "Edit rejected on locked report %s", report.id,
                extra={"report_id": report.id, "actor_id": actor.id, "event_type": "report_locked"},
            )
            raise ReportLockedError(report.id, reason)

        updated = ledger.append_version(report, version_data, now=now or self.clock())
        number = ledger.latest_version(updated).version_number
        updated = self._persist(
            report, updated, actor, "report.edited", {"version_number": number}
        )

        logger.info(
            "EOD report edited (v%s)", number,
            extra={
                "tenant_id": updated.tenant_id,
                "report_id": updated.id,
                "actor_id": actor.id,
                "event_type": "report_edited",
            },
        )
        return updated

    # ── manager operations ───────────────────────────────────────────────

    def record_acknowledgment(
        self,
        actor: Actor,
        role: RoleGrant | None,
        report: EODReport,
        comment: str | None = None,
        *,
        now: datetime | None = None,
    ) -> EODReport:
        """Sign off on *report*; a repeat by the same manager changes nothing."""
        self._check_can_acknowledge(actor, role, report.id)
        self._check_tenant(actor, report, Permission.CAN_ACKNOWLEDGE_REPORTS)

        updated = ack.record_acknowledgment(report, actor, comment, now=now or self.clock())
        if updated is report:
            return report

        updated = self._persist(
            report, updated, actor, "report.acknowledged",
            {"comment": comment, "acknowledgments": len(updated.acknowledgments)},
        )
        logger.info(
            "EOD report acknowledged by %s", actor.name or actor.id,
            extra={
                "tenant_id": updated.tenant_id,
                "report_id": updated.id,
                "actor_id": actor.id,
                "event_type": "report_acknowledged",
            },
        )
        return updated

    def update_comment(
        self,
        actor: Actor,
        role: RoleGrant | None,
        report: EODReport,
        comment: str | None,
    ) -> EODReport:
        """Replace the overall manager comment without a new acknowledgment."""
        self._check_can_acknowledge(actor, role, report.id)
        self._check_tenant(actor, report, Permission.CAN_ACKNOWLEDGE_REPORTS)

        updated = ack.apply_comment(report, comment)
        if updated == report:
            return report
        return self._persist(
            report, updated, actor, "report.commented", {"comment": updated.manager_comments}
        )

    def acknowledge_many(
        self,
        actor: Actor,
        role: RoleGrant | None,
        reports: Iterable[EODReport],
        comment: str | None = None,
        *,
        now: datetime | None = None,
    ) -> dict:
        """Batch acknowledgment.

        Reports this manager already acknowledged are skipped. Without an
        explicit comment, ``BATCH_COMMENT`` is used only on reports that
        have no overall comment yet.

        Each report is saved on its own. A report whose snapshot went stale
        is left untouched and listed under ``conflicted``; the others still
        go through.

        Returns ``{"acknowledged": [...], "skipped": [...], "conflicted": [...]}``
        of EODReport values.
        """
        self._check_can_acknowledge(actor, role)
        now = now or self.clock()
        reports = list(reports)
        for report in reports:
            self._check_tenant(actor, report, Permission.CAN_ACKNOWLEDGE_REPORTS)

        acknowledged, skipped, conflicted = [], [], []
        for report in reports:
            if ack.has_acknowledged(report, actor.id):
                skipped.append(report)
                continue
            text = comment or (None if report.manager_comments else BATCH_COMMENT)
            try:
                acknowledged.append(
                    self.record_acknowledgment(actor, role, report, text, now=now)
                )
            except VersionConflictError:
                conflicted.append(report)

        logger.info(
            "Batch acknowledgment: %d acknowledged, %d skipped, %d conflicted",
            len(acknowledged), len(skipped), len(conflicted),
            extra={"tenant_id": actor.tenant_id, "actor_id": actor.id, "event_type": "batch_acknowledged"},
        )
        return {"acknowledged": acknowledged, "skipped": skipped, "conflicted": conflicted}
