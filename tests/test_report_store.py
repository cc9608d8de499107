"""
Tests: SQLAlchemy report store.

The store must turn lost races into VersionConflictError instead of
overwriting, and must refuse to hand out a report with no versions.
"""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from eodflow.core.exceptions import (
    ConflictError,
    EmptyReportError,
    NotFoundError,
    VersionConflictError,
)
from eodflow.models import db as _db
from eodflow.models.audit import ActivityLog
from eodflow.models.report import EODReportRecord, ReportVersionRecord
from eodflow.services import acknowledgment as ack
from eodflow.services import report_ledger as ledger
from eodflow.services.identity import Actor
from eodflow.services.report_lifecycle import ReportLifecycle
from eodflow.services.report_ledger import ReportStatus
from eodflow.services.report_store import ReportStore

NOW = datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return ReportStore()


@pytest.fixture()
def employee(make_actor):
    return make_actor("emp-1", role_name="Employee", name="Ada")


@pytest.fixture()
def manager(make_actor):
    return make_actor("mgr-a", role_name="Manager", name="Alan", designation="Manager")


@pytest.fixture()
def lifecycle(store):
    return ReportLifecycle(editable=lambda r: True, store=store, clock=lambda: NOW)


@pytest.fixture()
def report(lifecycle, employee):
    return lifecycle.submit_report(employee, None, {"tasks_completed": "v1"}, report_date=date(2026, 3, 2))


def test_create_and_reload(store, report):
    assert report.revision == 1
    loaded = store.get(report.id)
    assert loaded == report
    assert loaded.revision == 1
    assert loaded.submitted_at == NOW
    assert store.get_for_employee_date(report.tenant_id, "emp-1", date(2026, 3, 2)) == report


def test_duplicate_daily_report_conflicts(lifecycle, employee, report):
    with pytest.raises(ConflictError):
        lifecycle.submit_report(employee, None, {"tasks_completed": "again"}, report_date=date(2026, 3, 2))


def test_duplicate_create_bypassing_lookup_conflicts(store, report):
    dup = replace(report, id="other-id")
    with pytest.raises(ConflictError):
        store.create(dup)


def test_cross_tenant_get_is_not_found(store, report):
    with pytest.raises(NotFoundError):
        store.get(report.id, tenant_id=report.tenant_id + 100)


def test_edit_and_acknowledgments_persist(store, lifecycle, employee, manager, make_actor, report):
    report = lifecycle.submit_edit(employee, None, report, {"tasks_completed": "v2"})
    report = lifecycle.record_acknowledgment(manager, None, report, "ok")
    director = make_actor("dir-b", role_name="Manager", name="Barbara", designation="Director")
    report = lifecycle.record_acknowledgment(director, None, report)

    loaded = store.get(report.id)
    assert [v.version_number for v in ledger.sorted_versions(loaded)] == [2, 1]
    assert loaded.status is ReportStatus.ACKNOWLEDGED
    assert loaded.manager_comments == "ok"
    assert [m["manager_id"] for m in ack.acknowledging_managers(loaded)] == ["mgr-a", "dir-b"]
    assert loaded.legacy_acknowledged_by == "mgr-a"
    assert loaded.revision == 4

    actions = [a.action for a in ActivityLog.query.order_by(ActivityLog.id).all()]
    assert actions == [
        "report.submitted",
        "report.edited",
        "report.acknowledged",
        "report.acknowledged",
    ]


def test_stale_snapshot_raises_version_conflict(store, lifecycle, employee, report):
    stale = store.get(report.id)
    lifecycle.submit_edit(employee, None, report, {"tasks_completed": "writer 1"})

    with pytest.raises(VersionConflictError):
        lifecycle.submit_edit(employee, None, stale, {"tasks_completed": "writer 2"})

    loaded = store.get(report.id)
    assert len(loaded.versions) == 2
    assert ledger.latest_version(loaded).tasks_completed == "writer 1"


def test_duplicate_version_row_raises_version_conflict(store, report):
    current = store.get(report.id)
    edited = ledger.append_version(current, {"tasks_completed": "v2"}, now=NOW)
    current = store.save(current, edited)

    # Forge a snapshot with the right revision but missing version 2.
    forged = replace(current, versions=current.versions[:1])
    again = ledger.append_version(forged, {"tasks_completed": "v2 again"}, now=NOW)
    with pytest.raises(VersionConflictError):
        store.save(forged, again)

    assert store.get(report.id).revision == current.revision


def test_concurrent_acknowledgment_by_same_manager_conflicts(store, manager, report):
    snapshot = store.get(report.id)
    first = ack.record_acknowledgment(snapshot, manager, now=NOW)
    saved = store.save(snapshot, first)

    forged = replace(saved, acknowledgments=(), legacy_acknowledged_by=None)
    second = ack.record_acknowledgment(forged, manager, now=NOW)
    with pytest.raises(VersionConflictError):
        store.save(forged, second)


def test_report_without_version_rows_is_empty_report(store, report):
    ReportVersionRecord.query.filter_by(report_id=report.id).delete()
    _db.session.commit()
    _db.session.expire_all()
    with pytest.raises(EmptyReportError):
        store.get(report.id)


def test_legacy_acknowledgment_row_is_readable(store, default_tenant):
    row = EODReportRecord(
        id="legacy-1",
        tenant_id=default_tenant.id,
        employee_id="emp-9",
        report_date=date(2026, 1, 5),
        status="acknowledged",
        acknowledged_by_manager_id="old-mgr",
        acknowledged_at=NOW,
        revision=1,
    )
    _db.session.add(row)
    _db.session.add(ReportVersionRecord(
        report_id="legacy-1", version_number=1, action="submitted", timestamp=NOW,
        tasks_completed="old",
    ))
    _db.session.commit()

    loaded = store.get("legacy-1")
    assert ack.has_acknowledged(loaded, "old-mgr")
    assert ack.acknowledging_managers(loaded)[0]["manager_name"] == "Manager"


def test_list_for_employee_newest_first(store, lifecycle, employee):
    lifecycle.submit_report(employee, None, {"tasks_completed": "a"}, report_date=date(2026, 2, 27))
    lifecycle.submit_report(employee, None, {"tasks_completed": "b"}, report_date=date(2026, 3, 2))
    reports = store.list_for_employee(employee.tenant_id, employee.id)
    assert [r.date for r in reports] == [date(2026, 3, 2), date(2026, 2, 27)]


def test_platform_admin_without_tenant_cannot_submit(lifecycle):
    from eodflow.core.exceptions import ValidationError
    admin = Actor(id="root", is_platform_admin=True)
    with pytest.raises(ValidationError):
        lifecycle.submit_report(admin, None, {"tasks_completed": "x"})


def test_batch_acknowledgment_reports_stale_snapshot_as_conflicted(store, lifecycle, make_actor, manager):
    first = lifecycle.submit_report(
        make_actor("emp-a", role_name="Employee"), None, {"tasks_completed": "a"}
    )
    second = lifecycle.submit_report(
        make_actor("emp-b", role_name="Employee"), None, {"tasks_completed": "b"}
    )
    # Another manager writes to the second report after this batch read it
    lifecycle.update_comment(make_actor("mgr-z", role_name="Manager"), None, second, "seen")

    result = lifecycle.acknowledge_many(manager, None, [first, second])

    assert [r.id for r in result["acknowledged"]] == [first.id]
    assert result["skipped"] == []
    assert [r.id for r in result["conflicted"]] == [second.id]
    assert store.get(first.id).status is ReportStatus.ACKNOWLEDGED
    reloaded = store.get(second.id)
    assert reloaded.status is ReportStatus.PENDING
    assert reloaded.acknowledgments == ()
    assert reloaded.manager_comments == "seen"
