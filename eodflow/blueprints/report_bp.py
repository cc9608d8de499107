"""
EOD Report Blueprint.

Endpoints (all under /api/v1, Bearer token required):
    POST   /reports                          submit today's report (version 1)
    GET    /reports/<id>                     report with versions + acknowledgments
    POST   /reports/<id>/versions            employee edit (new version)
    POST   /reports/<id>/acknowledge         manager sign-off     Body: {"comment"}
    PUT    /reports/<id>/comment             overall manager comment
    GET    /reports/<id>/acknowledgments     who signed off
    GET    /reports/<id>/editability         {"editable", "reason"}
    POST   /reports/acknowledge-batch        Body: {"report_ids": [...], "comment"}
                                             -> {"acknowledged", "skipped", "conflicted"}

Layer contract:
    - Blueprint: parse + validate input, call the lifecycle, return JSON.
    - NO db.session calls here; the store owns persistence.
    - Permission and lifecycle failures are raised by the service and
      mapped by ``register_error_handlers``.
"""

import logging
from datetime import date

from flask import Blueprint, current_app, g, jsonify, request

from eodflow.middleware.jwt_auth import require_actor
from eodflow.services import acknowledgment as ack
from eodflow.services.edit_policy import EditWindowPolicy
from eodflow.services.permission_service import role_for_actor
from eodflow.services.report_lifecycle import LATE_SUBMISSION_HOUR, ReportLifecycle
from eodflow.services.report_store import ReportStore
from eodflow.utils.errors import E, api_error

logger = logging.getLogger(__name__)

report_bp = Blueprint("report_bp", __name__, url_prefix="/api/v1")

_VERSION_FIELDS = ("tasks_completed", "challenges_faced", "plan_for_tomorrow", "attachments", "is_copied")


# ── Helpers ────────────────────────────────────────────────────────────────────


def _lifecycle() -> ReportLifecycle:
    cfg = current_app.config
    return ReportLifecycle(
        editable=EditWindowPolicy.from_config(cfg),
        store=ReportStore(),
        late_hour=cfg.get("EOD_LATE_SUBMISSION_HOUR", LATE_SUBMISSION_HOUR),
    )


def _context():
    actor = g.actor
    return actor, role_for_actor(actor)


def _serialize(report) -> dict:
    d = report.to_dict()
    d["acknowledgments"] = ack.acknowledging_managers(report)
    d["acknowledgment_count"] = ack.acknowledgment_count(report)
    return d


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: dict, field: str):
    """Return (stripped text or None, error_response) for an optional string field."""
    value = data.get(field)
    if value is None:
        return None, None
    if not isinstance(value, str):
        return None, api_error(E.VALIDATION_INVALID, f"Field '{field}' must be a string.")
    return value.strip() or None, None


def _attachment_error(attachments):
    if not isinstance(attachments, list) or not all(isinstance(a, dict) for a in attachments):
        return api_error(E.VALIDATION_INVALID, "Field 'attachments' must be a list of objects.")
    for a in attachments:
        size = a.get("size")
        if size is not None and (isinstance(size, bool) or not isinstance(size, int) or size < 0):
            return api_error(E.VALIDATION_INVALID, "Attachment 'size' must be a non-negative integer.")
    return None


def _version_data(data: dict):
    """Return (version_data, error_response)."""
    tasks, err = _text(data, "tasks_completed")
    if err:
        return None, err
    if not tasks:
        return None, api_error(E.VALIDATION_REQUIRED, "Field 'tasks_completed' is required.")
    for field in ("challenges_faced", "plan_for_tomorrow"):
        _, err = _text(data, field)
        if err:
            return None, err
    err = _attachment_error(data.get("attachments") or [])
    if err:
        return None, err

    version_data = {k: data[k] for k in _VERSION_FIELDS if k in data}
    version_data["tasks_completed"] = tasks
    if "version_number" in data:
        version_data["version_number"] = data["version_number"]
    return version_data, None


# ── Routes ─────────────────────────────────────────────────────────────────────


@report_bp.route("/reports", methods=["POST"])
@require_actor
def submit_report():
    data = _body()
    version_data, err = _version_data(data)
    if err:
        return err

    report_date = None
    if data.get("report_date"):
        try:
            report_date = date.fromisoformat(str(data["report_date"]))
        except ValueError:
            return api_error(E.VALIDATION_INVALID, "Field 'report_date' must be YYYY-MM-DD.")

    actor, role = _context()
    report = _lifecycle().submit_report(actor, role, version_data, report_date=report_date)
    return jsonify(_serialize(report)), 201


@report_bp.route("/reports/<report_id>", methods=["GET"])
@require_actor
def get_report(report_id):
    actor, role = _context()
    report = _lifecycle().get_report(actor, role, report_id)
    return jsonify(_serialize(report)), 200


@report_bp.route("/reports/<report_id>/versions", methods=["POST"])
@require_actor
def submit_edit(report_id):
    data = _body()
    version_data, err = _version_data(data)
    if err:
        return err

    actor, role = _context()
    lifecycle = _lifecycle()
    report = lifecycle.get_report(actor, role, report_id)
    report = lifecycle.submit_edit(actor, role, report, version_data)
    return jsonify(_serialize(report)), 201


@report_bp.route("/reports/<report_id>/acknowledge", methods=["POST"])
@require_actor
def acknowledge_report(report_id):
    data = _body()
    comment, err = _text(data, "comment")
    if err:
        return err

    actor, role = _context()
    lifecycle = _lifecycle()
    report = lifecycle.get_report(actor, role, report_id)
    report = lifecycle.record_acknowledgment(actor, role, report, comment)
    return jsonify(_serialize(report)), 200


@report_bp.route("/reports/<report_id>/comment", methods=["PUT"])
@require_actor
def update_comment(report_id):
    data = _body()
    if "comment" not in data:
        return api_error(E.VALIDATION_REQUIRED, "Field 'comment' is required.")
    comment, err = _text(data, "comment")
    if err:
        return err

    actor, role = _context()
    lifecycle = _lifecycle()
    report = lifecycle.get_report(actor, role, report_id)
    report = lifecycle.update_comment(actor, role, report, comment)
    return jsonify(_serialize(report)), 200


@report_bp.route("/reports/<report_id>/acknowledgments", methods=["GET"])
@require_actor
def list_acknowledgments(report_id):
    actor, role = _context()
    report = _lifecycle().get_report(actor, role, report_id)
    return jsonify({
        "report_id": report.id,
        "status": report.status.value,
        "acknowledgments": ack.acknowledging_managers(report),
        "count": ack.acknowledgment_count(report),
        "acknowledged_by_me": ack.has_acknowledged(report, actor.id),
    }), 200


@report_bp.route("/reports/<report_id>/editability", methods=["GET"])
@require_actor
def editability(report_id):
    actor, role = _context()
    lifecycle = _lifecycle()
    report = lifecycle.get_report(actor, role, report_id)
    return jsonify({"report_id": report.id, **lifecycle.can_edit(report)}), 200


@report_bp.route("/reports/acknowledge-batch", methods=["POST"])
@require_actor
def acknowledge_batch():
    data = _body()
    report_ids = data.get("report_ids")
    if not isinstance(report_ids, list) or not report_ids:
        return api_error(E.VALIDATION_REQUIRED, "Field 'report_ids' must be a non-empty list.")
    comment, err = _text(data, "comment")
    if err:
        return err

    actor, role = _context()
    lifecycle = _lifecycle()
    reports = [lifecycle.get_report(actor, role, str(rid)) for rid in report_ids]
    result = lifecycle.acknowledge_many(actor, role, reports, comment)
    return jsonify({
        "acknowledged": [r.id for r in result["acknowledged"]],
        "skipped": [r.id for r in result["skipped"]],
        "conflicted": [r.id for r in result["conflicted"]],
    }), 200
