"""
Activity log — append-only trail of report lifecycle events.

Models:
    - ActivityLog: one row per submit / edit / acknowledge / comment.
"""

import json
from datetime import UTC, datetime

from eodflow.models import db

ACTIVITY_ACTIONS = {
    "report.submitted",
    "report.edited",
    "report.acknowledged",
    "report.commented",
}


class ActivityLog(db.Model):
    """Immutable; rows are only ever inserted."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("idx_activity_entity", "entity_type", "entity_id"),
        db.Index("idx_activity_actor", "actor_id"),
        db.Index("idx_activity_ts", "timestamp"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(
        db.Integer,
        db.ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    entity_type = db.Column(db.String(30), nullable=False, default="eod_report")
    entity_id = db.Column(db.String(36), nullable=False)
    action = db.Column(db.String(60), nullable=False)
    actor_id = db.Column(db.String(64), nullable=False, default="system")
    actor_name = db.Column(db.String(200))
    details_json = db.Column(db.Text, default="{}")
    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    @property
    def details(self) -> dict:
        try:
            return json.loads(self.details_json or "{}")
        except (json.JSONDecodeError, TypeError):
            return {}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<ActivityLog {self.id}: {self.action} on {self.entity_type}/{self.entity_id}>"


def write_activity(
    *,
    entity_id: str,
    action: str,
    tenant_id: int | None = None,
    actor_id: str = "system",
    actor_name: str | None = None,
    details: dict | None = None,
    entity_type: str = "eod_report",
) -> ActivityLog:
    """
    Append a single activity row. Uses ``flush`` so callers keep
    transaction control.
    """
    log = ActivityLog(
        tenant_id=tenant_id,
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        actor_id=str(actor_id),
        actor_name=actor_name,
        details_json=json.dumps(details or {}, default=str),
    )
    db.session.add(log)
    db.session.flush()
    return log
