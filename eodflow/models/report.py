"""
EOD report persistence — report header, version rows, acknowledgment rows.

The header row is the only mutable row (status, overall comment, revision).
Version and acknowledgment rows are append-only; the unique constraints on
``(report_id, version_number)`` and ``(report_id, manager_id)`` are what make
two concurrent writers collide instead of silently both succeeding.
"""

from datetime import UTC, datetime

from eodflow.models import db


class EODReportRecord(db.Model):
    __tablename__ = "eod_reports"

    id = db.Column(db.String(36), primary_key=True)
    tenant_id = db.Column(
        db.Integer,
        db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id = db.Column(db.String(64), nullable=False)
    employee_name = db.Column(db.String(200))
    report_date = db.Column(db.Date, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending | acknowledged
    manager_comments = db.Column(db.Text)
    submitted_at = db.Column(db.DateTime(timezone=True))
    is_late = db.Column(db.Boolean, default=False, nullable=False)
    is_yesterday_submission = db.Column(db.Boolean, default=False, nullable=False)

    # Pre multi-manager acknowledgment
    acknowledged_by_manager_id = db.Column(db.String(64))
    acknowledged_at = db.Column(db.DateTime(timezone=True))

    revision = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        db.UniqueConstraint(
            "tenant_id", "employee_id", "report_date", name="uq_eod_report_employee_date"
        ),
        db.Index("ix_eod_reports_tenant_date", "tenant_id", "report_date"),
    )

    versions = db.relationship(
        "ReportVersionRecord",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportVersionRecord.version_number",
    )
    acknowledgments = db.relationship(
        "ReportAcknowledgmentRecord",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportAcknowledgmentRecord.id",
    )

    def __repr__(self):
        return f"<EODReportRecord {self.id} {self.employee_id}@{self.report_date}>"


class ReportVersionRecord(db.Model):
    __tablename__ = "eod_report_versions"

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(
        db.String(36), db.ForeignKey("eod_reports.id", ondelete="CASCADE"), nullable=False
    )
    version_number = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(20), nullable=False)  # submitted | edited
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)
    tasks_completed = db.Column(db.Text, default="")
    challenges_faced = db.Column(db.Text, default="")
    plan_for_tomorrow = db.Column(db.Text, default="")
    attachments = db.Column(db.JSON, default=list)
    is_copied = db.Column(db.Boolean, default=False, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("report_id", "version_number", name="uq_eod_version_number"),
    )

    report = db.relationship("EODReportRecord", back_populates="versions")


class ReportAcknowledgmentRecord(db.Model):
    __tablename__ = "eod_report_acknowledgments"

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(
        db.String(36), db.ForeignKey("eod_reports.id", ondelete="CASCADE"), nullable=False
    )
    manager_id = db.Column(db.String(64), nullable=False)
    manager_name = db.Column(db.String(200), nullable=False)  # snapshot at sign-off time
    designation = db.Column(db.String(100))
    comments = db.Column(db.Text)
    timestamp = db.Column(db.DateTime(timezone=True))

    __table_args__ = (
        db.UniqueConstraint("report_id", "manager_id", name="uq_eod_ack_manager"),
    )

    report = db.relationship("EODReportRecord", back_populates="acknowledgments")
