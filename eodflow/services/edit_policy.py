"""
Edit window policy — decides whether an employee may still edit a report.

A report is locked once any of these holds:
  - a manager has acknowledged it
  - it already carries ``max_versions`` versions (original + edits)
  - more than ``window`` has passed since first submission

The lifecycle controller accepts any ``(report) -> bool`` callable; this is
the default one, configured from ``EOD_MAX_REPORT_VERSIONS`` and
``EOD_EDIT_WINDOW_MINUTES``.
"""

from datetime import datetime, timedelta
from typing import Callable

from eodflow.services.report_ledger import EODReport, as_utc, utcnow

MAX_REPORT_VERSIONS = 2
EDIT_WINDOW = timedelta(hours=2)


class EditWindowPolicy:
    def __init__(
        self,
        max_versions: int = MAX_REPORT_VERSIONS,
        window: timedelta = EDIT_WINDOW,
        clock: Callable[[], datetime] | None = None,
    ):
        self.max_versions = max_versions
        self.window = window
        self.clock = clock or utcnow

    @classmethod
    def from_config(cls, config, clock=None) -> "EditWindowPolicy":
        return cls(
            max_versions=int(config.get("EOD_MAX_REPORT_VERSIONS", MAX_REPORT_VERSIONS)),
            window=timedelta(minutes=int(config.get("EOD_EDIT_WINDOW_MINUTES", 120))),
            clock=clock,
        )

    def explain(self, report: EODReport) -> tuple[bool, str | None]:
        """Return ``(editable, reason)``; reason is None when editable."""
        if report.is_acknowledged:
            return False, "report has been acknowledged"
        if len(report.versions) >= self.max_versions:
            return False, f"maximum of {self.max_versions} versions reached"
        submitted_at = as_utc(report.submitted_at)
        if submitted_at is not None and as_utc(self.clock()) - submitted_at > self.window:
            minutes = int(self.window.total_seconds() // 60)
            return False, f"edit window of {minutes} minutes has closed"
        return True, None

    def __call__(self, report: EODReport) -> bool:
        return self.explain(report)[0]
