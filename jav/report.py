"""Collects per-issue outcomes from concurrent workers into a RunReport."""

import threading
from collections.abc import Callable

from jav.models import FailedIssue, RunReport


class ReportAggregator:
    """Append-only buckets. Each issue is recorded exactly once by the worker that owns it."""

    def __init__(self, redact: Callable[[str], str] | None = None) -> None:
        self._lock = threading.Lock()
        # Failure messages may echo response bodies; scrub them before storing
        self._redact = redact
        self._updated: list[str] = []
        self._skipped: list[str] = []
        self._failed: list[FailedIssue] = []

    def record_updated(self, issue: str) -> None:
        with self._lock:
            self._updated.append(issue)

    def record_skipped(self, issue: str) -> None:
        with self._lock:
            self._skipped.append(issue)

    def record_failed(self, issue: str, error: str) -> None:
        if self._redact is not None:
            error = self._redact(error)
        with self._lock:
            self._failed.append(FailedIssue(issue=issue, error=error))

    def build(self) -> RunReport:
        with self._lock:
            return RunReport(
                updated=list(self._updated),
                skipped=list(self._skipped),
                failed=list(self._failed),
            )
