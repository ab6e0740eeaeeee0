"""Failure sink shared by the client and the dispatcher."""

from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from .errors import ErrorCategory, ErrorRecord, ErrorTracker


class FailureSink:
    """Collects recoverable failures and reports them on stderr.

    Translation is best effort, so nothing recorded here ever stops
    processing. Once the tracker reports a threshold, a single warning is
    printed so a dead oracle does not go unnoticed behind the fallbacks.
    """

    def __init__(self, *, stream: Optional[TextIO] = None, quiet: bool = False) -> None:
        self.stream = stream
        self.quiet = quiet
        self.records: List[ErrorRecord] = []
        self.tracker = ErrorTracker()
        self.threshold_warned = False

    def record_success(self) -> None:
        """Reset consecutive counters after successful work."""

        self.tracker.reset_consecutive()

    def record(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> ErrorRecord:
        """Store a failure and report it."""

        record = ErrorRecord(category=category, message=message, details=details)
        self.records.append(record)
        consecutive, total, threshold = self.tracker.register(category)

        self._emit(message if not details else f"{message} ({details})")

        if threshold and not self.threshold_warned:
            self.threshold_warned = True
            if consecutive >= self.tracker.CONSECUTIVE_LIMIT:
                self._emit(
                    "Repeated translation failures detected (3 times). "
                    "Original text is being kept."
                )
            else:
                self._emit(
                    f"{total} translation failures so far. "
                    "Original text is being kept where translation failed."
                )
        return record

    def messages(self) -> List[str]:
        return [record.message for record in self.records]

    def _emit(self, message: str) -> None:
        if self.quiet:
            return
        stream = self.stream if self.stream is not None else sys.stderr
        print(f"[lingualive] {message}", file=stream)
