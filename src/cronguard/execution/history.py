"""Run history: a bounded, newest-first audit log of invocations.

WHY
───
Operators need to answer "did the 03:00 run succeed, and how long did it
take?" without a database. Each non-skipped invocation leaves exactly one
``RunRecord``; the ring keeps the last ``limit`` of them.

ARCHITECTURE
────────────
::

    HistoryRing(limit=3)

    record(r4) ──►  [ r4 | r3 | r2 ]  ──► r1 evicted
                     newest     oldest

    snapshot() ──► list of copies (mutating it never touches the ring)

A record is opened with status ``running`` and finalized exactly once.
After finalization it is never mutated again, only evicted.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from cronguard.core.enums import RunStatus, TriggerSource
from cronguard.core.timestamps import elapsed_ms, generate_run_id, to_iso8601, utc_now


@dataclass
class RunRecord:
    """One invocation's audit entry.

    Example:
        >>> record = RunRecord(triggered_by=TriggerSource.MANUAL)
        >>> record.status
        <RunStatus.RUNNING: 'running'>
    """

    triggered_by: TriggerSource
    """What caused the invocation (schedule tick or manual call)"""

    started_at: datetime = field(default_factory=utc_now)
    """When the invocation began"""

    status: RunStatus = RunStatus.RUNNING
    """running until finalized, then success / failed / timeout"""

    ended_at: datetime | None = None
    """When the invocation reached its terminal outcome"""

    duration_ms: int | None = None
    """ended_at - started_at in whole milliseconds, computed once"""

    error: BaseException | None = None
    """Present iff status is failed or timeout"""

    attempts: int = 0
    """Attempts performed by the invocation"""

    run_id: str = field(default_factory=generate_run_id)
    """Correlation id shared with the invocation's log lines"""

    @property
    def is_finalized(self) -> bool:
        return self.status.is_terminal

    def finalize(
        self,
        status: RunStatus,
        *,
        error: BaseException | None = None,
        attempts: int = 0,
        ended_at: datetime | None = None,
    ) -> None:
        """Close the record with its terminal outcome.

        Raises:
            RuntimeError: If the record was already finalized, or the
                status is not terminal.
        """
        if self.is_finalized:
            raise RuntimeError(f"Run {self.run_id} already finalized as {self.status.value}")
        if not status.is_terminal:
            raise RuntimeError("Cannot finalize a run record as running")

        self.ended_at = ended_at or utc_now()
        self.duration_ms = elapsed_ms(self.started_at, self.ended_at)
        self.status = status
        self.error = error if status is not RunStatus.SUCCESS else None
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON/logging."""
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "triggered_by": self.triggered_by.value,
            "started_at": to_iso8601(self.started_at),
            "ended_at": to_iso8601(self.ended_at),
            "duration_ms": self.duration_ms,
            "error": str(self.error) if self.error is not None else None,
            "attempts": self.attempts,
        }


class HistoryRing:
    """Bounded newest-first sequence of run records.

    Thread-safe: insertion, finalization and snapshots take one lock so a
    concurrent snapshot never observes a half-finalized record.
    """

    def __init__(self, limit: int = 10) -> None:
        if limit < 1:
            raise ValueError(f"History limit must be >= 1, got {limit}")
        self._records: deque[RunRecord] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def record(self, entry: RunRecord) -> None:
        """Insert at the front, evicting the oldest entry when full."""
        with self._lock:
            self._records.appendleft(entry)

    def finalize(self, entry: RunRecord, status: RunStatus, **kwargs: Any) -> None:
        """Finalize ``entry`` under the ring's lock.

        The entry may already have been evicted by newer runs; it is still
        finalized so callers holding a reference see the outcome.
        """
        with self._lock:
            entry.finalize(status, **kwargs)

    def snapshot(self) -> list[RunRecord]:
        """Return copies of the records, newest first."""
        with self._lock:
            return [replace(r) for r in self._records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["RunRecord", "HistoryRing"]
