"""Timeout guard: race an attempt against its execution deadline.

Manifesto:
    A hung job is worse than a failed one: it holds the overlap flag, so
    every later tick is skipped and nothing is reported. The guard puts a
    ceiling on how long the engine *waits*, and reports a distinct
    ``timeout`` outcome when the ceiling is hit.

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────┐
        │ guard.run(coro)                                            │
        │                                                            │
        │   attempt task ────┐                                       │
        │                    ├── asyncio.wait(FIRST settled)         │
        │   deadline timer ──┘                                       │
        │                                                            │
        │   attempt first   → its result / its exception             │
        │   deadline first  → TaskTimeoutError, attempt DETACHED     │
        └────────────────────────────────────────────────────────────┘

Guardrails:
    - This is best-effort, not preemption. The losing attempt is **not**
      cancelled: it keeps running in the background until it settles on
      its own, and may still touch shared resources after the timeout has
      been reported. Use ``asyncio.wait_for`` semantics in the task itself
      if it needs to be interruptible.
    - Detached attempts are referenced by the guard until they settle so
      they are never garbage collected mid-flight; their eventual outcome
      is logged at debug level and never re-enters the invocation.
    - Blocking (non-async) tasks run in a worker thread; a timed-out
      thread can never be killed.

Tags:
    timeout, deadline, resilience, execution, cronguard

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import Any, TypeVar

from cronguard.core.errors import TaskTimeoutError
from cronguard.core.logging import get_logger

T = TypeVar("T")

log = get_logger(__name__)


class TimeoutGuard:
    """Races attempts against a fixed deadline.

    Args:
        timeout_ms: Deadline in milliseconds. ``None`` or ``0`` disables the
            guard and attempts are awaited directly.
        task_name: Name used in the timeout error and logs

    Example:
        >>> guard = TimeoutGuard(1000, task_name="nightly-sync")
        >>> result = await guard.run(sync_warehouse())
    """

    def __init__(self, timeout_ms: int | None, task_name: str = "task") -> None:
        if timeout_ms is not None and timeout_ms < 0:
            raise ValueError(f"Timeout must be non-negative, got {timeout_ms}")
        self.timeout_ms = timeout_ms
        self.task_name = task_name
        self._detached: set[asyncio.Future[Any]] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.timeout_ms)

    @property
    def detached_count(self) -> int:
        """Timed-out attempts that are still running in the background."""
        return len(self._detached)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, or raise TaskTimeoutError if the deadline wins.

        Raises:
            TaskTimeoutError: If the deadline settled first
            Exception: Whatever the attempt raised, if it settled first
        """
        future = asyncio.ensure_future(awaitable)
        if not self.enabled:
            return await future

        start = time.monotonic()
        try:
            done, _ = await asyncio.wait({future}, timeout=self.timeout_ms / 1000)
        except asyncio.CancelledError:
            # The invocation itself is being cancelled; take the attempt with it.
            future.cancel()
            raise

        if future in done:
            return future.result()

        elapsed = int((time.monotonic() - start) * 1000)
        self._detach(future)
        raise TaskTimeoutError(
            timeout_ms=self.timeout_ms,
            task_name=self.task_name,
            elapsed_ms=elapsed,
        )

    def _detach(self, future: asyncio.Future[Any]) -> None:
        self._detached.add(future)
        future.add_done_callback(self._on_detached_done)

    def _on_detached_done(self, future: asyncio.Future[Any]) -> None:
        self._detached.discard(future)
        if future.cancelled():
            log.debug("detached_task_finished", task=self.task_name, outcome="cancelled")
            return
        error = future.exception()
        log.debug(
            "detached_task_finished",
            task=self.task_name,
            outcome="failed" if error is not None else "completed",
            error=str(error) if error is not None else None,
        )

    async def wait_detached(self) -> None:
        """Wait for every detached attempt to settle (shutdown/test helper)."""
        if self._detached:
            await asyncio.wait(set(self._detached))


async def run_with_deadline(
    awaitable: Awaitable[T],
    timeout_ms: int,
    task_name: str = "task",
) -> T:
    """Run an awaitable under a one-off :class:`TimeoutGuard`.

    Example:
        >>> result = await run_with_deadline(fetch_data(url), 10_000, "fetch_data")
    """
    if timeout_ms <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_ms}")
    return await TimeoutGuard(timeout_ms, task_name).run(awaitable)


__all__ = ["TimeoutGuard", "run_with_deadline"]
