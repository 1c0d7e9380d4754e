"""Protected task controller: the engine every invocation goes through.

Manifesto:
    A cron job body should only contain business logic. Retries, backoff,
    deadlines, overlap protection, run history and alerting are the same
    for every job and belong in one place that is hard to get wrong.

Architecture:
    ::

        invoke(source)
          │
          ├─ overlap check + mark running   (one lock, no await inside)
          │     └─ already running & prevent_overlap → OVERLAP_SKIP hook,
          │                                           overlap_skip notification,
          │                                           return None (no history)
          │
          ├─ open RunRecord(status=running) → HistoryRing,  START hook
          │
          ├─ for attempt in 1 .. retries+1:
          │     result = TimeoutGuard.run(task)
          │       ok        → terminal SUCCESS
          │       timeout   → terminal TIMEOUT   (never retried)
          │       error     → RETRY hook(error, attempt), sleep(backoff), next
          │
          ├─ budget exhausted → terminal FAILED
          │
          └─ terminal: finalize record → hooks → notification → release
                       (table _TERMINAL_TRANSITIONS says what fires)

    States per invocation:
        Idle → (OverlapSkip | Running) → {Success, Failed, TimedOut} → Idle

Guardrails:
    - ``invoke`` never raises for task, hook or notifier failures; the
      outcome is conveyed by the return value, hooks and notifications.
    - ``is_running`` is released exactly once on every path, including
      cancellation of the invocation itself.
    - Intermediate attempt failures are only visible through the retry hook
      and ``attempt_failed`` log lines.
    - CancelledError or StopIteration raised by the task body is an ordinary
      attempt failure. Only cancellation of ``invoke`` itself propagates.

Tags:
    execution, retry, backoff, timeout, overlap, history, cronguard

Doc-Types:
    api-reference, architecture-diagram
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from cronguard.core.enums import (
    LifecycleEvent,
    NotificationEvent,
    RunStatus,
    TaskStatus,
    TriggerSource,
)
from cronguard.core.errors import TaskTimeoutError
from cronguard.core.logging import LogContext, get_logger
from cronguard.execution.history import HistoryRing, RunRecord
from cronguard.execution.notify import NotificationDispatcher, NotificationPayload, Notifier
from cronguard.execution.policy import TaskHooks, TaskPolicy
from cronguard.execution.timeout import TimeoutGuard

log = get_logger(__name__)

Task = Callable[[], Any]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class _Transition:
    hooks: tuple[LifecycleEvent, ...]
    notification: NotificationEvent


# Single source of truth for what a terminal outcome fires, in order.
_TERMINAL_TRANSITIONS: dict[RunStatus, _Transition] = {
    RunStatus.SUCCESS: _Transition((LifecycleEvent.SUCCESS,), NotificationEvent.SUCCESS),
    RunStatus.TIMEOUT: _Transition(
        (LifecycleEvent.TIMEOUT, LifecycleEvent.ERROR), NotificationEvent.TIMEOUT
    ),
    RunStatus.FAILED: _Transition((LifecycleEvent.ERROR,), NotificationEvent.ERROR),
}


@dataclass
class TaskState:
    """Mutable per-task state, owned exclusively by one controller."""

    history: HistoryRing
    is_running: bool = False
    status: TaskStatus = TaskStatus.SCHEDULED
    active_runs: int = 0
    """Invocations in flight; only ever above 1 without prevent_overlap"""
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class ProtectedTaskController:
    """Runs one task under its reliability policy.

    Safe to invoke concurrently from several coroutines, or from a periodic
    trigger and a manual caller at the same time: the overlap check and the
    transition to running are a single critical section.

    Example:
        >>> controller = ProtectedTaskController(
        ...     sync_warehouse,
        ...     TaskPolicy(name="nightly-sync", retries=3, retry_delay_ms=1000),
        ...     hooks=TaskHooks(on_error=page_oncall),
        ... )
        >>> result = await controller.invoke(TriggerSource.MANUAL)
    """

    def __init__(
        self,
        task: Task,
        policy: TaskPolicy | None = None,
        *,
        hooks: TaskHooks | None = None,
        notifier: Notifier | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._task = task
        self.policy = policy or TaskPolicy()
        self.hooks = hooks or TaskHooks()
        self._state = TaskState(history=HistoryRing(self.policy.history_limit))
        self._guard = TimeoutGuard(self.policy.execution_timeout_ms, self.policy.name)
        self._dispatcher = NotificationDispatcher(notifier, self.policy.notify_on)
        self._backoff = self.policy.backoff
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Read-only surface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.policy.name

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    def status(self) -> TaskStatus:
        return self._state.status

    def history(self) -> list[RunRecord]:
        """Copies of the run records, newest first."""
        return self._state.history.snapshot()

    @property
    def timeout_guard(self) -> TimeoutGuard:
        return self._guard

    # ------------------------------------------------------------------
    # Lifecycle collaborator surface
    # ------------------------------------------------------------------

    def mark_stopped(self) -> None:
        with self._state.lock:
            self._state.status = TaskStatus.STOPPED

    def mark_scheduled(self) -> None:
        with self._state.lock:
            self._state.status = (
                TaskStatus.RUNNING if self._state.is_running else TaskStatus.SCHEDULED
            )

    async def drain_notifications(self) -> None:
        """Wait for in-flight notifier deliveries (shutdown/test helper)."""
        await self._dispatcher.drain()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def trigger(self) -> Any:
        """Run the task now, bypassing the schedule but not overlap prevention."""
        return await self.invoke(TriggerSource.MANUAL)

    async def invoke(self, source: TriggerSource | str = TriggerSource.SCHEDULE) -> Any:
        """Run one invocation and return the task's result.

        Returns:
            The task's return value on success; None on overlap skip,
            timeout or exhausted retries.
        """
        source = TriggerSource(source)

        if not self._acquire():
            await self._skip()
            return None

        record = RunRecord(triggered_by=source)
        self._state.history.record(record)
        try:
            async with LogContext(task=self.name, run_id=record.run_id):
                log.info("run_started", triggered_by=source.value)
                await self._fire(LifecycleEvent.START)
                return await self._attempt_loop(record)
        finally:
            if not record.is_finalized:
                # Only reachable when the invocation itself was cancelled.
                self._state.history.finalize(
                    record,
                    RunStatus.FAILED,
                    error=asyncio.CancelledError("invocation cancelled"),
                    attempts=record.attempts,
                )
            self._release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _acquire(self) -> bool:
        with self._state.lock:
            if self.policy.prevent_overlap and self._state.is_running:
                return False
            self._state.active_runs += 1
            self._state.is_running = True
            if self._state.status is not TaskStatus.STOPPED:
                self._state.status = TaskStatus.RUNNING
            return True

    def _release(self) -> None:
        with self._state.lock:
            self._state.active_runs -= 1
            if self._state.active_runs > 0:
                return
            self._state.is_running = False
            if self._state.status is TaskStatus.RUNNING:
                self._state.status = TaskStatus.SCHEDULED

    async def _skip(self) -> None:
        log.info("overlap_skipped", task=self.name)
        await self._fire(LifecycleEvent.OVERLAP_SKIP)
        self._dispatcher.dispatch(
            NotificationPayload(task_name=self.name, event=NotificationEvent.OVERLAP_SKIP)
        )

    async def _attempt_loop(self, record: RunRecord) -> Any:
        max_attempts = self.policy.max_attempts
        last_error: BaseException | None = None

        for attempt in range(1, max_attempts + 1):
            record.attempts = attempt
            try:
                result = await self._guard.run(self._call_task())
            except TaskTimeoutError as e:
                log.warning(
                    "run_timed_out",
                    attempt=attempt,
                    timeout_ms=self.policy.execution_timeout_ms,
                    error=str(e),
                )
                await self._finish(record, RunStatus.TIMEOUT, attempt, error=e)
                return None
            except asyncio.CancelledError as e:
                if _invocation_cancelled():
                    raise
                # Raised by the task itself; the invocation was not cancelled.
                last_error = e
            except Exception as e:
                last_error = e
            else:
                await self._finish(record, RunStatus.SUCCESS, attempt, result=result)
                return result

            log.warning(
                "attempt_failed",
                attempt=attempt,
                max_attempts=max_attempts,
                error=str(last_error),
                error_type=type(last_error).__name__,
            )
            if attempt < max_attempts:
                await self._fire(LifecycleEvent.RETRY, last_error, attempt)
                delay_ms = self._backoff.delay(attempt)
                if delay_ms > 0:
                    await self._sleep(delay_ms / 1000)

        log.error(
            "run_failed",
            attempts=max_attempts,
            error=str(last_error),
            error_type=type(last_error).__name__,
        )
        await self._finish(record, RunStatus.FAILED, max_attempts, error=last_error)
        return None

    async def _call_task(self) -> Any:
        if _is_async_callable(self._task):
            return await self._task()
        outcome = await asyncio.to_thread(_run_sync, self._task)
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome

    async def _finish(
        self,
        record: RunRecord,
        status: RunStatus,
        attempts: int,
        *,
        result: Any = None,
        error: BaseException | None = None,
    ) -> None:
        transition = _TERMINAL_TRANSITIONS[status]
        self._state.history.finalize(record, status, error=error, attempts=attempts)

        if status is RunStatus.SUCCESS:
            log.info("run_succeeded", attempts=attempts, duration_ms=record.duration_ms)

        for event in transition.hooks:
            if event is LifecycleEvent.SUCCESS:
                await self._fire(event, result)
            else:
                await self._fire(event, error)

        self._dispatcher.dispatch(
            NotificationPayload(
                task_name=self.name,
                event=transition.notification,
                duration_ms=record.duration_ms,
                result=result if status is RunStatus.SUCCESS else None,
                error=error,
                attempts_made=attempts,
            )
        )

    async def _fire(self, event: LifecycleEvent, *args: Any) -> None:
        hook = self.hooks.get(event)
        if hook is None:
            return
        try:
            outcome = hook(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            log.exception("hook_failed", task=self.name, hook=event.value)


def _run_sync(task: Task) -> Any:
    """Call a plain task in the worker thread.

    A future cannot carry StopIteration, so it is re-raised as RuntimeError
    the same way PEP 479 treats it inside generators and coroutines.
    """
    try:
        return task()
    except StopIteration as e:
        raise RuntimeError("task raised StopIteration") from e


def _invocation_cancelled() -> bool:
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0


def _is_async_callable(obj: Any) -> bool:
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(
        getattr(obj, "__call__", None)
    )


__all__ = ["TaskState", "ProtectedTaskController", "Task"]
