"""``schedule()``, the one-call API: a cron expression plus a protected task.

Wires a :class:`CronTrigger` (WHEN) to a :class:`ProtectedTaskController`
(WHAT, with retries, deadline, overlap prevention, history and
notifications) and exposes the start/stop lifecycle around them.

Example:
    >>> async def main():
    ...     task = schedule(
    ...         "*/5 * * * *",
    ...         fetch_prices,
    ...         name="price-fetcher",
    ...         retries=3,
    ...         retry_delay_ms=1000,
    ...         backoff_strategy="exponential",
    ...         prevent_overlap=True,
    ...         hooks=TaskHooks(on_error=lambda e: alert(e)),
    ...     )
    ...     await task.trigger()     # run now, still overlap-protected
    ...     task.history()           # newest first
    ...     task.stop()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from cronguard.core.enums import TaskStatus, TriggerSource
from cronguard.core.logging import get_logger
from cronguard.core.scheduling.trigger import CronTrigger
from cronguard.core.settings import get_settings
from cronguard.execution.controller import ProtectedTaskController, Task
from cronguard.execution.history import RunRecord
from cronguard.execution.notify import Notifier
from cronguard.execution.policy import TaskHooks, TaskPolicy

log = get_logger(__name__)


class ScheduledTask:
    """Handle returned by :func:`schedule`."""

    def __init__(self, controller: ProtectedTaskController, trigger: CronTrigger) -> None:
        self._controller = controller
        self._trigger = trigger

    @property
    def name(self) -> str:
        return self._controller.name

    @property
    def expression(self) -> str:
        return self._trigger.expression

    @property
    def controller(self) -> ProtectedTaskController:
        return self._controller

    @property
    def trigger_backend(self) -> CronTrigger:
        return self._trigger

    def start(self) -> None:
        """Resume scheduled firing. Must be called inside a running event loop."""
        self._trigger.start()
        self._controller.mark_scheduled()

    def stop(self) -> None:
        """Stop scheduled firing. An in-flight run is left to finish."""
        self._controller.mark_stopped()
        self._trigger.stop()

    def status(self) -> TaskStatus:
        return self._controller.status()

    async def trigger(self) -> Any:
        """Run the task now, bypassing the schedule. Respects overlap prevention."""
        return await self._controller.trigger()

    def history(self) -> list[RunRecord]:
        return self._controller.history()

    def next_run(self) -> datetime | None:
        """Next scheduled firing in UTC, or None while stopped."""
        if self.status() is TaskStatus.STOPPED:
            return None
        return self._trigger.next_run()

    def __repr__(self) -> str:
        return f"ScheduledTask(name={self.name!r}, expression={self.expression!r}, status={self.status().value})"


def schedule(
    expression: str,
    task: Task,
    *,
    scheduled: bool = True,
    timezone: str | None = None,
    run_on_init: bool = False,
    recover_missed: bool = False,
    hooks: TaskHooks | None = None,
    notifier: Notifier | None = None,
    **policy_options: Any,
) -> ScheduledTask:
    """Schedule ``task`` on a cron expression with reliability protections.

    Args:
        expression: Cron expression
        task: Zero-argument callable, sync or async
        scheduled: Start firing immediately (requires a running event loop)
        timezone: IANA timezone for the expression (default from settings)
        run_on_init: Fire one scheduled invocation as soon as the trigger starts
        recover_missed: Replay one missed tick when the loop wakes up late
        hooks: Lifecycle callbacks
        notifier: Observer for success/error/timeout/overlap_skip events
        **policy_options: ``TaskPolicy`` fields (name, retries, retry_delay_ms,
            backoff_strategy, max_retry_delay_ms, prevent_overlap,
            execution_timeout_ms, history_limit, notify_on)

    Returns:
        ScheduledTask handle

    Raises:
        ScheduleError: If the expression or timezone is invalid
        InvalidConfigError: If a policy option is invalid
    """
    settings = get_settings()
    policy_options.setdefault("history_limit", settings.history_limit)
    policy = TaskPolicy.from_options(**policy_options)

    controller = ProtectedTaskController(task, policy, hooks=hooks, notifier=notifier)
    trigger = CronTrigger(
        expression,
        lambda: controller.invoke(TriggerSource.SCHEDULE),
        timezone=timezone or settings.timezone,
        run_on_init=run_on_init,
        recover_missed=recover_missed,
    )
    handle = ScheduledTask(controller, trigger)

    if scheduled:
        handle.start()

    log.info(
        "task_scheduled",
        task=policy.name,
        expression=expression,
        started=scheduled,
        retries=policy.retries,
        prevent_overlap=policy.prevent_overlap,
        execution_timeout_ms=policy.execution_timeout_ms,
    )
    return handle


__all__ = ["ScheduledTask", "schedule"]
