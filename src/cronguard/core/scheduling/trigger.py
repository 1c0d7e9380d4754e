"""Periodic cron trigger running on the asyncio event loop.

┌──────────────────────────────────────────────────────────────────────────────┐
│  CRON TRIGGER                                                                 │
│                                                                               │
│   start()                                                                     │
│      │                                                                        │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                 │
│   │              Loop task                                   │                 │
│   │                                                          │                 │
│   │   while running:                                         │                 │
│   │       sleep until next_fire_time(expression)             │                 │
│   │       tick_count += 1; last_tick = now()                 │                 │
│   │       create_task(callback())   ◄── fire-and-forget      │                 │
│   └─────────────────────────────────────────────────────────┘                 │
│                                                                               │
│   stop()  → cancel the loop task (fired callbacks keep running)               │
│                                                                               │
│  The trigger only decides WHEN. What happens on a tick, including overlap    │
│  prevention and error reporting, is the controller's job; the trigger never  │
│  inspects the callback's outcome.                                             │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from cronguard.core.errors import ScheduleError
from cronguard.core.logging import get_logger
from cronguard.core.scheduling.cron import next_fire_time, resolve_timezone, validate
from cronguard.core.timestamps import to_iso8601, utc_now

log = get_logger(__name__)

TickCallback = Callable[[], Awaitable[Any]]


class CronTrigger:
    """Calls ``callback`` every time ``expression`` is due.

    Args:
        expression: Cron expression
        callback: Zero-argument coroutine function, fired detached
        timezone: IANA timezone the expression is evaluated in
        run_on_init: Fire once immediately on the first ``start()``
        recover_missed: When the loop wakes after a later due time has also
            passed, fire one extra catch-up tick

    Example:
        >>> trigger = CronTrigger("*/5 * * * *", controller.invoke)
        >>> trigger.start()      # inside a running event loop
        >>> # ... later ...
        >>> trigger.stop()
    """

    name = "cron"

    def __init__(
        self,
        expression: str,
        callback: TickCallback,
        timezone: str = "UTC",
        *,
        run_on_init: bool = False,
        recover_missed: bool = False,
    ) -> None:
        if not validate(expression):
            raise ScheduleError(f"Invalid cron expression: {expression!r}").with_context(
                expression=expression
            )
        resolve_timezone(timezone)
        self.expression = expression
        self.timezone = timezone
        self.run_on_init = run_on_init
        self.recover_missed = recover_missed
        self._callback = callback
        self._initialized = False
        self._loop_task: asyncio.Task[None] | None = None
        self._fired: set[asyncio.Task[Any]] = set()
        self._tick_count = 0
        self._last_tick: datetime | None = None

    def start(self) -> None:
        """Start the trigger loop on the running event loop.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        if self.is_running:
            log.warning("trigger_already_started", expression=self.expression)
            return

        loop = asyncio.get_running_loop()
        self._loop_task = loop.create_task(self._run(), name=f"cronguard-trigger-{self.expression}")
        log.info("trigger_started", expression=self.expression, timezone=self.timezone)

        if self.run_on_init and not self._initialized:
            self._tick()
        self._initialized = True

    def stop(self) -> None:
        """Stop firing. Callbacks already fired are left to finish."""
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        self._loop_task = None
        log.info("trigger_stopped", expression=self.expression, ticks=self._tick_count)

    async def _run(self) -> None:
        cursor: datetime | None = None
        while True:
            due = next_fire_time(self.expression, after=cursor, timezone=self.timezone)
            delay = (due - utc_now()).total_seconds()
            if delay > 0:
                await asyncio.sleep(delay)
            now = utc_now()
            self._tick()
            if self.recover_missed and self._missed_after(due, now):
                # At most one catch-up tick, however many were missed.
                log.info("missed_tick_recovered", expression=self.expression, due=to_iso8601(due))
                self._tick()
            cursor = max(due, now)

    def _missed_after(self, due: datetime, now: datetime) -> bool:
        return next_fire_time(self.expression, after=due, timezone=self.timezone) <= now

    def _tick(self) -> None:
        self._tick_count += 1
        self._last_tick = utc_now()
        fired = asyncio.ensure_future(self._callback())
        self._fired.add(fired)
        fired.add_done_callback(self._on_fired_done)

    def _on_fired_done(self, fired: asyncio.Future[Any]) -> None:
        self._fired.discard(fired)
        if not fired.cancelled() and fired.exception() is not None:
            # The controller never raises; this only catches a broken callback.
            log.error("tick_callback_failed", expression=self.expression, error=str(fired.exception()))

    def next_run(self) -> datetime | None:
        """Next firing instant in UTC, or None while stopped."""
        if not self.is_running:
            return None
        return next_fire_time(self.expression, timezone=self.timezone)

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick

    def health(self) -> dict[str, Any]:
        """Return trigger health status."""
        return {
            "healthy": self.is_running,
            "backend": self.name,
            "expression": self.expression,
            "timezone": self.timezone,
            "tick_count": self._tick_count,
            "last_tick": to_iso8601(self._last_tick),
            "next_run": to_iso8601(self.next_run()),
            "in_flight": len(self._fired),
        }


__all__ = ["CronTrigger", "TickCallback"]
