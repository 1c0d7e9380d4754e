"""Notification dispatcher: deliver lifecycle events to an optional observer.

Delivery is fire-and-forget. Each notification runs as its own detached
asyncio task, so a slow observer never delays the invocation and a broken
one never changes what the invocation reports. Observer failures, raised
synchronously or from an awaited coroutine, are logged once as
``notifier_failed`` and go nowhere else.

Example:
    >>> async def post_to_chat(payload: NotificationPayload) -> None:
    ...     await chat.send(f"{payload.task_name}: {payload.event.value}")
    >>>
    >>> dispatcher = NotificationDispatcher(post_to_chat, NotifyOn(success=False))
    >>> dispatcher.dispatch(NotificationPayload("nightly-sync", NotificationEvent.ERROR))
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from cronguard.core.enums import NotificationEvent
from cronguard.core.errors import NotifierError
from cronguard.core.logging import get_logger
from cronguard.core.timestamps import to_iso8601, utc_now

log = get_logger(__name__)


class NotifyOn(BaseModel):
    """Which events reach the notifier."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    error: bool = True
    timeout: bool = True
    overlap_skip: bool = False

    def enabled(self, event: NotificationEvent) -> bool:
        return getattr(self, NotificationEvent(event).value)


@dataclass
class NotificationPayload:
    """What the notifier receives for one event.

    Only ``task_name``, ``event`` and ``timestamp`` are always present;
    the rest depend on the event (``result`` for success, ``error`` for
    error/timeout, nothing extra for overlap_skip).
    """

    task_name: str
    event: NotificationEvent
    timestamp: datetime = field(default_factory=utc_now)
    duration_ms: int | None = None
    result: Any = None
    error: BaseException | None = None
    attempts_made: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_name": self.task_name,
            "event": self.event.value,
            "timestamp": to_iso8601(self.timestamp),
            "duration_ms": self.duration_ms,
            "result": self.result,
            "error": str(self.error) if self.error is not None else None,
            "attempts_made": self.attempts_made,
        }


Notifier = Callable[[NotificationPayload], Awaitable[None] | None]


class NotificationDispatcher:
    """Filters events and hands them to the notifier off the critical path."""

    def __init__(
        self,
        notifier: Notifier | None = None,
        notify_on: NotifyOn | None = None,
    ) -> None:
        self._notifier = notifier
        self._notify_on = notify_on or NotifyOn()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch(self, payload: NotificationPayload) -> asyncio.Task[None] | None:
        """Schedule delivery of ``payload``; never blocks, never raises.

        Returns:
            The detached delivery task, or None if nothing was scheduled
            (no notifier configured or the event is filtered out).
        """
        if self._notifier is None or not self._notify_on.enabled(payload.event):
            return None

        task = asyncio.get_running_loop().create_task(
            self._deliver(payload),
            name=f"cronguard-notify-{payload.task_name}-{payload.event.value}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, payload: NotificationPayload) -> None:
        try:
            outcome = self._notifier(payload)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            error = NotifierError(
                f"Notifier failed on {payload.event.value} for '{payload.task_name}'",
                cause=e,
            ).with_context(task_name=payload.task_name, event=payload.event.value)
            log.error(
                "notifier_failed",
                task=payload.task_name,
                notification_event=payload.event.value,
                error=str(e),
                error_type=type(e).__name__,
                details=error.to_dict(),
            )

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


__all__ = [
    "NotifyOn",
    "NotificationPayload",
    "Notifier",
    "NotificationDispatcher",
]
