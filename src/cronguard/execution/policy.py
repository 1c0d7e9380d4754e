"""Task policy and lifecycle hooks.

``TaskPolicy`` is the immutable reliability configuration of one task:
retry budget, backoff curve, overlap prevention, deadline, history size
and notification filter. It is validated once at construction; the
controller never re-reads configuration mid-run.

``TaskHooks`` holds the optional callbacks, keyed by ``LifecycleEvent``
so the controller fires every hook through a single dispatch point.

Example:
    >>> policy = TaskPolicy.from_options(
    ...     name="nightly-sync",
    ...     retries=3,
    ...     retry_delay_ms=1000,
    ...     backoff_strategy="exponential",
    ...     max_retry_delay_ms=10_000,
    ...     prevent_overlap=True,
    ...     execution_timeout_ms=60_000,
    ... )
    >>> policy.backoff.delay(2)
    4000
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cronguard.core.enums import BackoffStrategy, LifecycleEvent
from cronguard.core.errors import InvalidConfigError
from cronguard.execution.backoff import BackoffPolicy
from cronguard.execution.notify import NotifyOn

DEFAULT_TASK_NAME = "unnamed-task"


class TaskPolicy(BaseModel):
    """Immutable per-task reliability policy.

    All durations are integer milliseconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = DEFAULT_TASK_NAME
    retries: int = Field(default=0, ge=0)
    retry_delay_ms: int = Field(default=0, ge=0)
    backoff_strategy: BackoffStrategy = BackoffStrategy.FIXED
    max_retry_delay_ms: int | None = Field(default=None, ge=0)
    prevent_overlap: bool = False
    execution_timeout_ms: int | None = Field(default=None, ge=0)
    history_limit: int = Field(default=10, ge=1)
    notify_on: NotifyOn = Field(default_factory=NotifyOn)

    @property
    def max_attempts(self) -> int:
        """Initial attempt plus retries."""
        return self.retries + 1

    @property
    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(
            retry_delay_ms=self.retry_delay_ms,
            strategy=self.backoff_strategy,
            max_retry_delay_ms=self.max_retry_delay_ms,
        )

    @classmethod
    def from_options(cls, **options: Any) -> TaskPolicy:
        """Build a policy, reporting bad values as InvalidConfigError.

        ``notify_on`` may be a ``NotifyOn`` or a partial dict such as
        ``{"overlap_skip": True}``; unspecified events keep their defaults.

        Raises:
            InvalidConfigError: If any option is missing its constraints
        """
        try:
            return cls(**options)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or "policy"
            raise InvalidConfigError(
                key,
                first.get("input"),
                f"Invalid task policy option '{key}': {first['msg']}",
                cause=e,
            ) from e


Hook = Callable[..., Awaitable[None] | None]


@dataclass(frozen=True)
class TaskHooks:
    """Optional lifecycle callbacks. Each may be sync or async.

    Signatures:
        on_start()
        on_success(result)
        on_retry(error, attempt)      attempt is the 1-indexed retry number
        on_error(error)               terminal failure (also fires after timeout)
        on_timeout(error)
        on_overlap_skip()
    """

    on_start: Hook | None = None
    on_success: Hook | None = None
    on_retry: Hook | None = None
    on_error: Hook | None = None
    on_timeout: Hook | None = None
    on_overlap_skip: Hook | None = None

    def get(self, event: LifecycleEvent) -> Hook | None:
        return getattr(self, f"on_{LifecycleEvent(event).value}")


__all__ = ["DEFAULT_TASK_NAME", "TaskPolicy", "TaskHooks", "Hook"]
