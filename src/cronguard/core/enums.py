"""
Shared enumerations for cronguard.

All enums are ``str`` enums so their values serialize cleanly into logs,
notification payloads and JSON output.

Tags:
    enums, status, lifecycle, cronguard
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Externally observable lifecycle state of a scheduled task.

    ``STOPPED`` is only ever set by the lifecycle owner (``ScheduledTask.stop``),
    never by the controller itself.
    """

    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPED = "stopped"


class RunStatus(str, Enum):
    """Status of a single run record."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


class TriggerSource(str, Enum):
    """What caused an invocation."""

    SCHEDULE = "schedule"
    MANUAL = "manual"


class NotificationEvent(str, Enum):
    """Events delivered to the notifier."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"
    OVERLAP_SKIP = "overlap_skip"


class BackoffStrategy(str, Enum):
    """Shape of the delay curve between retry attempts."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class LifecycleEvent(str, Enum):
    """Hook points fired by the protected task controller."""

    START = "start"
    SUCCESS = "success"
    RETRY = "retry"
    ERROR = "error"
    TIMEOUT = "timeout"
    OVERLAP_SKIP = "overlap_skip"


__all__ = [
    "TaskStatus",
    "RunStatus",
    "TriggerSource",
    "NotificationEvent",
    "BackoffStrategy",
    "LifecycleEvent",
]
