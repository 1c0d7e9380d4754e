"""cronguard: cron jobs that retry, time out, don't overlap, and tell you about it.

    >>> from cronguard import schedule, TaskHooks
    >>> task = schedule("* * * * *", fetch_data, name="data-fetcher", retries=3,
    ...                 retry_delay_ms=1000, prevent_overlap=True,
    ...                 hooks=TaskHooks(on_error=print))
"""

from cronguard.core.enums import (
    BackoffStrategy,
    LifecycleEvent,
    NotificationEvent,
    RunStatus,
    TaskStatus,
    TriggerSource,
)
from cronguard.core.errors import (
    CronGuardError,
    InvalidConfigError,
    ScheduleError,
    TaskTimeoutError,
)
from cronguard.core.scheduling import ScheduledTask, next_fire_time, schedule, validate
from cronguard.execution import (
    NotificationPayload,
    NotifyOn,
    ProtectedTaskController,
    RunRecord,
    TaskHooks,
    TaskPolicy,
)

__version__ = "0.3.0"

__all__ = [
    "schedule",
    "validate",
    "next_fire_time",
    "ScheduledTask",
    "ProtectedTaskController",
    "TaskPolicy",
    "TaskHooks",
    "NotifyOn",
    "NotificationPayload",
    "RunRecord",
    "CronGuardError",
    "InvalidConfigError",
    "ScheduleError",
    "TaskTimeoutError",
    "BackoffStrategy",
    "LifecycleEvent",
    "NotificationEvent",
    "RunStatus",
    "TaskStatus",
    "TriggerSource",
]
