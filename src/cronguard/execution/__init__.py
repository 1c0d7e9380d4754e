"""Protected task execution engine.

Leaf-first:

    history     RunRecord, HistoryRing          bounded newest-first audit log
    backoff     compute_delay, BackoffPolicy    fixed / linear / exponential
    timeout     TimeoutGuard                    attempt vs deadline race
    notify      NotificationDispatcher          fire-and-forget observer delivery
    policy      TaskPolicy, TaskHooks           immutable per-task configuration
    controller  ProtectedTaskController         overlap check, attempt loop, wiring
"""

from cronguard.execution.backoff import BackoffPolicy, compute_delay
from cronguard.execution.controller import ProtectedTaskController, TaskState
from cronguard.execution.history import HistoryRing, RunRecord
from cronguard.execution.notify import (
    NotificationDispatcher,
    NotificationPayload,
    Notifier,
    NotifyOn,
)
from cronguard.execution.policy import TaskHooks, TaskPolicy
from cronguard.execution.timeout import TimeoutGuard, run_with_deadline

__all__ = [
    "BackoffPolicy",
    "compute_delay",
    "ProtectedTaskController",
    "TaskState",
    "HistoryRing",
    "RunRecord",
    "NotificationDispatcher",
    "NotificationPayload",
    "Notifier",
    "NotifyOn",
    "TaskHooks",
    "TaskPolicy",
    "TimeoutGuard",
    "run_with_deadline",
]
