"""
Structured error types for cronguard.

Task failures themselves are arbitrary exceptions raised by user code and
are never wrapped. The types here describe failures that cronguard itself
produces: deadline expiry, invalid configuration, bad schedule expressions
and observer (notifier) failures.

Manifesto:
    - **Typed Error Hierarchy:** One base class, one subclass per concern
    - **Retry Hint:** ``retryable`` travels in ``to_dict()`` for log consumers
    - **Rich Context:** Errors carry task/run metadata for logging
    - **Error Chaining:** Preserve original exceptions as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     CronGuardError                           │
        │  (category, retryable, context, cause)                       │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  TaskTimeoutError   ConfigError        ScheduleError         │
        │  (TIMEOUT, also     (CONFIG)           (SCHEDULE)            │
        │   builtin Timeout)      │                                    │
        │                    InvalidConfigError  NotifierError         │
        │                                        (NOTIFICATION)        │
        └─────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Retry a TaskTimeoutError - the hung work is still running
    ✅ DO: Treat timeout as terminal for the invocation

    ❌ DON'T: Raise NotifierError into the task path
    ✅ DO: Log it on the side channel and move on

Tags:
    error-handling, exception-hierarchy, timeout, cronguard

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    TIMEOUT = "TIMEOUT"
    CONFIG = "CONFIG"
    SCHEDULE = "SCHEDULE"
    NOTIFICATION = "NOTIFICATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    task_name: str | None = None
    run_id: str | None = None
    expression: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.task_name:
            result["task_name"] = self.task_name
        if self.run_id:
            result["run_id"] = self.run_id
        if self.expression:
            result["expression"] = self.expression
        if self.metadata:
            result["metadata"] = self.metadata
        return result


class CronGuardError(Exception):
    """
    Base exception for all cronguard errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CronGuardError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ScheduleError("bad cron").with_context(expression="* *")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TIMEOUT
# =============================================================================


class TaskTimeoutError(CronGuardError, TimeoutError):
    """Raised when an attempt exceeds its execution deadline.

    Inherits from built-in TimeoutError for broad exception handling.
    Terminal for the invocation: never retried.

    Attributes:
        timeout_ms: The deadline that was exceeded
        task_name: Task whose attempt timed out
        elapsed_ms: How long the attempt ran before the deadline fired
    """

    default_category = ErrorCategory.TIMEOUT
    default_retryable = False

    def __init__(
        self,
        timeout_ms: int,
        task_name: str = "task",
        elapsed_ms: int | None = None,
    ):
        self.timeout_ms = timeout_ms
        self.task_name = task_name
        self.elapsed_ms = elapsed_ms

        msg = f"Task '{task_name}' timed out after {timeout_ms}ms"
        if elapsed_ms is not None:
            msg += f" (ran for {elapsed_ms}ms)"

        super().__init__(msg, context=ErrorContext(task_name=task_name))


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigError(CronGuardError):
    """Invalid task policy or settings."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """A configuration key has an invalid value."""

    def __init__(self, key: str, value: Any, message: str | None = None, **kwargs: Any):
        self.key = key
        self.value = value
        msg = message or f"Invalid value for '{key}': {value!r}"
        super().__init__(msg, **kwargs)
        self.context.metadata.update({"key": key, "value": repr(value)})


# =============================================================================
# SCHEDULING / NOTIFICATION
# =============================================================================


class ScheduleError(CronGuardError):
    """Invalid cron expression or timezone."""

    default_category = ErrorCategory.SCHEDULE


class NotifierError(CronGuardError):
    """An observer failed while handling a notification.

    Only ever logged; never raised into the task's own result path.
    """

    default_category = ErrorCategory.NOTIFICATION


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CronGuardError",
    "TaskTimeoutError",
    "ConfigError",
    "InvalidConfigError",
    "ScheduleError",
    "NotifierError",
]
