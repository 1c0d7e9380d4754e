"""Tests for the cronguard error hierarchy."""

import pytest

from cronguard.core.errors import (
    ConfigError,
    CronGuardError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    NotifierError,
    ScheduleError,
    TaskTimeoutError,
)


class TestCronGuardError:
    """Base error behaviour."""

    def test_defaults(self):
        err = CronGuardError("something broke")
        assert str(err) == "something broke"
        assert err.category is ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.cause is None

    def test_cause_is_chained(self):
        root = OSError("disk")
        err = CronGuardError("wrapped", cause=root)
        assert err.__cause__ is root
        assert err.to_dict()["cause"] == "disk"

    def test_with_context_known_and_extra_keys(self):
        err = ScheduleError("bad").with_context(expression="* *", task_name="t", hint="five fields")

        assert err.context.expression == "* *"
        assert err.context.task_name == "t"
        assert err.context.metadata == {"hint": "five fields"}

    def test_to_dict(self):
        err = ScheduleError("bad cron").with_context(expression="nope")
        assert err.to_dict() == {
            "error_type": "ScheduleError",
            "message": "bad cron",
            "category": "SCHEDULE",
            "retryable": False,
            "context": {"expression": "nope"},
        }

    def test_repr(self):
        assert repr(NotifierError("x")) == "NotifierError('x', category=NOTIFICATION)"


class TestTaskTimeoutError:
    """Deadline error."""

    def test_message(self):
        err = TaskTimeoutError(timeout_ms=50, task_name="sync")
        assert str(err) == "Task 'sync' timed out after 50ms"
        assert err.context.task_name == "sync"

    def test_message_with_elapsed(self):
        err = TaskTimeoutError(timeout_ms=50, task_name="sync", elapsed_ms=51)
        assert "(ran for 51ms)" in str(err)

    def test_is_builtin_timeout(self):
        with pytest.raises(TimeoutError):
            raise TaskTimeoutError(timeout_ms=1)

    def test_not_retryable(self):
        err = TaskTimeoutError(timeout_ms=1)
        assert err.retryable is False
        assert err.category is ErrorCategory.TIMEOUT


class TestInvalidConfigError:
    def test_default_message(self):
        err = InvalidConfigError("retries", -1)
        assert str(err) == "Invalid value for 'retries': -1"
        assert isinstance(err, ConfigError)
        assert err.category is ErrorCategory.CONFIG
        assert err.context.metadata == {"key": "retries", "value": "-1"}


class TestCategories:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (ConfigError("c"), ErrorCategory.CONFIG),
            (ScheduleError("s"), ErrorCategory.SCHEDULE),
            (NotifierError("n"), ErrorCategory.NOTIFICATION),
            (CronGuardError("x"), ErrorCategory.INTERNAL),
        ],
    )
    def test_default_category(self, error, expected):
        assert error.category is expected

    def test_explicit_retryable(self):
        assert CronGuardError("x", retryable=True).to_dict()["retryable"] is True


def test_empty_context_serializes_empty():
    assert ErrorContext().to_dict() == {}
