"""Tests for cron expression helpers."""

from datetime import UTC, datetime

import pytest

from cronguard.core.errors import ScheduleError
from cronguard.core.scheduling.cron import next_fire_time, resolve_timezone, upcoming, validate


class TestValidate:
    @pytest.mark.parametrize("expr", ["* * * * *", "*/5 * * * *", "0 8 * * 1-5", "30 2 1 * *"])
    def test_valid(self, expr):
        assert validate(expr) is True

    @pytest.mark.parametrize("expr", ["", "   ", "not a cron", "61 * * * *", "* * *"])
    def test_invalid(self, expr):
        assert validate(expr) is False

    def test_non_string(self):
        assert validate(None) is False  # type: ignore[arg-type]


class TestNextFireTime:
    def test_daily(self):
        after = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
        assert next_fire_time("0 8 * * *", after=after) == datetime(2024, 1, 16, 8, 0, tzinfo=UTC)

    def test_strictly_after(self):
        after = datetime(2024, 1, 15, 8, 0, tzinfo=UTC)
        assert next_fire_time("0 8 * * *", after=after) == datetime(2024, 1, 16, 8, 0, tzinfo=UTC)

    def test_naive_is_utc(self):
        after = datetime(2024, 1, 15, 10, 2)
        assert next_fire_time("*/5 * * * *", after=after) == datetime(2024, 1, 15, 10, 5, tzinfo=UTC)

    def test_timezone(self):
        """08:00 in Berlin (UTC+1 in winter) is 07:00 UTC."""
        after = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
        result = next_fire_time("0 8 * * *", after=after, timezone="Europe/Berlin")
        assert result == datetime(2024, 1, 16, 7, 0, tzinfo=UTC)
        assert result.tzinfo is UTC

    def test_defaults_to_now(self):
        assert next_fire_time("* * * * *") > datetime.now(UTC)

    def test_invalid_expression(self):
        with pytest.raises(ScheduleError) as exc_info:
            next_fire_time("bogus")
        assert exc_info.value.context.expression == "bogus"

    def test_invalid_timezone(self):
        with pytest.raises(ScheduleError, match="Unknown timezone"):
            next_fire_time("* * * * *", timezone="Mars/Olympus")


class TestUpcoming:
    def test_sequence(self):
        after = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
        assert upcoming("*/15 * * * *", 3, after=after) == [
            datetime(2024, 1, 15, 10, 15, tzinfo=UTC),
            datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
            datetime(2024, 1, 15, 10, 45, tzinfo=UTC),
        ]


def test_resolve_timezone():
    assert resolve_timezone("UTC").key == "UTC"
