"""Cron expression helpers backed by croniter.

``validate`` answers "is this a cron expression at all"; ``next_fire_time``
computes when it fires next, evaluated in the schedule's timezone and
returned in UTC.

Example:
    >>> validate("*/5 * * * *")
    True
    >>> next_fire_time("0 8 * * *", after=datetime(2024, 1, 15, 10, tzinfo=UTC))
    datetime.datetime(2024, 1, 16, 8, 0, tzinfo=datetime.timezone.utc)
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from cronguard.core.errors import ScheduleError
from cronguard.core.timestamps import utc_now


def validate(expression: str) -> bool:
    """Check whether ``expression`` is a valid cron expression."""
    if not isinstance(expression, str) or not expression.strip():
        return False
    return croniter.is_valid(expression)


def resolve_timezone(name: str) -> ZoneInfo:
    """Look up an IANA timezone.

    Raises:
        ScheduleError: If the timezone is unknown
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ScheduleError(f"Unknown timezone: {name!r}", cause=e) from e


def next_fire_time(
    expression: str,
    after: datetime | None = None,
    timezone: str = "UTC",
) -> datetime:
    """Compute the next firing instant strictly after ``after``.

    Args:
        expression: Cron expression
        after: Reference instant (default: now); naive values are taken as UTC
        timezone: IANA timezone the expression is evaluated in

    Returns:
        Next run datetime in UTC

    Raises:
        ScheduleError: If the expression or timezone is invalid
    """
    if not validate(expression):
        raise ScheduleError(f"Invalid cron expression: {expression!r}").with_context(
            expression=expression
        )

    tz = resolve_timezone(timezone)
    after = after or utc_now()
    if after.tzinfo is None:
        after = after.replace(tzinfo=UTC)

    cron = croniter(expression, after.astimezone(tz))
    next_run = cron.get_next(datetime)
    return next_run.astimezone(UTC)


def upcoming(
    expression: str,
    count: int,
    after: datetime | None = None,
    timezone: str = "UTC",
) -> list[datetime]:
    """The next ``count`` firing instants, in order."""
    times: list[datetime] = []
    cursor = after
    for _ in range(count):
        cursor = next_fire_time(expression, cursor, timezone)
        times.append(cursor)
    return times


__all__ = ["validate", "resolve_timezone", "next_fire_time", "upcoming"]
