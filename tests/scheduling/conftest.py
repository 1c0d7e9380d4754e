"""Fixtures for trigger-driven tests: make cron ticks arrive in milliseconds."""

from datetime import timedelta

import pytest

from cronguard.core.timestamps import utc_now


@pytest.fixture
def fast_ticks(monkeypatch):
    """Every expression fires 20ms from now instead of on the minute."""

    def _soon(expression, after=None, timezone="UTC"):
        return utc_now() + timedelta(milliseconds=20)

    monkeypatch.setattr("cronguard.core.scheduling.trigger.next_fire_time", _soon)
    return _soon
