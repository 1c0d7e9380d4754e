"""
Shared pytest fixtures for cronguard tests.

This module provides:
- structlog reset between tests so ``capture_logs`` always sees events
- settings cache reset so env overrides apply per test
- a recording ``sleep`` replacement for backoff assertions
- small task factories (flaky, blocking) used across suites
"""

import asyncio
from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
import structlog

from cronguard.core.settings import get_settings


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call made by a test."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def recorded_sleep() -> AsyncMock:
    """Stand-in for ``asyncio.sleep``; inspect ``await_args_list`` for delays."""
    return AsyncMock(return_value=None)


class FlakyTask:
    """Async task that fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures: int, value: object = "ok", error: type[Exception] = RuntimeError):
        self.failures = failures
        self.value = value
        self.error = error
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error(f"failure #{self.calls}")
        return self.value


class BlockingTask:
    """Async task that signals ``started`` and waits until ``release()``."""

    def __init__(self, value: object = "done"):
        self.value = value
        self.calls = 0
        self.started = asyncio.Event()
        self.finished = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self) -> object:
        self.calls += 1
        self.started.set()
        await self._gate.wait()
        self.finished.set()
        return self.value


@pytest.fixture
def flaky_task():
    return FlakyTask


@pytest.fixture
def blocking_task():
    return BlockingTask
