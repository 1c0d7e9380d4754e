"""Tests for TimeoutGuard."""

import asyncio

import pytest

from cronguard.core.errors import TaskTimeoutError
from cronguard.execution.timeout import TimeoutGuard, run_with_deadline


async def _slow(seconds: float, value: str = "done") -> str:
    await asyncio.sleep(seconds)
    return value


class TestTimeoutGuard:
    """TimeoutGuard races."""

    @pytest.mark.asyncio
    async def test_fast_attempt_wins(self):
        guard = TimeoutGuard(1000, "fast")
        assert await guard.run(_slow(0.01, "ok")) == "ok"
        assert guard.detached_count == 0

    @pytest.mark.asyncio
    async def test_attempt_error_propagates(self):
        async def boom():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            await TimeoutGuard(1000).run(boom())

    @pytest.mark.asyncio
    async def test_deadline_wins(self):
        """Deadline settles first: TaskTimeoutError with the deadline in the message."""
        guard = TimeoutGuard(30, "slow-task")
        gate = asyncio.Event()

        with pytest.raises(TaskTimeoutError) as exc_info:
            await guard.run(gate.wait())

        err = exc_info.value
        assert err.timeout_ms == 30
        assert err.task_name == "slow-task"
        assert "timed out after 30ms" in str(err)
        assert err.retryable is False
        assert isinstance(err, TimeoutError)

        gate.set()
        await guard.wait_detached()

    @pytest.mark.asyncio
    async def test_loser_is_not_cancelled(self):
        """The timed-out attempt keeps running and completes on its own."""
        guard = TimeoutGuard(20)
        finished = asyncio.Event()

        async def slow_work():
            await asyncio.sleep(0.1)
            finished.set()

        with pytest.raises(TaskTimeoutError):
            await guard.run(slow_work())

        assert guard.detached_count == 1
        await guard.wait_detached()
        assert finished.is_set()
        assert guard.detached_count == 0

    @pytest.mark.asyncio
    async def test_late_failure_does_not_escape(self):
        """A detached attempt that later raises is only logged."""
        guard = TimeoutGuard(20)

        async def late_boom():
            await asyncio.sleep(0.05)
            raise RuntimeError("too late")

        with pytest.raises(TaskTimeoutError):
            await guard.run(late_boom())

        await guard.wait_detached()
        assert guard.detached_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout_ms", [None, 0])
    async def test_disabled_guard_awaits_directly(self, timeout_ms):
        guard = TimeoutGuard(timeout_ms)
        assert not guard.enabled
        assert await guard.run(_slow(0.05, "slow but fine")) == "slow but fine"

    @pytest.mark.asyncio
    async def test_outer_cancel_cancels_attempt(self):
        guard = TimeoutGuard(5000)
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def hangs():
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        outer = asyncio.create_task(guard.run(hangs()))
        await started.wait()
        outer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await outer

        await asyncio.wait_for(cancelled.wait(), timeout=1)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            TimeoutGuard(-1)


class TestRunWithDeadline:
    """run_with_deadline() helper."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        assert await run_with_deadline(_slow(0.01, "x"), 1000) == "x"

    @pytest.mark.asyncio
    async def test_requires_positive_timeout(self):
        coro = _slow(0)
        with pytest.raises(ValueError):
            await run_with_deadline(coro, 0)
        coro.close()
