"""Backoff policy: how long to wait before each retry.

Pure integer arithmetic, no clocks and no randomness, so the delay curve
can be unit-tested without timing.

    fixed        delay = retry_delay_ms
    linear       delay = retry_delay_ms * attempt
    exponential  delay = retry_delay_ms * 2 ** attempt

``attempt`` is the 1-indexed retry number (the value passed to the retry
hook), not the total attempt count. When ``max_retry_delay_ms`` is set,
larger delays are clamped to it.

Example:
    >>> from cronguard.execution.backoff import BackoffPolicy
    >>> policy = BackoffPolicy(retry_delay_ms=1000, strategy="exponential", max_retry_delay_ms=5000)
    >>> [policy.delay(n) for n in (1, 2, 3)]
    [2000, 4000, 5000]
"""

from __future__ import annotations

from dataclasses import dataclass

from cronguard.core.enums import BackoffStrategy


def compute_delay(
    attempt: int,
    retry_delay_ms: int,
    strategy: BackoffStrategy | str = BackoffStrategy.FIXED,
    max_retry_delay_ms: int | None = None,
) -> int:
    """Calculate the wait before retry number ``attempt``.

    Args:
        attempt: 1-indexed retry number
        retry_delay_ms: Base delay in milliseconds
        strategy: fixed, linear or exponential
        max_retry_delay_ms: Optional cap

    Returns:
        Non-negative delay in milliseconds

    Raises:
        ValueError: If attempt < 1 or retry_delay_ms < 0
    """
    if attempt < 1:
        raise ValueError(f"Retry attempt is 1-indexed, got {attempt}")
    if retry_delay_ms < 0:
        raise ValueError(f"Retry delay must be non-negative, got {retry_delay_ms}")

    strategy = BackoffStrategy(strategy)
    if strategy is BackoffStrategy.LINEAR:
        delay = retry_delay_ms * attempt
    elif strategy is BackoffStrategy.EXPONENTIAL:
        delay = retry_delay_ms * (2**attempt)
    else:
        delay = retry_delay_ms

    if max_retry_delay_ms is not None and delay > max_retry_delay_ms:
        delay = max_retry_delay_ms

    return delay


@dataclass(frozen=True)
class BackoffPolicy:
    """Backoff parameters bound together for a single task."""

    retry_delay_ms: int = 0
    strategy: BackoffStrategy = BackoffStrategy.FIXED
    max_retry_delay_ms: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", BackoffStrategy(self.strategy))

    def delay(self, attempt: int) -> int:
        """Delay in milliseconds before retry number ``attempt``."""
        return compute_delay(
            attempt,
            self.retry_delay_ms,
            self.strategy,
            self.max_retry_delay_ms,
        )


__all__ = ["compute_delay", "BackoffPolicy"]
