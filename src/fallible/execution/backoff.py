"""Backoff strategies with exponential growth, jitter and cancellable waits.

A backoff strategy is what a :class:`~fallible.execution.retry.Retryer`
calls between a failed attempt and the next one. Every strategy here is a
callable ``(ctx, attempt, err) -> None`` that computes a delay and waits
for it with ``ctx.wait()``, so cancelling the caller's context interrupts
the wait immediately.

Example:
    >>> from fallible.execution.backoff import ExponentialBackoff
    >>>
    >>> strategy = ExponentialBackoff(base_delay=1.0, max_delay=60.0, jitter=False)
    >>> [strategy.next_delay(attempt) for attempt in range(4)]
    [1.0, 2.0, 4.0, 8.0]
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from fallible.core.context import Context
from fallible.core.logging import get_logger

logger = get_logger(__name__)


class BackoffStrategy(ABC):
    """Abstract base for backoff strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Zero-based retry number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    def __call__(self, ctx: Context, attempt: int, err: Any) -> None:
        delay = self.next_delay(attempt)
        if delay > 0:
            ctx.wait(delay)


@dataclass(frozen=True)
class ExponentialBackoff(BackoffStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) + jitter

    Attributes:
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        multiplier: Exponential multiplier (default: 2)
        jitter: Add randomness to prevent thundering herd
        jitter_range: Range of jitter as fraction of delay (0.0-1.0)
    """

    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay."""
        delay = min(
            self.base_delay * (self.multiplier ** attempt),
            self.max_delay,
        )

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0.0, delay)

        return delay


@dataclass(frozen=True)
class LinearBackoff(BackoffStrategy):
    """Linear backoff strategy.

    Delay = base_delay + (increment * attempt)
    """

    base_delay: float = 1.0
    increment: float = 1.0
    max_delay: float = 30.0

    def next_delay(self, attempt: int) -> float:
        """Calculate linear backoff delay."""
        return min(
            self.base_delay + (self.increment * attempt),
            self.max_delay,
        )


@dataclass(frozen=True)
class ConstantBackoff(BackoffStrategy):
    """Constant delay between attempts (200ms unless told otherwise)."""

    delay: float = 0.2

    def next_delay(self, attempt: int) -> float:
        """Return constant delay."""
        return self.delay


@dataclass(frozen=True)
class NoBackoff(BackoffStrategy):
    """Retry immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def __call__(self, ctx: Context, attempt: int, err: Any) -> None:
        return None


@dataclass(frozen=True)
class LoggingBackoff(BackoffStrategy):
    """Log every retry, then delegate the wait to ``inner``.

    This is where per-attempt visibility lives; the retry loop itself
    never logs.

    Example:
        >>> retryer = Retryer().with_backoff(LoggingBackoff(ExponentialBackoff()))  # doctest: +SKIP
    """

    inner: BackoffStrategy
    event: str = "retry_backoff"

    def next_delay(self, attempt: int) -> float:
        return self.inner.next_delay(attempt)

    def __call__(self, ctx: Context, attempt: int, err: Any) -> None:
        logger.debug(
            self.event,
            attempt=attempt,
            error=str(err),
            error_type=type(err).__name__,
            strategy=type(self.inner).__name__,
        )
        self.inner(ctx, attempt, err)


__all__ = [
    "BackoffStrategy",
    "ExponentialBackoff",
    "LinearBackoff",
    "ConstantBackoff",
    "NoBackoff",
    "LoggingBackoff",
]
