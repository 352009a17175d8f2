"""Bounded retry policies for bootstrap-style operations.

Example:
    >>> from device_spine.retry import LinearBackoff, RetryContext
    >>>
    >>> strategy = LinearBackoff(max_attempts=20, base_delay=1.0)
    >>> [strategy.next_delay(attempt) for attempt in range(3)]
    [1.0, 2.0, 3.0]
    >>> ctx = RetryContext(strategy, sleep=lambda seconds: None)
    >>> ctx.run(lambda: "ok")
    'ok'
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based retry number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Determine if another attempt should be made.

        Args:
            attempt: Number of attempts made so far
            error: The exception that caused the failure
        """
        ...


@dataclass
class LinearBackoff(RetryStrategy):
    """Linear backoff strategy.

    Delay = base_delay + (increment * attempt), so the defaults wait
    1, 2, 3, ... seconds between attempts.
    """

    max_attempts: int = 20
    base_delay: float = 1.0
    increment: float = 1.0
    max_delay: float | None = None

    def next_delay(self, attempt: int) -> float:
        """Calculate linear backoff delay."""
        delay = self.base_delay + (self.increment * attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Check if another attempt is allowed."""
        return attempt < self.max_attempts

    @classmethod
    def in_units(cls, max_attempts: int, unit: float) -> LinearBackoff:
        """Backoff of ``unit``, ``2 * unit``, ``3 * unit``, ... seconds."""
        return cls(max_attempts=max_attempts, base_delay=unit, increment=unit)


@dataclass
class RetryContext:
    """Context tracking retry state.

    ``sleep`` is injectable so callers and tests can substitute a fake clock.

    Example:
        >>> ctx = RetryContext(LinearBackoff(max_attempts=3))
        >>> result = ctx.run(lambda: probe())
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], Any] = time.sleep
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    errors: list[tuple[int, Exception]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute function with retry logic.

        Returns:
            Result from the first successful call

        Raises:
            The last exception once the strategy stops retrying
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append((self.attempt, e))

                if not self.strategy.should_retry(self.attempt, e):
                    raise

                delay = self.strategy.next_delay(self.attempt - 1)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                self.sleep(delay)


__all__ = [
    "RetryStrategy",
    "LinearBackoff",
    "RetryContext",
]
