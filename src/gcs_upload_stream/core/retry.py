"""Bounded retry with backoff around a single attempt."""

import logging
import time
from typing import Callable, Optional, TypeVar

from .exceptions import RetryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Retry an attempt a bounded number of times.

    Every failure is retried the same way; the policy never inspects the
    error kind. Once all attempts fail a RetryError is raised from the last
    error.
    """

    def __init__(
        self,
        retries: int = 5,
        min_delay: int = 1000,
        factor: float = 1.0,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        """Initialize the policy.

        Args:
            retries: Extra attempts allowed after the first one
            min_delay: Delay before the first retry in milliseconds
            factor: Growth applied to the delay on each further retry
            sleep: Sleep function taking seconds (defaults to time.sleep)
        """
        if retries < 0:
            raise ValueError("retries must be >= 0")
        if min_delay < 0:
            raise ValueError("min_delay must be >= 0")
        self.retries = retries
        self.min_delay = min_delay
        self.factor = factor
        self.sleep = sleep or time.sleep

    def delay_for(self, attempt: int) -> float:
        """Return the delay in seconds to wait after failed ``attempt``."""
        return (self.min_delay * self.factor ** (attempt - 1)) / 1000.0

    def call(self, func: Callable[[int], T], description: str = "attempt") -> T:
        """Call ``func(attempt)`` until it returns or the budget is spent."""
        total = self.retries + 1
        for attempt in range(1, total + 1):
            try:
                return func(attempt)
            except Exception as exc:
                if attempt == total:
                    logger.error(f"{description}: exceeded {self.retries} retries: {exc}")
                    raise RetryError(total) from exc
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description}: attempt {attempt} failed ({exc}); retrying in {delay:.2f}s"
                )
                self.sleep(delay)
        raise RetryError(total)
