"""Bounded exponential backoff around a single operation."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, Iterator, TypeVar

import structlog

from helm_antecedent.config import (
    RETRY_FACTOR,
    RETRY_INITIAL_INTERVAL,
    RETRY_JITTER,
    RETRY_STEPS,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    initial_interval: float = RETRY_INITIAL_INTERVAL
    factor: float = RETRY_FACTOR
    jitter: float = RETRY_JITTER
    steps: int = RETRY_STEPS  # total attempts, including the first
    cap: float | None = None  # upper bound on a single delay

    def delays(self) -> Iterator[float]:
        """Yield the sleep before each retry (steps - 1 values)."""
        interval = self.initial_interval
        for _ in range(max(self.steps, 1) - 1):
            delay = interval
            if self.jitter > 0:
                delay += random.uniform(0, self.jitter * interval)
            if self.cap is not None:
                delay = min(delay, self.cap)
            yield delay
            interval *= self.factor


DEFAULT_RETRY = RetryPolicy()


def retry_with_backoff(
    operation: Callable[[], T],
    is_retryable: Callable[[Exception], bool],
    policy: RetryPolicy = DEFAULT_RETRY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call operation until it succeeds, fails terminally, or the schedule runs out.

    Errors for which is_retryable() is false are re-raised immediately. When
    the schedule is exhausted the last error is re-raised.
    """
    delays = policy.delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            delay = next(delays, None)
            if delay is None:
                logger.debug("retries_exhausted", attempts=attempt, error=str(e))
                raise
            logger.debug("retrying", attempt=attempt, delay=round(delay, 4), error=str(e))
            sleep(delay)
