"""Bounded retry with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 8.0
    jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay(self, attempt: int) -> float:
        """Pause before retry number ``attempt`` (1-based)."""
        delay = min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)
        if self.jitter:
            delay += random.uniform(0, self.jitter)
        return delay


class RetryExhaustedError(Exception):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"gave up after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[Exception], ...],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds or the attempt ceiling is hit.

    Only exceptions in ``retry_on`` are retried; anything else propagates on
    the first occurrence. ``asyncio.CancelledError`` is not an ``Exception``
    subclass and always propagates.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            last_error = exc
            if attempt == policy.max_attempts:
                break
            delay = policy.delay(attempt)
            logger.warning(f"Attempt {attempt}/{policy.max_attempts} failed ({exc}); retrying in {delay:.2f}s")
            await sleep(delay)
    assert last_error is not None
    raise RetryExhaustedError(policy.max_attempts, last_error) from last_error
