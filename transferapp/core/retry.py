"""Retry utilities with exponential backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from core.exceptions import PermanentError, TransientError

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 10.0
    retryable: tuple[type[Exception], ...] = field(default_factory=lambda: (TransientError,))

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.multiplier ** attempt), self.max_delay)

    def is_retryable(self, error: Exception) -> bool:
        # Permanent errors short-circuit even when a broad retryable class is configured
        if isinstance(error, PermanentError):
            return False
        return isinstance(error, self.retryable)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Execute an async operation, retrying the errors the policy classifies as transient."""
    if policy is None:
        policy = RetryPolicy()

    attempts = max(1, policy.max_attempts)

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as error:
            if not policy.is_retryable(error):
                raise

            if attempt == attempts - 1:
                logger.error(f"{operation_name} failed after {attempts} attempts: {error}")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{operation_name} failed (attempt {attempt + 1}/{attempts}), "
                f"retrying in {delay:.1f}s: {error}"
            )
            await sleep(delay)

    raise RuntimeError("unreachable")
