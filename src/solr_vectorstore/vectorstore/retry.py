"""
Retry with exponential backoff for embedding provider calls.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

from .errors import ProviderTransientError


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry behaviour for a provider call.

    Attributes:
        max_attempts: Maximum number of attempts (including first try)
        initial_delay: Delay in seconds before the second attempt
        multiplier: Factor applied to the delay after each failed attempt
        max_delay: Upper bound for any single delay, in seconds
        retryable: Exception types that trigger another attempt
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0
    retryable: Tuple[Type[BaseException], ...] = (ProviderTransientError,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the given failed attempt (0-based)."""
        return min(self.initial_delay * (self.multiplier ** attempt), self.max_delay)


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``operation`` under ``policy``.

    Exceptions listed in ``policy.retryable`` are retried until attempts run
    out, then the last one is re-raised. Anything else propagates at once.

    Example:
        >>> policy = RetryPolicy(max_attempts=3)
        >>> vec = call_with_retry(lambda: provider.embed_query("hi"), policy)
    """
    for attempt in range(policy.max_attempts):
        try:
            logger.debug("%s: attempt %d/%d", operation_name, attempt + 1, policy.max_attempts)
            result = operation()
            if attempt > 0:
                logger.info("%s succeeded after %d attempts", operation_name, attempt + 1)
            return result
        except policy.retryable as e:
            logger.warning(
                "%s failed on attempt %d/%d: %s",
                operation_name,
                attempt + 1,
                policy.max_attempts,
                e,
            )
            if attempt == policy.max_attempts - 1:
                logger.error("%s exhausted all %d attempts", operation_name, policy.max_attempts)
                raise
            delay = policy.delay_for(attempt)
            logger.debug("Backing off for %.3fs before retry", delay)
            sleep(delay)

    # max_attempts >= 1 guarantees the loop either returns or raises
    raise AssertionError("unreachable")
