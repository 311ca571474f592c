"""
Retry with exponential backoff for the HTTP transport.

The synchronization core never retries on its own; transient transport
failures are retried here, below the request queue, so a single queued
request maps to at most ``max_retries + 1`` HTTP attempts.

Retryable:
    - 5xx server errors
    - 429 rate limiting
    - timeouts and connection/network errors

Delays grow as ``base_delay * multiplier ** attempt`` with ±jitter.
"""

import functools
import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Backoff policy for transient failures.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying)
        base_delay: Seconds before the first retry
        multiplier: Growth factor between retries
        jitter: Randomize each delay by ``jitter_ratio``
        jitter_ratio: Relative variance (0.2 = ±20%)
    """

    max_retries: int = 2
    base_delay: float = 0.5
    multiplier: float = 2.0
    jitter: bool = True
    jitter_ratio: float = 0.2

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if not 0.0 <= self.jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0.0 and 1.0")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0-indexed)."""
        delay = self.base_delay * self.multiplier**attempt
        if self.jitter:
            delay += random.uniform(-1.0, 1.0) * delay * self.jitter_ratio
        return max(0.0, delay)


def is_retryable_error(exception: BaseException) -> bool:
    """True for rate limiting, server errors, timeouts and network failures."""
    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return status_code == 429 or status_code >= 500
    # Covers TimeoutException and the connection errors
    return isinstance(exception, httpx.RequestError)


def with_retry(
    config: RetryConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorate a callable so retryable httpx failures are retried with backoff.

    Non-retryable errors, and the last retryable one, propagate unchanged.

    Example:
        >>> @with_retry(RetryConfig(max_retries=3))
        ... def fetch() -> httpx.Response:
        ...     response = client.get(url)
        ...     response.raise_for_status()
        ...     return response
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_error(e) or attempt >= config.max_retries:
                        raise
                    delay = config.delay_for(attempt)
                    attempt += 1
                    logger.info(
                        "Retry %d/%d in %.2fs after: %s", attempt, config.max_retries, delay, e
                    )
                    sleep(delay)

        return wrapper

    return decorator
