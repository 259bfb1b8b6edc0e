"""
Retry with exponential backoff.

Used for rate-limited HTTP calls: the same endpoint is retried in place
before the caller moves on to its next source.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    """Maximum number of attempts (including initial attempt)"""

    initial_delay: float = 1.0
    """Delay before the second attempt in seconds"""

    backoff_multiplier: float = 2.0
    """Delay multiplier applied after each failed attempt"""

    max_delay: float = 8.0
    """Maximum delay between attempts in seconds"""

    jitter: bool = False
    """Add up to 10% random jitter to each delay"""

    retry_on: tuple = (Exception,)
    """Exception types to retry on"""

    @classmethod
    def from_settings(cls, settings: Any, retry_on: tuple) -> "RetryConfig":
        """Build from a RateLimitRetryConfig settings block."""
        return cls(
            max_attempts=settings.max_attempts,
            initial_delay=settings.initial_delay,
            backoff_multiplier=settings.backoff_multiplier,
            max_delay=settings.max_delay,
            retry_on=retry_on,
        )


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


class Retry:
    """
    Async retry handler.

    Example:
        retry = Retry(RetryConfig(retry_on=(RateLimitedException,)))
        result = await retry.execute_async(client.send, url, payload)
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay after a failed attempt.

        Args:
            attempt: Failed attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.config.initial_delay * (self.config.backoff_multiplier**attempt)
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay += random.uniform(0.0, delay * 0.1)

        return delay

    async def execute_async(
        self, func: Callable[..., Awaitable[Any]], *args, **kwargs
    ) -> Any:
        """
        Execute async function with retry logic.

        Args:
            func: Async function to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Function result

        Raises:
            RetryError: When all attempts exhausted
            Exception: Any non-retryable exception, unchanged
        """
        for attempt in range(self.config.max_attempts):
            try:
                result = await func(*args, **kwargs)
                if attempt > 0:
                    logger.info(
                        f"Operation succeeded on attempt "
                        f"{attempt + 1}/{self.config.max_attempts}"
                    )
                return result

            except self.config.retry_on as e:
                if attempt >= self.config.max_attempts - 1:
                    raise RetryError(
                        f"All {self.config.max_attempts} attempts exhausted. "
                        f"Last error: {type(e).__name__}: {e}",
                        attempts=self.config.max_attempts,
                        last_exception=e,
                    ) from e

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"{type(e).__name__}: {e}. "
                    f"Attempt {attempt + 1}/{self.config.max_attempts}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await asyncio.sleep(delay)

        raise RetryError(
            "Retry configured with zero attempts",
            attempts=self.config.max_attempts,
        )
