"""
Retry Manager for DNS queries.

Bounds the number of attempts spent on one query. Only transient outcomes
(timeouts by default) are retried; definitive answers such as NXDOMAIN or
an empty NOERROR are returned immediately. When all attempts are used up
the last result is returned as-is so the caller can treat it as "no answer".
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from .config import RetryConfig
from .enums import QueryStatus
from .models import QueryResult


class RetryManager:
    """
    Manages retry logic with optional exponential backoff.

    Total attempts = 1 initial + max_retries, which maps directly onto the
    dig-style "tries" setting.
    """

    def __init__(self, config: RetryConfig) -> None:
        """
        Initialize the retry manager.

        Args:
            config: Retry configuration with max_retries, delays, and retryable statuses
        """
        self._config = config

    @property
    def max_attempts(self) -> int:
        return self._config.max_retries + 1

    def _calculate_delay(self, attempt: int) -> float:
        """
        Calculate wait time with exponential backoff.

        delay(n) = base_delay * 2^n, capped at max_delay.

        Args:
            attempt: The current attempt number (0-indexed)
        """
        delay = self._config.base_delay_seconds * (2 ** attempt)
        return min(delay, self._config.max_delay_seconds)

    def is_retryable_status(self, status) -> bool:
        """
        Check if a query status is transient and should be retried.

        Args:
            status: QueryStatus enum or its string value
        """
        status_str = status.value if hasattr(status, 'value') else str(status)
        return status_str in self._config.retryable_statuses

    def should_retry(self, result: QueryResult) -> bool:
        """Determine if a query result warrants another attempt."""
        if result.status in (QueryStatus.NOERROR, QueryStatus.NXDOMAIN):
            return False
        return self.is_retryable_status(result.status)

    async def execute_query_with_retry(
        self,
        operation: Callable[[], Awaitable[QueryResult]],
    ) -> QueryResult:
        """
        Run a single-attempt query operation until it gives a definitive answer.

        Args:
            operation: Async callable performing exactly one query attempt

        Returns:
            The final QueryResult, with ``attempts`` set to the number of tries used
        """
        attempts = 0

        while True:
            result = await operation()
            attempts += 1

            if not self.should_retry(result) or attempts >= self.max_attempts:
                result.attempts = attempts
                return result

            delay = self._calculate_delay(attempts - 1)
            if delay > 0:
                await asyncio.sleep(delay)
