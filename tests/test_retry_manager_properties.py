"""
Property-based tests for the Retry Manager module.

Uses Hypothesis to check attempt bounds, backoff growth, and that only
transient statuses are retried.
"""

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from cname_chain.config import RetryConfig
from cname_chain.enums import QueryStatus, RecordType
from cname_chain.models import QueryResult
from cname_chain.retry_manager import RetryManager


@st.composite
def retry_config_strategy(draw) -> RetryConfig:
    """Generate RetryConfig objects with small delays."""
    return RetryConfig(
        max_retries=draw(st.integers(min_value=0, max_value=5)),
        base_delay_seconds=draw(st.floats(min_value=0.0, max_value=0.01)),
        max_delay_seconds=draw(st.floats(min_value=0.01, max_value=0.1)),
    )


def _result(status: QueryStatus) -> QueryResult:
    return QueryResult(
        name="www.example.com",
        record_type=RecordType.A,
        status=status,
        rcode_text=status.value.upper(),
    )


class ScriptedOperation:
    """Returns the scripted statuses in order, repeating the last one."""

    def __init__(self, statuses: list[QueryStatus]) -> None:
        self.statuses = statuses
        self.calls = 0

    async def __call__(self) -> QueryResult:
        status = self.statuses[min(self.calls, len(self.statuses) - 1)]
        self.calls += 1
        return _result(status)


class TestExponentialBackoffProperty:
    """Property-based tests for the backoff delay calculation."""

    @given(
        config=retry_config_strategy(),
        num_attempts=st.integers(min_value=1, max_value=6),
    )
    @settings(max_examples=100)
    def test_exponential_backoff_delay_calculation(
        self,
        config: RetryConfig,
        num_attempts: int,
    ) -> None:
        """
        *For any* retry configuration, the delay before retry n SHALL be
        base_delay * 2^n capped at max_delay, and delays SHALL never shrink.
        """
        retry_manager = RetryManager(config)

        delays = [retry_manager._calculate_delay(attempt) for attempt in range(num_attempts)]

        for attempt, delay in enumerate(delays):
            expected = min(config.base_delay_seconds * (2 ** attempt), config.max_delay_seconds)
            assert abs(delay - expected) < 0.0001
            assert delay <= config.max_delay_seconds

        for i in range(1, len(delays)):
            assert delays[i] >= delays[i - 1]


class TestAttemptBoundProperty:
    """Property-based tests for the bounded number of attempts."""

    @given(tries=st.integers(min_value=1, max_value=6))
    @settings(max_examples=50)
    def test_timeouts_use_exactly_the_configured_tries(self, tries: int) -> None:
        """
        *For any* try count, a query that always times out SHALL be attempted
        exactly that many times and then returned as a TIMEOUT result.
        """
        retry_manager = RetryManager(RetryConfig.from_tries(tries))
        operation = ScriptedOperation([QueryStatus.TIMEOUT])

        result = asyncio.run(retry_manager.execute_query_with_retry(operation))

        assert operation.calls == tries
        assert result.attempts == tries
        assert result.status == QueryStatus.TIMEOUT

    @given(
        tries=st.integers(min_value=1, max_value=6),
        status=st.sampled_from([QueryStatus.NOERROR, QueryStatus.NXDOMAIN]),
    )
    @settings(max_examples=50)
    def test_definitive_answers_are_never_retried(
        self,
        tries: int,
        status: QueryStatus,
    ) -> None:
        """
        *For any* try count, NOERROR and NXDOMAIN results SHALL be returned
        after a single attempt.
        """
        retry_manager = RetryManager(RetryConfig.from_tries(tries))
        operation = ScriptedOperation([status])

        result = asyncio.run(retry_manager.execute_query_with_retry(operation))

        assert operation.calls == 1
        assert result.attempts == 1
        assert result.status == status

    @given(tries=st.integers(min_value=1, max_value=6))
    @settings(max_examples=50)
    def test_other_failures_are_not_retried_by_default(self, tries: int) -> None:
        """
        *For any* try count, a non-timeout failure SHALL NOT be retried with
        the default retryable statuses.
        """
        retry_manager = RetryManager(RetryConfig.from_tries(tries))
        operation = ScriptedOperation([QueryStatus.OTHER_FAILURE])

        result = asyncio.run(retry_manager.execute_query_with_retry(operation))

        assert operation.calls == 1
        assert result.status == QueryStatus.OTHER_FAILURE

    @given(timeouts_before_answer=st.integers(min_value=1, max_value=4))
    @settings(max_examples=30)
    def test_recovery_after_transient_timeouts(self, timeouts_before_answer: int) -> None:
        """
        *For any* number of leading timeouts below the try count, the first
        definitive answer SHALL be returned with the attempts counted.
        """
        retry_manager = RetryManager(RetryConfig.from_tries(timeouts_before_answer + 1))
        operation = ScriptedOperation(
            [QueryStatus.TIMEOUT] * timeouts_before_answer + [QueryStatus.NOERROR]
        )

        result = asyncio.run(retry_manager.execute_query_with_retry(operation))

        assert result.status == QueryStatus.NOERROR
        assert result.attempts == timeouts_before_answer + 1


class TestRetryableStatusProperty:
    """Tests for status classification."""

    def test_retryable_statuses_accept_enum_or_string(self) -> None:
        retry_manager = RetryManager(RetryConfig(retryable_statuses=["timeout", "other_failure"]))

        assert retry_manager.is_retryable_status(QueryStatus.TIMEOUT)
        assert retry_manager.is_retryable_status("other_failure")
        assert not retry_manager.is_retryable_status(QueryStatus.NXDOMAIN)

    def test_from_tries_never_goes_negative(self) -> None:
        assert RetryConfig.from_tries(0).max_retries == 0
        assert RetryConfig.from_tries(1).max_retries == 0
        assert RetryConfig.from_tries(3).max_retries == 2
