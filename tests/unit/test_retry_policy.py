"""
Unit tests for the retry policy wrapper.
"""

import pytest

from cv_assessment.common.config import Config
from cv_assessment.common.retry import RetryPolicy


class Flaky:
    """Async callable failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"attempt {self.calls} failed")
        return self.result


class TestRetryPolicy:
    """Tests for bounded retries with re-raise of the last error."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        flaky = Flaky(failures=2)

        result = await RetryPolicy.no_wait(max_attempts=3).call(flaky.__call__)

        assert result == "ok"
        assert flaky.calls == 3

    @pytest.mark.asyncio
    async def test_reraises_last_error_when_exhausted(self):
        flaky = Flaky(failures=5)

        with pytest.raises(ConnectionError, match="attempt 3 failed"):
            await RetryPolicy.no_wait(max_attempts=3).call(flaky.__call__)
        assert flaky.calls == 3

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self):
        flaky = Flaky(failures=1)

        with pytest.raises(ConnectionError):
            await RetryPolicy.no_wait(max_attempts=1).call(flaky.__call__)
        assert flaky.calls == 1

    @pytest.mark.asyncio
    async def test_arguments_are_forwarded(self):
        async def echo(a, b=None):
            return (a, b)

        assert await RetryPolicy.no_wait().call(echo, 1, b=2) == (1, 2)

    def test_from_config(self):
        policy = RetryPolicy.from_config()

        assert policy.max_attempts == Config.LLM_RETRY_ATTEMPTS
        assert policy.min_wait == Config.LLM_RETRY_MIN_WAIT
        assert policy.max_wait == Config.LLM_RETRY_MAX_WAIT

    def test_defaults(self):
        policy = RetryPolicy()

        assert (policy.max_attempts, policy.min_wait, policy.max_wait) == (3, 1.0, 10.0)
