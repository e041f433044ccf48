"""Tests for the retry policy and transient-error classification."""

import httpx
import pytest

from autoplan.io.hevy_client import HevyAPIError, HevyUnavailable
from autoplan.io.retry import RetryPolicy, is_transient_error, retry_any

from tests.fakes import SleepRecorder


class Flaky:
    """Fails with the given errors, then returns "ok"."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


class TestIsTransientError:
    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_retryable_statuses(self, status):
        assert is_transient_error(HevyAPIError("boom", status))

    @pytest.mark.parametrize("status", [400, 401, 404, 422])
    def test_client_errors_not_retryable(self, status):
        assert not is_transient_error(HevyAPIError("boom", status))

    def test_connection_errors_retryable(self):
        assert is_transient_error(HevyUnavailable("down"))
        assert is_transient_error(httpx.ConnectError("refused"))

    def test_other_errors_not_retryable(self):
        assert not is_transient_error(ValueError("bad"))
        assert retry_any(ValueError("bad"))


class TestRetryPolicy:
    def test_delays_double(self):
        policy = RetryPolicy(max_attempts=5, base_delay=2.0)
        assert [policy.delay_for(n) for n in range(1, 5)] == [2.0, 4.0, 8.0, 16.0]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        sleep = SleepRecorder()
        func = Flaky(*[HevyAPIError("rate limited", 429)] * 4)
        result = await RetryPolicy(sleep=sleep).call(func)
        assert result == "ok"
        assert func.calls == 5
        assert sleep.delays == [2.0, 4.0, 8.0, 16.0]

    @pytest.mark.asyncio
    async def test_non_retryable_propagates_immediately(self):
        sleep = SleepRecorder()
        func = Flaky(HevyAPIError("bad request", 400))
        with pytest.raises(HevyAPIError):
            await RetryPolicy(sleep=sleep).call(func)
        assert func.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhausted_reraises_last_error(self):
        sleep = SleepRecorder()
        func = Flaky(*[HevyAPIError(f"fail {i}", 503) for i in range(3)])
        with pytest.raises(HevyAPIError, match="fail 2"):
            await RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleep).call(func)
        assert func.calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_retry_any_retries_everything(self):
        sleep = SleepRecorder()
        func = Flaky(ValueError("odd"))
        result = await RetryPolicy(retry_on=retry_any, sleep=sleep).call(func)
        assert result == "ok"
        assert func.calls == 2
