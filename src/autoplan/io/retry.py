"""Retry policy for remote calls with fixed exponential backoff (tenacity)."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429})


def status_code_of(exception: BaseException) -> int | None:
    """HTTP status carried by an exception, if any."""
    code = getattr(exception, "status_code", None)
    if isinstance(code, int):
        return code
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    return None


def is_transient_error(exception: BaseException) -> bool:
    """
    Determine if an exception is worth retrying.

    Retryable: rate limit (429), server errors (5xx), connection failures
    and timeouts.  Everything else propagates immediately.
    """
    code = status_code_of(exception)
    if code is not None:
        return code in RETRYABLE_STATUS_CODES or code >= 500
    return isinstance(exception, (httpx.TransportError, ConnectionError, TimeoutError))


def retry_any(exception: BaseException) -> bool:
    """Retry predicate that treats every error as retryable."""
    return isinstance(exception, Exception)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with delay ``base_delay × 2^(attempt-1)`` after each
    failed attempt.  No jitter.
    """

    max_attempts: int = 5
    base_delay: float = 2.0
    retry_on: Callable[[BaseException], bool] = is_transient_error
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.base_delay * (2 ** (attempt - 1))

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Execute an async call under this policy.

        Raises:
            Exception: The first non-retryable error, or the last error once
                attempts are exhausted
        """
        retrying = AsyncRetrying(
            sleep=self.sleep,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2, min=0),
            retry=retry_if_exception(self.retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(func, *args, **kwargs)
