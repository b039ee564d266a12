"""
Bounded Retry
=============

Runs an async operation with a fixed attempt budget and reports the
outcome as a value instead of raising, so callers can branch on success
or failure without a try block around every call.

Version: 0.1.0
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from shared.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetrySuccess(Generic[T]):
    value: T
    attempts: int


@dataclass(frozen=True)
class RetryFailure:
    error: BaseException
    attempts: int


RetryOutcome = RetrySuccess[T] | RetryFailure


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "retrying_after_error",
        attempt=state.attempt_number,
        error=str(error),
        error_type=type(error).__name__ if error else None,
    )


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    attempts: int,
    retryable: Callable[[BaseException], bool],
    wait_seconds: float = 0.0,
) -> "RetryOutcome[T]":
    """
    Call ``fn`` up to ``attempts`` times.

    Args:
        fn: Zero-argument coroutine factory, invoked once per attempt
        attempts: Total attempt budget (>= 1)
        retryable: Errors for which this returns False end the loop at once
        wait_seconds: Pause between attempts

    Returns:
        RetrySuccess with the value, or RetryFailure with the last error.
        Either way ``attempts`` is the number of calls actually made.
    """
    attempt_count = 0

    async def attempt() -> T:
        nonlocal attempt_count
        attempt_count += 1
        return await fn()

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        retry=retry_if_exception(retryable),
        wait=wait_fixed(wait_seconds),
        before_sleep=_log_retry,
        reraise=True,
    )

    try:
        value = await retrying(attempt)
    except Exception as e:
        return RetryFailure(error=e, attempts=attempt_count)

    return RetrySuccess(value=value, attempts=attempt_count)
