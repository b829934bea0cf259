"""
HTTP status classification and retry with exponential backoff.

The classifier decides what a status code means; the retry helper
decides when to try again. Transport code only wires them together.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fuel_vision.domain.shared.errors import AnalysisCancelledError, AnalysisError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StatusClass(str, Enum):
    """Outcome class of an HTTP response."""

    SUCCESS = "SUCCESS"
    RETRYABLE_RATE_LIMIT = "RETRYABLE_RATE_LIMIT"  # 429
    RETRYABLE_SERVER_ERROR = "RETRYABLE_SERVER_ERROR"  # 5xx
    TERMINAL_AUTH = "TERMINAL_AUTH"  # 401
    TERMINAL = "TERMINAL"  # Any other status

    @property
    def is_retryable(self) -> bool:
        return self in (StatusClass.RETRYABLE_RATE_LIMIT, StatusClass.RETRYABLE_SERVER_ERROR)


def classify(status_code: int) -> StatusClass:
    """
    Classify an HTTP status code.

    Example:
        >>> classify(429)
        <StatusClass.RETRYABLE_RATE_LIMIT: 'RETRYABLE_RATE_LIMIT'>
        >>> classify(404)
        <StatusClass.TERMINAL: 'TERMINAL'>
    """
    if status_code == 200:
        return StatusClass.SUCCESS
    if status_code == 429:
        return StatusClass.RETRYABLE_RATE_LIMIT
    if status_code == 401:
        return StatusClass.TERMINAL_AUTH
    if 500 <= status_code <= 599:
        return StatusClass.RETRYABLE_SERVER_ERROR
    return StatusClass.TERMINAL


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget and backoff schedule.

    Attributes:
        max_attempts: Total attempts, including the first
        base_delay: Delay before the first retry, doubled each time
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1: {self.max_attempts}")

    def wait_strategy(self) -> wait_exponential:
        """Delay after each failed attempt: 1s, 2s, 4s, ... for the default base."""
        return wait_exponential(multiplier=self.base_delay, exp_base=2)


class RetryableError(Exception):
    """
    Signals that an attempt failed in a way worth retrying.

    Carries the error to surface once the budget is exhausted.
    """

    def __init__(self, final_error: AnalysisError) -> None:
        self.final_error = final_error
        super().__init__(str(final_error))


def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelledError()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"Attempt failed, retrying in {wait}s",
        attempt=retry_state.attempt_number,
        error=type(getattr(error, "final_error", error)).__name__,
    )


async def retry_with_backoff(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """
    Run an async operation, retrying RetryableError with exponential backoff.

    Any other exception propagates immediately. Cancellation is checked
    before every attempt and before every backoff sleep.

    Args:
        operation: Async callable receiving the 0-based attempt number
        policy: Retry budget and backoff schedule
        cancel_event: Optional event set by the caller to abort

    Returns:
        The operation's result

    Raises:
        AnalysisCancelledError: If cancel_event is set
        AnalysisError: The final_error of the last RetryableError
    """

    async def sleep(seconds: float) -> None:
        _check_cancelled(cancel_event)
        await asyncio.sleep(seconds)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait_strategy(),
        retry=retry_if_exception_type(RetryableError),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                _check_cancelled(cancel_event)
                return await operation(attempt.retry_state.attempt_number - 1)
    except RetryableError as e:
        logger.warning(
            "Retry budget exhausted",
            attempts=policy.max_attempts,
            error=type(e.final_error).__name__,
        )
        raise e.final_error from e

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry_with_backoff exited without result")
