"""
Bounded retry with exponential backoff and cancellation.

retry() invokes an operation until it succeeds, the attempt budget is used
up, or the cancellation signal fires while waiting between attempts.

Timeline for retry(signal, op, 3) where op always fails:

    attempt 1 -> fails -> wait 1s (or cancel)
    attempt 2 -> fails -> wait 2s (or cancel)
    attempt 3 -> fails -> RetriesExhausted(attempts=3), no wait

Attempts are strictly sequential. The first attempt always runs and a
success is returned even if the signal fired in the meantime; cancellation
is only observed while waiting.

Operations report failure by raising an Exception or by returning an Err.
A returned Ok is unwrapped; any other return value is the success payload.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from safezone.core.cancellation import CancellationSignal
from safezone.core.errors import RetriesExhausted, RetryCancelled
from safezone.core.result import Err, Ok, Result
from safezone.executor.timer import SignalTimer, Timer
from safezone.models.retry import RetryPolicy

__all__ = ["retry", "retry_async"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_TIMER = SignalTimer()


def retry(
    signal: CancellationSignal,
    operation: Callable[[], T | Result[T]],
    attempts: int | RetryPolicy,
    *,
    timer: Timer | None = None,
) -> Result[T]:
    """
    Invoke operation until it succeeds or the budget is spent.

    Args:
        signal: Cancellation checked while waiting between attempts
        operation: Zero-argument callable; raise or return Err to fail
        attempts: Maximum number of invocations, or a RetryPolicy
        timer: Waits between attempts (defaults to real time)

    Returns:
        Ok(value) on success, Err(RetriesExhausted) when every attempt
        failed, Err(RetryCancelled) when the signal fired while waiting.

    Raises:
        ValueError: If attempts < 1

    Example:
        ```python
        signal = CancellationSignal.after(30)
        outcome = retry(signal, lambda: client.get(url), 5)
        response = outcome.unwrap()
        ```
    """
    policy = _as_policy(attempts)
    timer = timer or _DEFAULT_TIMER

    attempt = 0
    while True:
        attempt += 1
        outcome = _invoke(operation)
        if isinstance(outcome, Ok):
            _log_success(attempt)
            return outcome

        failed = _after_failure(policy, attempt, outcome.error)
        if isinstance(failed, Err):
            return failed

        if timer.wait(signal, failed):
            return _cancelled(signal, attempt, outcome.error)


async def retry_async(
    signal: CancellationSignal,
    operation: Callable[[], Awaitable[T | Result[T]]],
    attempts: int | RetryPolicy,
    *,
    timer: Timer | None = None,
) -> Result[T]:
    """
    Coroutine version of retry().

    operation is called with no arguments and must return an awaitable.
    Waiting between attempts suspends only the calling task.

    Example:
        ```python
        outcome = await retry_async(signal, lambda: session.get(url), 5)
        ```
    """
    policy = _as_policy(attempts)
    timer = timer or _DEFAULT_TIMER

    attempt = 0
    while True:
        attempt += 1
        try:
            value = await operation()
        except Exception as e:
            outcome: Result[T] = Err(e)
        else:
            outcome = _as_result(value)

        if isinstance(outcome, Ok):
            _log_success(attempt)
            return outcome

        failed = _after_failure(policy, attempt, outcome.error)
        if isinstance(failed, Err):
            return failed

        if await timer.wait_async(signal, failed):
            return _cancelled(signal, attempt, outcome.error)


# =============================================================================
# Shared steps
# =============================================================================


def _as_policy(attempts: int | RetryPolicy) -> RetryPolicy:
    if isinstance(attempts, RetryPolicy):
        return attempts
    if isinstance(attempts, bool) or not isinstance(attempts, int):
        raise TypeError(f"attempts must be an int or RetryPolicy, got {type(attempts).__name__}")
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")
    return RetryPolicy.with_max_attempts(attempts)


def _invoke(operation: Callable[[], Any]) -> Result[Any]:
    try:
        value = operation()
    except Exception as e:
        return Err(e)
    return _as_result(value)


def _as_result(value: Any) -> Result[Any]:
    if isinstance(value, (Ok, Err)):
        return value
    return Ok(value)


def _after_failure(policy: RetryPolicy, attempt: int, error: BaseException) -> float | Err:
    """Delay before the next attempt, or the terminal Err if none is left."""
    delay = policy.delay_for_attempt(attempt)
    if delay is None:
        logger.debug(f"Attempt {attempt}/{policy.max_attempts} failed, giving up: {error!r}")
        return Err(RetriesExhausted(attempts=attempt, last_error=error))

    logger.debug(
        f"Attempt {attempt}/{policy.max_attempts} failed, retrying in {delay}s: {error!r}"
    )
    return delay


def _cancelled(signal: CancellationSignal, attempt: int, error: BaseException) -> Err:
    logger.debug(f"Retry cancelled after {attempt} attempts")
    return Err(RetryCancelled(attempts=attempt, last_error=error, reason=signal.reason))


def _log_success(attempt: int) -> None:
    if attempt > 1:
        logger.debug(f"Operation succeeded on attempt {attempt}")
