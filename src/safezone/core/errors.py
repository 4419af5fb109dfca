"""
Error taxonomy for safezone.

Every failure produced by safezone is an exception instance carrying an
ErrorKind tag, so callers can branch on the kind without a chain of
isinstance checks:

- OPERATION_FAILED: a single invocation of a user operation failed
- RETRIES_EXHAUSTED: retry() used its whole attempt budget
- RETRY_CANCELLED: retry() was cancelled while waiting to try again
- AGGREGATE_FAILURE: one or more TaskGroup tasks failed

Exceptions raised by user code are not rewrapped; error_kind() classifies
them as OPERATION_FAILED.

Example:
    ```python
    outcome = retry(signal, fetch, 3)
    if outcome.is_err():
        match error_kind(outcome.error):
            case ErrorKind.RETRY_CANCELLED:
                reschedule()
            case ErrorKind.RETRIES_EXHAUSTED:
                give_up(outcome.error.last_error)
    ```
"""

from __future__ import annotations

import traceback
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = [
    "ErrorKind",
    "error_kind",
    "SafezoneError",
    "ContextualError",
    "OperationFailed",
    "RetriesExhausted",
    "RetryCancelled",
    "TaskFailure",
    "AggregateFailure",
    "new",
    "wrap",
]


class ErrorKind(Enum):
    """Classification of failures surfaced by safezone."""

    OPERATION_FAILED = "operation_failed"
    RETRIES_EXHAUSTED = "retries_exhausted"
    RETRY_CANCELLED = "retry_cancelled"
    AGGREGATE_FAILURE = "aggregate_failure"

    def __str__(self) -> str:
        return self.value


def error_kind(error: BaseException) -> ErrorKind:
    """Return the kind of any exception.

    safezone errors report their own kind; anything else is treated as the
    failure of a single operation.
    """
    if isinstance(error, SafezoneError):
        return error.kind
    return ErrorKind.OPERATION_FAILED


class SafezoneError(Exception):
    """Base class for all errors raised or returned by safezone."""

    kind: ErrorKind = ErrorKind.OPERATION_FAILED


# =============================================================================
# Contextual errors
# =============================================================================


class ContextualError(SafezoneError):
    """
    Error with a message, key/value context and the stack where it was created.

    The stack is captured at construction time so it survives being passed
    around as a value (for example inside an Err) long after the frame that
    created it has returned.

    Attributes:
        message: Human-readable description
        cause: Wrapped underlying error, also set as __cause__
        context: Key/value pairs attached with with_context()
        stack_trace: Formatted stack at creation time

    Example:
        ```python
        err = wrap(exc, "loading config").with_context("path", path)
        str(err)   # "loading config: [Errno 2] No such file... (path='app.toml')"
        err.details()  # same, followed by "Stack Trace:" and the frames
        ```
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context: dict[str, Any] = dict(context or {})
        # Drop this constructor's own frame
        self.stack_trace = "".join(traceback.format_stack()[:-1])
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, key: str, value: Any) -> ContextualError:
        """Attach a key/value pair and return self for chaining."""
        self.context[key] = value
        return self

    def unwrap(self) -> BaseException | None:
        return self.cause

    def details(self) -> str:
        """Full rendering including the captured stack trace."""
        return f"{self}\nStack Trace:\n{self.stack_trace}"

    def __str__(self) -> str:
        text = self.message
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        if self.context:
            pairs = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
            text = f"{text} ({pairs})"
        return text

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"cause={self.cause!r}, context={self.context!r})"
        )


class OperationFailed(ContextualError):
    """An exception escaped an operation and was converted into a value.

    Produced by guarded() and recovering(); the original exception is the
    cause.
    """

    kind = ErrorKind.OPERATION_FAILED


def new(message: str) -> ContextualError:
    """Create a ContextualError with no cause."""
    return ContextualError(message)


def wrap(error: BaseException, message: str) -> ContextualError:
    """Wrap an existing error with an additional message."""
    return ContextualError(message, cause=error)


# =============================================================================
# Retry outcomes
# =============================================================================


class RetriesExhausted(SafezoneError):
    """
    Every allowed attempt failed.

    Attributes:
        attempts: Number of times the operation was invoked
        last_error: Failure of the final attempt (also __cause__)
    """

    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"after {attempts} attempts, last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.__cause__ = last_error

    def __repr__(self) -> str:
        return f"RetriesExhausted(attempts={self.attempts}, last_error={self.last_error!r})"


class RetryCancelled(SafezoneError):
    """
    The cancellation signal fired while waiting for the next attempt.

    Distinct from RetriesExhausted: the operation might still succeed if
    retried later.

    Attributes:
        attempts: Number of times the operation was invoked before cancelling
        last_error: Failure of the last attempt (also __cause__)
        reason: Optional reason given when the signal was fired
    """

    kind = ErrorKind.RETRY_CANCELLED

    def __init__(self, attempts: int, last_error: BaseException, reason: Any = None):
        text = f"retry cancelled after {attempts} attempts"
        if reason is not None:
            text = f"{text} ({reason})"
        super().__init__(f"{text}, last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.reason = reason
        self.__cause__ = last_error

    def __repr__(self) -> str:
        return (
            f"RetryCancelled(attempts={self.attempts}, "
            f"last_error={self.last_error!r}, reason={self.reason!r})"
        )


# =============================================================================
# Task group outcomes
# =============================================================================


@dataclass(frozen=True)
class TaskFailure:
    """One failed task of a group.

    Attributes:
        task_id: Id returned by launch()
        index: Launch position within the group (0-based)
        error: What the task raised or returned
    """

    task_id: str
    index: int
    error: BaseException


class AggregateFailure(SafezoneError):
    """
    One or more tasks of a group failed.

    Failures are ordered by the launch position of their task, so the
    rendering is stable no matter which task finished first.

    Attributes:
        failures: TaskFailure records in launch order
        errors: The underlying errors in the same order
    """

    kind = ErrorKind.AGGREGATE_FAILURE

    def __init__(self, failures: Iterable[TaskFailure]):
        self.failures: tuple[TaskFailure, ...] = tuple(
            sorted(failures, key=lambda failure: failure.index)
        )
        if not self.failures:
            raise ValueError("AggregateFailure requires at least one failure")
        self.errors: tuple[BaseException, ...] = tuple(f.error for f in self.failures)
        super().__init__(self._render())

    def _render(self) -> str:
        lines = [f"multiple errors occurred ({len(self.errors)}):"]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.errors)

    def __repr__(self) -> str:
        return f"AggregateFailure(errors={list(self.errors)!r})"
