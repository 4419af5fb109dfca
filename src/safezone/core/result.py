"""
Result type: success value or failure value.

Result is the boundary type of safezone. retry() and TaskGroup.wait()
return one instead of raising, so the caller decides what a failure means.

Pattern matching (Python 3.10+):
    ```python
    match retry(signal, fetch, 3):
        case Ok(value):
            use(value)
        case Err(RetryCancelled() as cancelled):
            reschedule(cancelled.attempts)
        case Err(error):
            log.warning("giving up: %s", error)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar

__all__ = [
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "attempt",
    "must",
]

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """
    Successful outcome.

    Attributes:
        value: The operation's return value (None for operations run only
            for their side effects)
    """

    value: T = None  # type: ignore[assignment]

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def check(self) -> None:
        """Always None; an Ok carries no error."""
        return None

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply fn to the value."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U]]) -> Result[U]:
        """Apply fn, which itself returns a Result, to the value."""
        return fn(self.value)

    def __str__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err:
    """
    Failed outcome.

    Attributes:
        error: The exception describing the failure. It is not raised until
            unwrap() is called.
    """

    error: BaseException

    def __post_init__(self):
        if not isinstance(self.error, BaseException):
            raise TypeError(f"Err requires an exception, got {type(self.error).__name__}")

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def check(self) -> BaseException:
        """Return the error without raising it."""
        return self.error

    def unwrap(self) -> NoReturn:
        """Raise the contained error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[Any], Any]) -> Err:
        return self

    def flat_map(self, fn: Callable[[Any], Any]) -> Err:
        return self

    def __str__(self) -> str:
        return f"Err({type(self.error).__name__}: {self.error})"


# Result is a Union type: Ok[T] | Err
Result = Ok[T] | Err


def is_ok(result: Result[T]) -> bool:
    """Type guard: True if result is Ok."""
    return isinstance(result, Ok)


def is_err(result: Result[T]) -> bool:
    """Type guard: True if result is Err."""
    return isinstance(result, Err)


def attempt(fn: Callable[[], T]) -> Result[T]:
    """
    Call fn and capture its outcome as a Result.

    Exceptions become Err; a returned Result is passed through unchanged so
    operations that already speak Result are not double-wrapped.

    Example:
        ```python
        parsed = attempt(lambda: int(text)).unwrap_or(0)
        ```
    """
    try:
        value = fn()
    except Exception as e:
        return Err(e)
    if isinstance(value, (Ok, Err)):
        return value
    return Ok(value)


def must(value: T, error: BaseException | None = None) -> T:
    """Return value if error is None, otherwise raise error."""
    if error is not None:
        raise error
    return value
