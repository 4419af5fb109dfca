"""
Convert escaping exceptions into error values.

retry() and TaskGroup already treat a raised Exception as a failed
attempt. These helpers are for code that wants the same conversion at a
scope of its own, and for keeping the traceback of an unexpected exception
attached to the value that replaces it.

Example:
    ```python
    with recovering() as scope:
        process(batch)
    if scope.error is not None:
        failed.append(scope.error)

    group.launch(guarded(process_batch))
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

from safezone.core.errors import OperationFailed
from safezone.core.result import Err, Ok, Result

__all__ = ["Recovered", "recovering", "guarded"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Recovered:
    """Context manager that captures any Exception raised in its body.

    BaseExceptions that are not Exceptions (KeyboardInterrupt, SystemExit)
    propagate untouched.

    Attributes:
        error: OperationFailed wrapping the captured exception, or None
    """

    def __init__(self, message: str = "recovered from exception"):
        self.message = message
        self.error: OperationFailed | None = None

    def __enter__(self) -> Recovered:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        self.error = OperationFailed(self.message, cause=exc)
        logger.debug(f"Recovered from {type(exc).__name__}: {exc}")
        return True

    def result(self) -> Result[None]:
        """Ok(None) if the body completed, Err(error) if it raised."""
        if self.error is None:
            return Ok(None)
        return Err(self.error)


def recovering(message: str = "recovered from exception") -> Recovered:
    """Scope that turns an escaping Exception into Recovered.error."""
    return Recovered(message)


def guarded(operation: Callable[[], T], message: str | None = None) -> Callable[[], Result[T]]:
    """
    Wrap operation so it returns a Result instead of raising.

    Exceptions become Err(OperationFailed) whose cause is the original
    exception and whose context names the operation.
    """
    name = _describe(operation)

    def run() -> Result[T]:
        try:
            value = operation()
        except Exception as e:
            failure = OperationFailed(message or f"{name} failed", cause=e)
            return Err(failure.with_context("operation", name))
        if isinstance(value, (Ok, Err)):
            return value
        return Ok(value)

    run.__qualname__ = f"guarded({name})"
    return run


def _describe(value: Any) -> str:
    return getattr(value, "__qualname__", repr(value))
