"""Fluent handler chain over the outcome of one operation.

    handle(load).on(FileNotFoundError, use_defaults).otherwise(report)

The first matching on() consumes the error; later on() calls and
otherwise() do nothing. If the operation succeeded nothing is called.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from safezone.core.errors import AggregateFailure
from safezone.core.result import Result, attempt

__all__ = ["Handler", "handle", "handle_result", "matches"]

ErrorTarget = type[BaseException] | BaseException


def _chain(error: BaseException) -> Iterator[BaseException]:
    """Walk the error, its causes and the members of any aggregate."""
    seen: set[int] = set()
    stack = [error]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        if isinstance(current, AggregateFailure):
            stack.extend(reversed(current.errors))
        if current.__cause__ is not None:
            stack.append(current.__cause__)


def matches(error: BaseException, target: ErrorTarget) -> bool:
    """
    True if error, or anything it wraps, matches target.

    A class matches by isinstance; an exception instance matches only
    itself (sentinel errors).
    """
    for candidate in _chain(error):
        if isinstance(target, type):
            if isinstance(candidate, target):
                return True
        elif candidate is target:
            return True
    return False


class Handler:
    """Result of handle(); dispatches the error to the first matching on()."""

    def __init__(self, outcome: Result[Any]):
        self.outcome = outcome
        self.handled = False

    @property
    def error(self) -> BaseException | None:
        return self.outcome.check()

    def on(self, target: ErrorTarget, fn: Callable[[BaseException], Any]) -> Handler:
        error = self.error
        if error is not None and not self.handled and matches(error, target):
            self.handled = True
            fn(error)
        return self

    def otherwise(self, fn: Callable[[BaseException], Any]) -> Handler:
        error = self.error
        if error is not None and not self.handled:
            self.handled = True
            fn(error)
        return self

    def __repr__(self) -> str:
        return f"Handler(outcome={self.outcome}, handled={self.handled})"


def handle(operation: Callable[[], Any]) -> Handler:
    """Run operation now and return a Handler for its outcome."""
    return Handler(attempt(operation))


def handle_result(outcome: Result[Any]) -> Handler:
    """Build a Handler for an outcome that already exists, e.g. from retry()."""
    return Handler(outcome)
