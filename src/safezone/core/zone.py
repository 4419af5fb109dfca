"""
Sequential execution zone.

A Zone runs a series of steps and stops at the first failure. Once a step
has failed every later exec()/try_() call is skipped, so a block of code
can be written without checking each step:

    def body(zone):
        config = zone.try_(load_config)
        zone.exec(lambda: connect(config))
        zone.exec(migrate)

    outcome = Zone.run(body, recovery=[retry_n(2)])

Recovery strategies are consulted in order when a step fails. Each one
returns RETRY (run the step again), RESOLVED (forget the error and carry
on) or None (not handled, try the next strategy).
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, TypeVar

from safezone.core.errors import ContextualError
from safezone.core.result import Err, Ok, Result

__all__ = [
    "Zone",
    "RecoveryAction",
    "RecoveryStrategy",
    "retry_n",
    "recover_from",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecoveryAction(Enum):
    RETRY = "retry"
    RESOLVED = "resolved"


RecoveryStrategy = Callable[[BaseException], "RecoveryAction | None"]


def retry_n(n: int) -> RecoveryStrategy:
    """
    Strategy that re-runs a failing step up to n more times.

    The budget is shared by every step of the zone it is attached to.
    """
    remaining = n

    def strategy(error: BaseException) -> RecoveryAction | None:
        nonlocal remaining
        if remaining > 0:
            remaining -= 1
            return RecoveryAction.RETRY
        return None

    return strategy


def recover_from(*error_types: type[BaseException]) -> RecoveryStrategy:
    """Strategy that treats the given exception types as resolved."""

    def strategy(error: BaseException) -> RecoveryAction | None:
        if isinstance(error, error_types):
            return RecoveryAction.RESOLVED
        return None

    return strategy


class Zone:
    """
    Holds the first error of a sequence of steps.

    Args:
        recovery: Strategies consulted when a step fails
        wrap_errors: Wrap step errors in a ContextualError naming the
            file and line of the exec()/try_() call
    """

    def __init__(
        self,
        recovery: Iterable[RecoveryStrategy] = (),
        wrap_errors: bool = True,
    ):
        self.recovery: list[RecoveryStrategy] = list(recovery)
        self.wrap_errors = wrap_errors
        self._error: BaseException | None = None
        self.attempts = 0

    @classmethod
    def run(
        cls,
        body: Callable[[Zone], Any],
        recovery: Iterable[RecoveryStrategy] = (),
        wrap_errors: bool = True,
    ) -> Result[None]:
        """Run body in a fresh zone and return Err(first error) or Ok(None)."""
        zone = cls(recovery=recovery, wrap_errors=wrap_errors)
        body(zone)
        if zone.error is not None:
            return Err(zone.error)
        return Ok(None)

    @property
    def error(self) -> BaseException | None:
        return self._error

    def exec(self, step: Callable[[], Any]) -> None:
        """Run step unless the zone has already failed."""
        if self._error is not None:
            return

        outcome = self._run(step)
        if isinstance(outcome, Err):
            self._error = self._wrap(outcome.error)

    def try_(self, step: Callable[[], T]) -> T | None:
        """Run step and return its value, or None if it failed or was skipped."""
        if self._error is not None:
            return None

        outcome = self._run(step)
        if isinstance(outcome, Err):
            self._error = self._wrap(outcome.error)
            return None
        return outcome.value

    def try_named(self, step: Callable[[], T]) -> T | None:
        """Like try_(), but runs step exactly once and skips the recovery strategies."""
        if self._error is not None:
            return None

        try:
            value = step()
        except Exception as e:
            outcome: Result[Any] = Err(e)
        else:
            outcome = value if isinstance(value, (Ok, Err)) else Ok(value)

        if isinstance(outcome, Err):
            self._error = self._wrap(outcome.error)
            return None
        return outcome.value

    def recover(self) -> None:
        """Forget the current error so later steps run again."""
        self._error = None

    def _run(self, step: Callable[[], Any]) -> Result[Any]:
        while True:
            self.attempts += 1
            try:
                value = step()
            except Exception as e:
                outcome: Result[Any] = Err(e)
            else:
                outcome = value if isinstance(value, (Ok, Err)) else Ok(value)

            if isinstance(outcome, Ok):
                self.attempts = 0
                return outcome

            action = self._consult(outcome.error)
            if action is RecoveryAction.RETRY:
                logger.debug(f"Zone: retrying step after {outcome.error!r}")
                continue
            if action is RecoveryAction.RESOLVED:
                logger.debug(f"Zone: recovered from {outcome.error!r}")
                self.attempts = 0
                return Ok(None)
            return outcome

    def _consult(self, error: BaseException) -> RecoveryAction | None:
        for strategy in self.recovery:
            action = strategy(error)
            if action is not None:
                return action
        return None

    def _wrap(self, error: BaseException) -> BaseException:
        if not self.wrap_errors:
            return error
        # [caller of exec/try_/try_named, exec/try_/try_named, _wrap]
        caller = traceback.extract_stack(limit=3)[0]
        return ContextualError(f"{caller.filename}:{caller.lineno}", cause=error)

    def __repr__(self) -> str:
        return f"Zone(error={self._error!r}, strategies={len(self.recovery)})"
