"""
Cancellable timers used between retry attempts.

A Timer waits up to a delay, returning early if a CancellationSignal fires.
retry() takes one as a parameter so tests can substitute a timer that
records delays instead of sleeping.

Design Pattern: Strategy Pattern
SignalTimer is the production strategy; anything with the same two methods
can be injected.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Protocol, runtime_checkable

from safezone.core.cancellation import CancellationSignal

__all__ = ["Timer", "SignalTimer"]

logger = logging.getLogger(__name__)


@runtime_checkable
class Timer(Protocol):
    """Wait for a delay unless cancellation fires first."""

    def wait(self, signal: CancellationSignal, delay: float) -> bool:
        """Block up to delay seconds. Return True if cancelled."""
        ...

    async def wait_async(self, signal: CancellationSignal, delay: float) -> bool:
        """Suspend up to delay seconds. Return True if cancelled."""
        ...


class SignalTimer:
    """Real-time timer backed by the signal's own wait primitives.

    A signal that fires mid-wait ends the wait at once rather than at the
    end of the interval.
    """

    def wait(self, signal: CancellationSignal, delay: float) -> bool:
        logger.debug(f"Waiting {delay}s before next attempt")
        return signal.wait(_timeout(delay))

    async def wait_async(self, signal: CancellationSignal, delay: float) -> bool:
        logger.debug(f"Waiting {delay}s before next attempt")
        return await signal.wait_async(_timeout(delay))

    def __repr__(self) -> str:
        return "SignalTimer()"


def _timeout(delay: float) -> float | None:
    # threading rejects timeouts past TIMEOUT_MAX; None means until cancelled
    if math.isinf(delay) or delay >= threading.TIMEOUT_MAX:
        return None
    return delay
