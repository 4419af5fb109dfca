"""Cancellation signal shared between an owner and any number of waiters.

A CancellationSignal is level-triggered: once cancel() has been called it
stays cancelled, and every later wait returns immediately. The owner fires
it from any thread; waiters may block a thread (wait) or suspend a
coroutine (wait_async) on any event loop.

Design: Information Hiding (Parnas)
Waiters never see how they are woken. Threads block on a threading.Event;
coroutines park on a future of their own loop, which the cancelling
thread resolves through call_soon_threadsafe.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

__all__ = ["CancellationSignal", "CancelledError"]

logger = logging.getLogger(__name__)


class CancelledError(RuntimeError):
    """Raised by raise_if_cancelled() once the signal has fired."""

    def __init__(self, reason: Any = None):
        super().__init__("cancelled" if reason is None else f"cancelled: {reason}")
        self.reason = reason


class CancellationSignal:
    """
    Fire-once, level-triggered cancellation flag.

    Example:
        ```python
        signal = CancellationSignal()
        threading.Timer(5.0, signal.cancel).start()

        outcome = retry(signal, fetch, 10)
        ```
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Any = None
        self._async_waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []

    @classmethod
    def never(cls) -> CancellationSignal:
        """A signal nobody holds a reference to cancel."""
        return cls()

    @classmethod
    def after(cls, seconds: float) -> CancellationSignal:
        """
        A signal that fires by itself once seconds have elapsed.

        The timer thread is a daemon and holds the signal only until it
        fires; cancelling earlier by hand is allowed.
        """
        signal = cls()
        timer = threading.Timer(seconds, signal.cancel, kwargs={"reason": f"timeout after {seconds}s"})
        timer.daemon = True
        timer.start()
        return signal

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Any:
        """The reason passed to cancel(), or None."""
        return self._reason

    def cancel(self, reason: Any = None) -> bool:
        """
        Fire the signal.

        Args:
            reason: Optional description kept for the cancelled outcome

        Returns:
            True if this call fired the signal, False if it had already fired
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            waiters, self._async_waiters = self._async_waiters, []

        for loop, future in waiters:
            try:
                loop.call_soon_threadsafe(_resolve, future)
            except RuntimeError:
                # Loop already closed; nobody is left to wake
                pass

        logger.debug(f"Cancellation signal fired (reason={reason!r}, async_waiters={len(waiters)})")
        return True

    def raise_if_cancelled(self) -> None:
        """Raise CancelledError if the signal has fired."""
        if self._event.is_set():
            raise CancelledError(self._reason)

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block the calling thread until cancelled or timeout elapses.

        Returns:
            True if the signal fired, False on timeout
        """
        return self._event.wait(timeout)

    async def wait_async(self, timeout: float | None = None) -> bool:
        """
        Suspend the calling coroutine until cancelled or timeout elapses.

        Only the current task is suspended; the event loop keeps running.

        Returns:
            True if the signal fired, False on timeout
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        with self._lock:
            if self._event.is_set():
                return True
            entry = (loop, future)
            self._async_waiters.append(entry)

        try:
            await asyncio.wait({future}, timeout=timeout)
        finally:
            with self._lock:
                if entry in self._async_waiters:
                    self._async_waiters.remove(entry)
            if not future.done():
                future.cancel()

        return self._event.is_set()

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationSignal({state}, reason={self._reason!r})"


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)
