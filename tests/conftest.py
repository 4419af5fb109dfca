"""
Pytest configuration and fixtures for safezone tests.

Provides a fake timer so retry tests never sleep, an inline executor for
deterministic TaskGroup runs, and reusable hypothesis strategies.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest
from hypothesis import strategies as st

from safezone import CancellationSignal


@dataclass
class FakeTimer:
    """Timer that records requested delays instead of sleeping.

    cancel_on_wait: fire the signal during the n-th wait (1-based)
    """

    cancel_on_wait: int | None = None
    delays: list[float] = field(default_factory=list)

    def wait(self, signal: CancellationSignal, delay: float) -> bool:
        self.delays.append(delay)
        if self.cancel_on_wait is not None and len(self.delays) >= self.cancel_on_wait:
            signal.cancel(reason="fake timer")
        return signal.is_cancelled

    async def wait_async(self, signal: CancellationSignal, delay: float) -> bool:
        return self.wait(signal, delay)


class InlineExecutor:
    """Runs submitted callables immediately, in submission order."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn: Callable[[], Any]) -> None:
        self.submitted += 1
        fn()


class Flaky:
    """Operation that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, value: Any = "ok"):
        self.failures = failures
        self.value = value
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        if self.calls <= self.failures:
            raise ValueError(f"failure {self.calls}")
        return self.value


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def signal() -> CancellationSignal:
    return CancellationSignal()


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()


# Hypothesis strategies for property-based testing

attempt_budgets = st.integers(min_value=1, max_value=12)


@st.composite
def failure_patterns(draw, max_size: int = 40):
    """List of booleans: True where the task at that index should fail."""
    return draw(st.lists(st.booleans(), min_size=0, max_size=max_size))
