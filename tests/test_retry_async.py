"""Tests for retry_async()."""

import asyncio
import threading
import time

import pytest

from conftest import FakeTimer
from safezone import (
    CancellationSignal,
    Err,
    Ok,
    RetriesExhausted,
    RetryCancelled,
    RetryPolicy,
    retry_async,
)


class AsyncFlaky:
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError(f"failure {self.calls}")
        return self.calls


@pytest.mark.asyncio
async def test_eventual_success(signal, fake_timer):
    op = AsyncFlaky(failures=2)

    outcome = await retry_async(signal, op, 5, timer=fake_timer)

    assert outcome == Ok(3)
    assert fake_timer.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhausted(signal, fake_timer):
    op = AsyncFlaky(failures=100)

    outcome = await retry_async(signal, op, 3, timer=fake_timer)

    assert isinstance(outcome, Err)
    assert isinstance(outcome.error, RetriesExhausted)
    assert outcome.error.attempts == 3
    assert op.calls == 3


@pytest.mark.asyncio
async def test_returned_err_counts_as_failure(signal, fake_timer):
    async def op():
        return Err(ValueError("nope"))

    outcome = await retry_async(signal, op, 2, timer=fake_timer)

    assert isinstance(outcome.error.last_error, ValueError)


@pytest.mark.asyncio
async def test_cancelled_by_fake_timer(signal):
    timer = FakeTimer(cancel_on_wait=2)
    op = AsyncFlaky(failures=100)

    outcome = await retry_async(signal, op, 10, timer=timer)

    assert isinstance(outcome.error, RetryCancelled)
    assert outcome.error.attempts == 2


@pytest.mark.asyncio
async def test_cancelled_from_another_thread_during_real_wait():
    signal = CancellationSignal()
    op = AsyncFlaky(failures=100)

    threading.Timer(0.05, signal.cancel, kwargs={"reason": "shutdown"}).start()
    started = time.monotonic()
    outcome = await retry_async(signal, op, 5)

    assert isinstance(outcome.error, RetryCancelled)
    assert outcome.error.reason == "shutdown"
    assert op.calls == 1
    assert time.monotonic() - started < 0.9


@pytest.mark.asyncio
async def test_wait_does_not_block_event_loop():
    """Other tasks keep running while retry_async backs off."""
    signal = CancellationSignal()
    ticks = []

    async def ticker():
        for _ in range(5):
            ticks.append(time.monotonic())
            await asyncio.sleep(0.01)
        signal.cancel()

    op = AsyncFlaky(failures=100)
    outcome, _ = await asyncio.gather(retry_async(signal, op, 5), ticker())

    assert isinstance(outcome.error, RetryCancelled)
    assert len(ticks) == 5


@pytest.mark.asyncio
async def test_backoff_beyond_thread_timeout_limit_is_still_cancellable():
    signal = CancellationSignal()
    op = AsyncFlaky(failures=100)
    policy = RetryPolicy(max_attempts=2, initial_delay=1e10)

    threading.Timer(0.05, signal.cancel).start()
    started = time.monotonic()
    outcome = await retry_async(signal, op, policy)

    assert isinstance(outcome.error, RetryCancelled)
    assert op.calls == 1
    assert time.monotonic() - started < 0.9
