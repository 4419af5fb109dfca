"""Tests for retry(): attempt counting, backoff schedule and cancellation."""

import threading
import time

import pytest

from conftest import FakeTimer, Flaky
from safezone import (
    CancellationSignal,
    Err,
    ErrorKind,
    Ok,
    RetriesExhausted,
    RetryCancelled,
    RetryPolicy,
    SignalTimer,
    error_kind,
    retry,
)


def test_success_on_first_attempt_never_waits(signal, fake_timer):
    op = Flaky(failures=0, value=42)

    outcome = retry(signal, op, 5, timer=fake_timer)

    assert outcome == Ok(42)
    assert op.calls == 1
    assert fake_timer.delays == []


def test_fails_twice_then_succeeds(signal, fake_timer):
    """retry(ctx, op, 3) where op fails twice: 3 calls, success."""
    op = Flaky(failures=2)

    outcome = retry(signal, op, 3, timer=fake_timer)

    assert outcome.is_ok()
    assert outcome.unwrap() == "ok"
    assert op.calls == 3
    assert fake_timer.delays == [1.0, 2.0]


def test_always_failing_exhausts_attempts(signal, fake_timer):
    """retry(ctx, op, 2) where op always fails: 2 calls, RetriesExhausted(2)."""
    op = Flaky(failures=100)

    outcome = retry(signal, op, 2, timer=fake_timer)

    assert isinstance(outcome, Err)
    assert isinstance(outcome.error, RetriesExhausted)
    assert outcome.error.attempts == 2
    assert op.calls == 2
    assert error_kind(outcome.error) is ErrorKind.RETRIES_EXHAUSTED


def test_exhausted_preserves_last_error_as_cause(signal, fake_timer):
    op = Flaky(failures=100)

    outcome = retry(signal, op, 3, timer=fake_timer)

    error = outcome.error
    assert isinstance(error.last_error, ValueError)
    assert str(error.last_error) == "failure 3"
    assert error.__cause__ is error.last_error
    assert "after 3 attempts" in str(error)
    assert "failure 3" in str(error)


def test_last_attempt_does_not_wait(signal, fake_timer):
    retry(signal, Flaky(failures=100), 4, timer=fake_timer)

    # Three waits for four attempts
    assert fake_timer.delays == [1.0, 2.0, 4.0]


def test_single_attempt_no_retry_no_wait(signal, fake_timer):
    op = Flaky(failures=1)

    outcome = retry(signal, op, 1, timer=fake_timer)

    assert outcome.error.attempts == 1
    assert op.calls == 1
    assert fake_timer.delays == []


@pytest.mark.parametrize("attempts", [0, -1, -10])
def test_non_positive_attempts_rejected(signal, fake_timer, attempts):
    op = Flaky(failures=0)

    with pytest.raises(ValueError):
        retry(signal, op, attempts, timer=fake_timer)

    assert op.calls == 0


def test_non_int_attempts_rejected(signal):
    with pytest.raises(TypeError):
        retry(signal, lambda: None, "3")


def test_returned_err_counts_as_failure(signal, fake_timer):
    calls = []

    def op():
        calls.append(1)
        if len(calls) < 2:
            return Err(KeyError("missing"))
        return Ok("found")

    outcome = retry(signal, op, 3, timer=fake_timer)

    assert outcome == Ok("found")
    assert len(calls) == 2


def test_cancel_during_first_wait():
    signal = CancellationSignal()
    timer = FakeTimer(cancel_on_wait=1)
    op = Flaky(failures=100)

    outcome = retry(signal, op, 5, timer=timer)

    assert isinstance(outcome.error, RetryCancelled)
    assert not isinstance(outcome.error, RetriesExhausted)
    assert outcome.error.attempts == 1
    assert outcome.error.reason == "fake timer"
    assert error_kind(outcome.error) is ErrorKind.RETRY_CANCELLED
    assert op.calls == 1


def test_cancel_during_later_wait():
    signal = CancellationSignal()
    timer = FakeTimer(cancel_on_wait=3)
    op = Flaky(failures=100)

    outcome = retry(signal, op, 10, timer=timer)

    assert outcome.error.attempts == 3
    assert op.calls == 3
    assert timer.delays == [1.0, 2.0, 4.0]


def test_already_cancelled_still_runs_first_attempt(fake_timer):
    signal = CancellationSignal()
    signal.cancel()
    op = Flaky(failures=100)

    outcome = retry(signal, op, 5, timer=fake_timer)

    assert isinstance(outcome.error, RetryCancelled)
    assert op.calls == 1


def test_success_wins_over_cancellation(fake_timer):
    signal = CancellationSignal()
    signal.cancel()

    outcome = retry(signal, Flaky(failures=0), 5, timer=fake_timer)

    assert outcome == Ok("ok")


def test_policy_controls_schedule(signal, fake_timer):
    policy = RetryPolicy(max_attempts=5, initial_delay=0.5, backoff_multiplier=3.0, max_delay=4.0)

    outcome = retry(signal, Flaky(failures=100), policy, timer=fake_timer)

    assert outcome.error.attempts == 5
    assert fake_timer.delays == [0.5, 1.5, 4.0, 4.0]


def test_non_exception_base_exceptions_propagate(signal, fake_timer):
    def op():
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        retry(signal, op, 3, timer=fake_timer)


def test_real_timer_cancellation_shortens_wait():
    """Cancellation from another thread ends a 1s backoff well before it elapses."""
    signal = CancellationSignal()
    op = Flaky(failures=100)

    threading.Timer(0.05, signal.cancel).start()
    started = time.monotonic()
    outcome = retry(signal, op, 5)
    elapsed = time.monotonic() - started

    assert isinstance(outcome.error, RetryCancelled)
    assert op.calls == 1
    assert elapsed < 0.9


def test_backoff_beyond_thread_timeout_limit_is_still_cancellable():
    """A backoff longer than threading allows waits until the signal fires."""
    signal = CancellationSignal()
    op = Flaky(failures=100)
    policy = RetryPolicy(max_attempts=2, initial_delay=1e10)

    threading.Timer(0.05, signal.cancel).start()
    started = time.monotonic()
    outcome = retry(signal, op, policy)

    assert isinstance(outcome.error, RetryCancelled)
    assert op.calls == 1
    assert time.monotonic() - started < 0.9


def test_signal_timer_accepts_delay_above_timeout_max():
    signal = CancellationSignal()
    signal.cancel()

    assert SignalTimer().wait(signal, threading.TIMEOUT_MAX * 2) is True


def test_slow_operation_cancelled_before_wait():
    """Signal fires while the first attempt is still running."""
    signal = CancellationSignal()

    def slow():
        time.sleep(0.1)
        raise RuntimeError("slow operation")

    threading.Timer(0.02, signal.cancel).start()
    started = time.monotonic()
    outcome = retry(signal, slow, 5)

    assert isinstance(outcome.error, RetryCancelled)
    assert outcome.error.attempts == 1
    assert time.monotonic() - started < 0.9
