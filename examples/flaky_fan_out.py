"""
Fan-out with retries - concurrent flaky calls behind one cancellation signal

This example demonstrates:
- TaskGroup running several flaky operations on their own threads
- retry() with a custom RetryPolicy inside every task
- One CancellationSignal stopping every backoff at once
- Reading the AggregateFailure to see which tasks failed and why

## Scenario
Four "services" are pinged concurrently. Two recover after a few failures,
one is permanently down, one is slow to fail. The whole run is bounded by
CancellationSignal.after(2.0): any task still backing off when it fires
reports RetryCancelled instead of RetriesExhausted.

## Run with
```bash
PYTHONPATH=src python examples/flaky_fan_out.py
```
"""

import logging
import threading

from safezone import (
    CancellationSignal,
    ErrorKind,
    RetryPolicy,
    TaskGroup,
    error_kind,
    retry,
)

POLICY = RetryPolicy(max_attempts=6, initial_delay=0.1, backoff_multiplier=2.0, max_delay=1.0)


class Service:
    def __init__(self, name: str, failures: int):
        self.name = name
        self.failures = failures
        self.calls = 0
        self._lock = threading.Lock()

    def ping(self) -> str:
        with self._lock:
            self.calls += 1
            calls = self.calls
        if calls <= self.failures:
            raise ConnectionError(f"{self.name}: attempt {calls} refused")
        return f"{self.name}: pong after {calls} calls"


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(threadName)s %(name)s: %(message)s")

    services = [
        Service("auth", failures=1),
        Service("billing", failures=3),
        Service("search", failures=100),
        Service("mail", failures=100),
    ]
    signal = CancellationSignal.after(2.0)

    group = TaskGroup(name="ping")
    for service in services:
        group.launch(lambda service=service: retry(signal, service.ping, POLICY))

    outcome = group.wait()

    for service in services:
        print(f"{service.name:8} called {service.calls} times")

    if outcome.is_ok():
        print("all services reachable")
        return

    for failure in outcome.error.failures:
        kind = error_kind(failure.error)
        label = "gave up" if kind is ErrorKind.RETRIES_EXHAUSTED else "cancelled"
        print(f"task {failure.index} {label}: {failure.error}")


if __name__ == "__main__":
    main()
