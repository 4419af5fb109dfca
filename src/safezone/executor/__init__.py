"""
Concurrent execution: retry with backoff and task groups.

- retry / retry_async: bounded retry, exponential backoff, cancellable waits
- TaskGroup / AsyncTaskGroup: fan-out with aggregated failures
- Timer / SignalTimer: the cancellable wait used between attempts
"""

from safezone.executor.group import AsyncTaskGroup, TaskGroup, TaskSubmitter
from safezone.executor.retry import retry, retry_async
from safezone.executor.timer import SignalTimer, Timer

__all__ = [
    "AsyncTaskGroup",
    "TaskGroup",
    "TaskSubmitter",
    "retry",
    "retry_async",
    "SignalTimer",
    "Timer",
]
