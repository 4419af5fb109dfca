"""
safezone: ergonomic error handling for Python callables.

Design Pattern: Façade Pattern
This module re-exports the public API so callers only import safezone.

Example:
    ```python
    from safezone import CancellationSignal, TaskGroup, retry

    signal = CancellationSignal.after(60)

    group = TaskGroup()
    for host in hosts:
        group.launch(lambda host=host: retry(signal, lambda: ping(host), 4))

    outcome = group.wait()
    if outcome.is_err():
        print(outcome.error)  # multiple errors occurred (2): ...
    ```
"""

import logging

# Core types
from safezone.core import (
    AggregateFailure,
    CancellationSignal,
    CancelledError,
    ContextualError,
    Err,
    ErrorKind,
    Handler,
    Ok,
    OperationFailed,
    Recovered,
    RecoveryAction,
    Result,
    RetriesExhausted,
    RetryCancelled,
    SafezoneError,
    TaskFailure,
    Zone,
    attempt,
    error_kind,
    guarded,
    handle,
    handle_result,
    is_err,
    is_ok,
    matches,
    must,
    new,
    recover_from,
    recovering,
    retry_n,
    wrap,
)

# Configuration
from safezone.models import RetryPolicy

# Execution
from safezone.executor import (
    AsyncTaskGroup,
    SignalTimer,
    TaskGroup,
    Timer,
    retry,
    retry_async,
)

# Library logging: silent unless the application configures handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Version
__version__ = "0.1.0"

__all__ = [
    # Result
    "Result",
    "Ok",
    "Err",
    "is_ok",
    "is_err",
    "attempt",
    "must",

    # Errors
    "SafezoneError",
    "ContextualError",
    "OperationFailed",
    "RetriesExhausted",
    "RetryCancelled",
    "AggregateFailure",
    "TaskFailure",
    "ErrorKind",
    "error_kind",
    "new",
    "wrap",

    # Cancellation
    "CancellationSignal",
    "CancelledError",

    # Retry
    "RetryPolicy",
    "retry",
    "retry_async",
    "Timer",
    "SignalTimer",

    # Task groups
    "TaskGroup",
    "AsyncTaskGroup",

    # Sequential helpers
    "Handler",
    "handle",
    "handle_result",
    "matches",
    "Recovered",
    "recovering",
    "guarded",
    "Zone",
    "RecoveryAction",
    "recover_from",
    "retry_n",

    # Metadata
    "__version__",
]
