"""
Core types for safezone.

- Result, Ok, Err: boundary type returned instead of raising
- CancellationSignal: level-triggered cancellation shared across threads
- Error taxonomy: ContextualError, OperationFailed, RetriesExhausted,
  RetryCancelled, AggregateFailure and their ErrorKind tags
- Sequential helpers: handle() chains, recovering()/guarded(), Zone
"""

from safezone.core.cancellation import CancellationSignal, CancelledError
from safezone.core.errors import (
    AggregateFailure,
    ContextualError,
    ErrorKind,
    OperationFailed,
    RetriesExhausted,
    RetryCancelled,
    SafezoneError,
    TaskFailure,
    error_kind,
    new,
    wrap,
)
from safezone.core.handle import Handler, handle, handle_result, matches
from safezone.core.recover import Recovered, guarded, recovering
from safezone.core.result import Err, Ok, Result, attempt, is_err, is_ok, must
from safezone.core.zone import RecoveryAction, RecoveryStrategy, Zone, recover_from, retry_n

__all__ = [
    "CancellationSignal",
    "CancelledError",
    "AggregateFailure",
    "ContextualError",
    "ErrorKind",
    "OperationFailed",
    "RetriesExhausted",
    "RetryCancelled",
    "SafezoneError",
    "TaskFailure",
    "error_kind",
    "new",
    "wrap",
    "Handler",
    "handle",
    "handle_result",
    "matches",
    "Recovered",
    "guarded",
    "recovering",
    "Err",
    "Ok",
    "Result",
    "attempt",
    "is_err",
    "is_ok",
    "must",
    "RecoveryAction",
    "RecoveryStrategy",
    "Zone",
    "recover_from",
    "retry_n",
]
