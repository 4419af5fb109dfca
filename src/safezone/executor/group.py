"""Fan-out/fan-in of independent tasks with error aggregation.

TaskGroup runs every launched operation on its own thread, waits for all
of them, and reports every failure in one AggregateFailure. AsyncTaskGroup
does the same for coroutine functions on a single event loop.

There is no supervision: a failing task never stops its siblings, and the
group has no cancellation input. Tasks run to completion unconditionally.

Failures are reported in launch order, whatever order the tasks finished
in, so the combined message is stable from run to run.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from uuid_extensions import uuid7

from safezone.core.errors import AggregateFailure, TaskFailure
from safezone.core.result import Err, Ok, Result

__all__ = ["TaskGroup", "AsyncTaskGroup", "TaskSubmitter"]

logger = logging.getLogger(__name__)


class TaskSubmitter(Protocol):
    """Anything that can run a callable later, e.g. a ThreadPoolExecutor."""

    def submit(self, fn: Callable[[], Any], /) -> Any: ...


def _failure_of(value: Any) -> BaseException | None:
    if isinstance(value, Err):
        return value.error
    return None


class TaskGroup:
    """
    Launch operations concurrently and collect their failures.

    By default each launch() starts a new thread. Pass an executor (anything
    with submit(fn)) to control where tasks run instead, for example a
    ThreadPoolExecutor or an inline executor in tests.

    Example:
        ```python
        group = TaskGroup()
        for url in urls:
            group.launch(lambda url=url: fetch(url))

        outcome = group.wait()
        if outcome.is_err():
            for error in outcome.error.errors:
                print(error)
        ```

    Used as a context manager, the group waits on exit and raises the
    AggregateFailure if any task failed:
        ```python
        with TaskGroup() as group:
            group.launch(step_one)
            group.launch(step_two)
        ```
    """

    def __init__(self, name: str | None = None, executor: TaskSubmitter | None = None):
        self.name = name or "group"
        self._executor = executor
        self._cond = threading.Condition(threading.Lock())
        self._launched = 0
        self._outstanding = 0
        self._failures: list[TaskFailure] = []
        self._outcome: Result[None] | None = None
        self._outcome_launched = -1

    def launch(self, operation: Callable[[], Any]) -> str:
        """
        Schedule operation and return its task id without waiting.

        The operation fails by raising an Exception or returning an Err.

        Returns:
            uuid7 string identifying the task
        """
        task_id = str(uuid7())
        with self._cond:
            index = self._launched
            self._launched += 1
            self._outstanding += 1

        try:
            if self._executor is None:
                thread = threading.Thread(
                    target=self._run,
                    args=(task_id, index, operation),
                    name=f"{self.name}-task-{index}",
                    daemon=True,
                )
                thread.start()
            else:
                self._executor.submit(lambda: self._run(task_id, index, operation))
        except BaseException:
            # Never started, so it will never finish
            with self._cond:
                self._outstanding -= 1
                self._cond.notify_all()
            raise

        logger.debug(f"TaskGroup {self.name}: launched task {index} ({task_id})")
        return task_id

    def _run(self, task_id: str, index: int, operation: Callable[[], Any]) -> None:
        error: BaseException | None
        try:
            error = _failure_of(operation())
        except Exception as e:
            error = e
        except BaseException as e:
            # Record interpreter-level exits too, so wait() cannot hang
            error = e
            self._finish(task_id, index, error)
            raise

        self._finish(task_id, index, error)

    def _finish(self, task_id: str, index: int, error: BaseException | None) -> None:
        with self._cond:
            if error is not None:
                self._failures.append(TaskFailure(task_id=task_id, index=index, error=error))
            self._outstanding -= 1
            if self._outstanding == 0:
                self._cond.notify_all()

        if error is not None:
            logger.debug(f"TaskGroup {self.name}: task {index} failed: {error!r}")

    def wait(self, timeout: float | None = None) -> Result[None]:
        """
        Block until every task launched so far has finished.

        Args:
            timeout: Give up after this many seconds

        Returns:
            Ok(None) if no task failed, Err(AggregateFailure) otherwise.
            Calling wait() again without new launches returns the same
            outcome object.

        Raises:
            TimeoutError: If timeout elapses with tasks still running
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._outstanding == 0, timeout):
                raise TimeoutError(
                    f"TaskGroup {self.name}: {self._outstanding} tasks still running "
                    f"after {timeout}s"
                )

            if self._outcome is None or self._outcome_launched != self._launched:
                if self._failures:
                    self._outcome = Err(AggregateFailure(self._failures))
                else:
                    self._outcome = Ok(None)
                self._outcome_launched = self._launched
            return self._outcome

    @property
    def outstanding(self) -> int:
        """Number of launched tasks that have not finished yet."""
        with self._cond:
            return self._outstanding

    def __len__(self) -> int:
        """Number of tasks launched."""
        with self._cond:
            return self._launched

    def __enter__(self) -> TaskGroup:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        outcome = self.wait()
        if exc_type is None and isinstance(outcome, Err):
            raise outcome.error

    def __repr__(self) -> str:
        with self._cond:
            return (
                f"TaskGroup(name={self.name!r}, launched={self._launched}, "
                f"outstanding={self._outstanding}, failed={len(self._failures)})"
            )


class AsyncTaskGroup:
    """
    TaskGroup for coroutine functions on one event loop.

    Example:
        ```python
        async with AsyncTaskGroup() as group:
            for url in urls:
                group.launch(lambda url=url: fetch(url))
        ```
    """

    def __init__(self, name: str | None = None):
        self.name = name or "group"
        self._launched = 0
        self._pending: set[asyncio.Task] = set()
        self._failures: list[TaskFailure] = []
        self._outcome: Result[None] | None = None
        self._outcome_launched = -1

    def launch(self, operation: Callable[[], Awaitable[Any]]) -> str:
        """
        Start operation() as a task on the running loop.

        Raises:
            RuntimeError: If no event loop is running
        """
        task_id = str(uuid7())
        index = self._launched
        self._launched += 1

        task = asyncio.get_running_loop().create_task(
            self._run(task_id, index, operation), name=f"{self.name}-task-{index}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        logger.debug(f"AsyncTaskGroup {self.name}: launched task {index} ({task_id})")
        return task_id

    async def _run(
        self, task_id: str, index: int, operation: Callable[[], Awaitable[Any]]
    ) -> None:
        error: BaseException | None
        try:
            error = _failure_of(await operation())
        except Exception as e:
            error = e
        except BaseException as e:
            # CancelledError and interpreter exits are failures too
            self._record(task_id, index, e)
            raise

        if error is not None:
            self._record(task_id, index, error)

    def _record(self, task_id: str, index: int, error: BaseException) -> None:
        # Single-threaded: appends cannot interleave
        self._failures.append(TaskFailure(task_id=task_id, index=index, error=error))
        logger.debug(f"AsyncTaskGroup {self.name}: task {index} failed: {error!r}")

    async def wait(self) -> Result[None]:
        """Wait for every task launched so far. Same outcome rules as TaskGroup.wait()."""
        while self._pending:
            # Failed tasks are already recorded; their exceptions must not abort the wait
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        if self._outcome is None or self._outcome_launched != self._launched:
            if self._failures:
                self._outcome = Err(AggregateFailure(self._failures))
            else:
                self._outcome = Ok(None)
            self._outcome_launched = self._launched
        return self._outcome

    def __len__(self) -> int:
        return self._launched

    async def __aenter__(self) -> AsyncTaskGroup:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        outcome = await self.wait()
        if exc_type is None and isinstance(outcome, Err):
            raise outcome.error

    def __repr__(self) -> str:
        return (
            f"AsyncTaskGroup(name={self.name!r}, launched={self._launched}, "
            f"pending={len(self._pending)}, failed={len(self._failures)})"
        )
