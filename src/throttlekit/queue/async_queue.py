"""Concurrency-limited FIFO queue for async tasks."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from throttlekit.errors.exceptions import (
    ConfigurationError,
    InvalidTaskError,
    TaskClearedError,
)
from throttlekit.types import QueueState, QueueStats

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Any]
ErrorHandler = Callable[[BaseException], Any]


@dataclass(slots=True)
class _QueuedTask:
    fn: TaskFn
    # Set only for tasks submitted through run()
    future: asyncio.Future[Any] | None = None


class AsyncQueue:
    """Runs queued tasks with at most ``concurrency`` in flight.

    Tasks are zero-argument callables returning an awaitable; they start in
    submission order as slots free up. Failures of tasks added with ``add()``
    go to ``on_error`` (or the log), never to the caller.
    """

    def __init__(self, concurrency: int, *, on_error: ErrorHandler | None = None) -> None:
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency <= 0:
            raise ConfigurationError(
                "Concurrency must be a positive integer.",
                field="concurrency",
                value=concurrency,
            )
        self._concurrency = concurrency
        self.on_error = on_error

        self._pending: deque[_QueuedTask] = deque()
        self._running = 0
        self._paused = False
        self._tasks: set[asyncio.Task[None]] = set()

        self._idle = asyncio.Event()
        self._idle.set()
        self._empty = asyncio.Event()
        self._empty.set()

        # Stats
        self._completed = 0
        self._failed = 0
        self._cleared = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def running_count(self) -> int:
        return self._running

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def state(self) -> QueueState:
        if self._paused:
            return QueueState.PAUSED
        if self._running or self._pending:
            return QueueState.RUNNING
        return QueueState.IDLE

    @property
    def stats(self) -> QueueStats:
        return QueueStats(
            concurrency=self._concurrency,
            running=self._running,
            pending=len(self._pending),
            completed=self._completed,
            failed=self._failed,
            cleared=self._cleared,
            paused=self._paused,
        )

    def add(self, task_fn: TaskFn) -> None:
        """Queue a task. Must be called from inside a running event loop."""
        self._enqueue(_QueuedTask(task_fn))

    def add_all(self, task_fns: Iterable[TaskFn]) -> None:
        for task_fn in task_fns:
            self.add(task_fn)

    async def run(self, task_fn: TaskFn) -> Any:
        """Queue a task and wait for its result.

        The task's exception is raised here instead of going to ``on_error``.
        Raises TaskClearedError if ``clear()`` drops the task before it starts.
        """
        future = asyncio.get_running_loop().create_future()
        self._enqueue(_QueuedTask(task_fn, future))
        return await future

    async def on_idle(self) -> None:
        """Wait until nothing is running and nothing is pending."""
        if self._running == 0 and not self._pending:
            return
        await self._idle.wait()

    async def on_empty(self) -> None:
        """Wait until every queued task has started (running ones may still be in flight)."""
        if not self._pending:
            return
        await self._empty.wait()

    def pause(self) -> None:
        """Stop starting new tasks. Running tasks are left to finish."""
        self._paused = True
        logger.info("Queue paused (running=%d, pending=%d)", self._running, len(self._pending))

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        logger.info("Queue resumed, starting pending tasks")
        self._run_next()

    def clear(self) -> int:
        """Drop every task that has not started yet. Returns how many were dropped."""
        dropped = list(self._pending)
        self._pending.clear()
        self._cleared += len(dropped)

        for item in dropped:
            if item.future is not None and not item.future.done():
                item.future.set_exception(TaskClearedError("Task cleared before it started"))

        logger.info("Queue cleared. %d pending tasks removed.", len(dropped))
        self._update_events()
        return len(dropped)

    async def __aenter__(self) -> AsyncQueue:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.on_idle()

    def __repr__(self) -> str:
        return (
            f"<AsyncQueue concurrency={self._concurrency} running={self._running} "
            f"pending={len(self._pending)} state={self.state.value}>"
        )

    # ── Internals ──

    def _enqueue(self, item: _QueuedTask) -> None:
        if not callable(item.fn):
            raise InvalidTaskError(
                "Task must be a function that returns an awaitable.",
                received=item.fn,
            )
        # Fail before touching state when there is no loop to run on
        asyncio.get_running_loop()

        self._pending.append(item)
        self._idle.clear()
        self._empty.clear()
        self._run_next()

    def _run_next(self) -> None:
        """Start pending tasks while there is free capacity."""
        while not self._paused and self._running < self._concurrency and self._pending:
            item = self._pending.popleft()
            if item.future is not None and item.future.cancelled():
                # Caller of run() gave up before the task started
                continue
            self._running += 1
            task = asyncio.ensure_future(self._execute(item))
            self._tasks.add(task)
            task.add_done_callback(functools.partial(self._on_task_done, item))

        self._update_events()

    async def _execute(self, item: _QueuedTask) -> None:
        try:
            result = item.fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            self._failed += 1
            if item.future is not None:
                if not item.future.done():
                    item.future.set_exception(exc)
            else:
                self._handle_error(exc)
        else:
            self._completed += 1
            if item.future is not None and not item.future.done():
                item.future.set_result(result)

    def _on_task_done(self, item: _QueuedTask, task: asyncio.Task[None]) -> None:
        # Runs even when the task was cancelled before its first step
        self._tasks.discard(task)
        self._running -= 1
        if task.cancelled() and item.future is not None:
            item.future.cancel()
        self._run_next()

    def _update_events(self) -> None:
        if not self._pending:
            self._empty.set()
            if self._running == 0:
                self._idle.set()

    def _handle_error(self, exc: BaseException) -> None:
        if self.on_error is None:
            logger.error("Unhandled error in async queue task: %s", exc, exc_info=exc)
            return
        try:
            self.on_error(exc)
        except Exception:
            logger.exception("Queue error handler raised")
