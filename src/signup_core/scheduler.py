"""
Execution contexts for the signal graph.

A scheduler runs callbacks after a delay on a single logical thread. The graph
uses it for debounce timers and for hopping onto the UI context before
assigning published outputs. Three implementations are provided:

- QtScheduler: single-shot QTimers on the GUI thread (production)
- VirtualTimeScheduler: a virtual clock advanced explicitly (tests)
- ImmediateScheduler: runs everything synchronously, ignoring delays
"""

from __future__ import annotations

import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer

from .error_handler import ErrorHandler, get_error_handler

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle to a callback that has been scheduled but may not have run yet."""

    def __init__(self, callback: Callable[[], None], on_cancel: Callable[[], None] | None = None) -> None:
        self._callback = callback
        self._on_cancel = on_cancel
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        """Cancel the task. Has no effect once the task has run or was cancelled."""
        if not self.pending:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def run(self) -> None:
        """Run the callback once, unless cancelled."""
        if not self.pending:
            return
        self._done = True
        self._callback()


class Scheduler(ABC):
    """Single-threaded execution context."""

    @abstractmethod
    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        """
        Run ``callback`` after ``delay_ms`` milliseconds.

        A delay of 0 means "as soon as the context is free", never inline for
        the Qt and virtual schedulers.
        """


class QtScheduler(Scheduler):
    """
    Scheduler backed by single-shot QTimers.

    Timers are parented to an owner QObject and released with deleteLater,
    so they must be created on the thread that runs the Qt event loop.
    Exceptions escaping a callback are passed to the ErrorHandler rather than
    unwinding into the event loop.
    """

    def __init__(self, parent: QObject | None = None, error_handler: ErrorHandler | None = None) -> None:
        self._owner = QObject(parent)
        self._owner.setObjectName("QtScheduler")
        self._error_handler = error_handler or get_error_handler()
        self._timers: set[QTimer] = set()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        timer = QTimer(self._owner)
        timer.setSingleShot(True)

        def release() -> None:
            timer.stop()
            self._timers.discard(timer)
            timer.deleteLater()

        task = ScheduledTask(lambda: self._run_guarded(callback), on_cancel=release)

        def fire() -> None:
            release()
            task.run()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(max(0, delay_ms))
        return task

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    def _run_guarded(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Scheduled callback failed: {e}")
            self._error_handler.handle(e, {"source": "QtScheduler"})


class VirtualTimeScheduler(Scheduler):
    """
    Scheduler driven by a virtual clock.

    Nothing runs until ``advance`` or ``run_until_idle`` is called. Tasks run
    ordered by due time, then by the order they were scheduled. Tasks
    scheduled while advancing run in the same call if they fall due before
    the target time.
    """

    def __init__(self) -> None:
        self._now = 0
        self._queue: list[tuple[int, int, ScheduledTask]] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> int:
        """Current virtual time in milliseconds."""
        return self._now

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.pending)

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback)
        heapq.heappush(self._queue, (self._now + max(0, delay_ms), next(self._sequence), task))
        return task

    def advance(self, ms: int) -> None:
        """Move the clock forward by ``ms`` milliseconds, running due tasks."""
        if ms < 0:
            raise ValueError("Cannot move virtual time backwards")
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if not task.pending:
                continue
            self._now = due
            task.run()
        self._now = target

    def run_until_idle(self) -> None:
        """Run every pending task, moving the clock to the last due time."""
        while self._queue:
            due, _, task = heapq.heappop(self._queue)
            if not task.pending:
                continue
            self._now = max(self._now, due)
            task.run()


class ImmediateScheduler(Scheduler):
    """Runs every callback synchronously. Debouncing becomes a pass-through."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback)
        task.run()
        return task
