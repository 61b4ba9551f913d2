from __future__ import annotations

"""Deferred execution helpers for the drag pipeline.

Two concerns are kept apart:

- *Schedulers* delay a callback until the host's next idle tick. The drag
  session publishes its render state through one, so the widget under the
  pointer is never rebuilt in the middle of a native drag gesture.
- *Commit dispatchers* run the persistence commit and hand its outcome back
  on the UI thread. The threaded variant uses a daemon worker and returns
  through the scheduler, mirroring ``Thread(...).start()`` + ``after(0, ...)``.
"""

from collections import deque
import logging
import threading
from typing import Any, Callable, Deque, Protocol, Tuple, TypeVar

__all__ = [
    "Scheduler",
    "ImmediateScheduler",
    "DeferredScheduler",
    "TkScheduler",
    "CommitDispatcher",
    "ImmediateDispatcher",
    "ThreadedDispatcher",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        ...


class ImmediateScheduler:
    """Runs callbacks inline (no visual deferral)."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        callback(*args)


class DeferredScheduler:
    """Queues callbacks until the host calls :meth:`flush` once per frame.

    Callbacks queued while flushing run on the next flush, not the current one.
    """

    def __init__(self) -> None:
        self._queue: Deque[Tuple[Callable[..., Any], Tuple[Any, ...]]] = deque()
        self._lock = threading.Lock()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        with self._lock:
            self._queue.append((callback, args))

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def flush(self) -> int:
        """Run the callbacks queued so far; return how many ran."""
        with self._lock:
            batch = list(self._queue)
            self._queue.clear()
        for callback, args in batch:
            callback(*args)
        return len(batch)


class TkScheduler:
    """Defers callbacks to the Tk event loop's next idle point."""

    def __init__(self, widget) -> None:
        self._widget = widget

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._widget.after_idle(callback, *args)


class CommitDispatcher(Protocol):
    def submit(self, work: Callable[[], T], on_done: Callable[[T], None]) -> None:
        ...


class ImmediateDispatcher:
    """Runs the work inline and reports completion immediately."""

    def submit(self, work: Callable[[], T], on_done: Callable[[T], None]) -> None:
        on_done(work())


class ThreadedDispatcher:
    """Runs the work on a daemon thread; completion is marshalled through ``scheduler``."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler

    def submit(self, work: Callable[[], T], on_done: Callable[[T], None]) -> None:
        def run() -> None:
            result = work()
            self._scheduler.call_soon(on_done, result)

        threading.Thread(target=run, name="pagetree-commit", daemon=True).start()
