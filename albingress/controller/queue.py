"""Rate-limited work queue for reconcile requests.

Semantics follow the controller work queue model:

* An item is processed by at most one worker at a time.
* Adding an item that is already pending is a no-op, so repeated triggers
  for the same group coalesce into one reconcile.
* Adding an item while it is being processed marks it dirty; it is queued
  again once the worker calls ``done``.
* ``add_rate_limited`` delays re-adding a failing item with per-item
  exponential back-off until ``forget`` resets its failure count.

All methods are safe to call from any thread.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Hashable
from typing import Generic, TypeVar

T = TypeVar("T", bound=Hashable)


class RateLimitingQueue(Generic[T]):
    """Thread-safe, coalescing FIFO with delayed and rate-limited adds."""

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0) -> None:
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._cond = threading.Condition()
        self._queue: deque[T] = deque()
        self._dirty: set[T] = set()
        self._processing: set[T] = set()
        self._failures: dict[T, int] = {}
        self._timers: set[threading.Timer] = set()
        self._shutting_down = False

    def add(self, item: T) -> None:
        with self._cond:
            if self._shutting_down or item in self._dirty:
                return
            self._dirty.add(item)
            if item in self._processing:
                return
            self._queue.append(item)
            self._cond.notify()

    def get(self, timeout: float | None = None) -> tuple[T | None, bool]:
        """Block until an item is available.

        Returns ``(item, shutdown)``.  ``item`` is None when the queue shut
        down or *timeout* expired with nothing to hand out.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._queue and not self._shutting_down:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None, False
                self._cond.wait(remaining)
            if not self._queue:
                return None, True
            item = self._queue.popleft()
            self._processing.add(item)
            self._dirty.discard(item)
            return item, False

    def done(self, item: T) -> None:
        """Mark *item* as processed, re-queueing it if it was added meanwhile."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()

    def add_after(self, item: T, delay: float) -> None:
        if delay <= 0:
            self.add(item)
            return
        with self._cond:
            if self._shutting_down:
                return
            timer = threading.Timer(delay, self._fire, args=(item,))
            timer.daemon = True
            self._timers.add(timer)
        timer.start()

    def _fire(self, item: T) -> None:
        with self._cond:
            self._timers = {t for t in self._timers if t.is_alive() and t is not threading.current_thread()}
        self.add(item)

    def when(self, item: T) -> float:
        """Record a failure for *item* and return how long to wait before retrying."""
        with self._cond:
            failures = self._failures.get(item, 0)
            self._failures[item] = failures + 1
        return min(self._base_delay * (2 ** min(failures, 62)), self._max_delay)

    def add_rate_limited(self, item: T) -> None:
        self.add_after(item, self.when(item))

    def forget(self, item: T) -> None:
        with self._cond:
            self._failures.pop(item, None)

    def num_requeues(self, item: T) -> int:
        with self._cond:
            return self._failures.get(item, 0)

    def shut_down(self) -> None:
        """Stop handing out items and wake every blocked ``get``."""
        with self._cond:
            self._shutting_down = True
            timers = list(self._timers)
            self._timers.clear()
            self._cond.notify_all()
        for timer in timers:
            timer.cancel()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)
