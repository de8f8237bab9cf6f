"""
One-shot timer schedulers.

Everything in tradedesk that waits does so by scheduling a callback, never
by blocking. Two interchangeable schedulers implement call_later():

  ThreadTimerScheduler : real wall-clock timers (threading.Timer), used by
                         the running console.
  VirtualScheduler     : a manual clock driven by advance(), used by tests
                         and anywhere deterministic timing is needed.
"""
import heapq
import itertools
import logging
import threading
from typing import Callable

log = logging.getLogger("tradedesk.timers")


class TimerHandle:
    """Cancellable reference to one scheduled callback. cancel() is idempotent."""

    def __init__(self, cancel_fn: Callable[[], None]):
        self._cancel_fn = cancel_fn
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._cancel_fn()


def _run_guarded(fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception:
        log.exception("Timer callback %r failed", fn)


class ThreadTimerScheduler:
    """
    Wall-clock scheduler backed by daemon threading.Timer threads.

    close() cancels every outstanding timer; call_later() after close()
    returns an already-cancelled handle.
    """

    def __init__(self):
        self._timers: dict[int, threading.Timer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._closed = False

    def call_later(self, delay: float, fn: Callable[[], None]) -> TimerHandle:
        timer_id = next(self._ids)

        def _fire():
            with self._lock:
                if self._timers.pop(timer_id, None) is None:
                    return   # cancelled or scheduler closed
            _run_guarded(fn)

        timer = threading.Timer(max(0.0, delay), _fire)
        timer.daemon = True

        def _cancel():
            with self._lock:
                t = self._timers.pop(timer_id, None)
            if t is not None:
                t.cancel()

        handle = TimerHandle(_cancel)
        with self._lock:
            closed = self._closed
            if not closed:
                self._timers[timer_id] = timer
        if closed:
            handle.cancel()
        else:
            timer.start()
        return handle

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for t in timers:
            t.cancel()
        if timers:
            log.debug("Cancelled %d outstanding timer(s)", len(timers))


class VirtualScheduler:
    """
    Deterministic scheduler with a manual clock (seconds, starting at 0).

    advance(seconds) fires every callback whose due time is reached, in due
    order; callbacks scheduled for the same instant fire in the order they
    were scheduled. Callbacks scheduled while advancing fire within the same
    advance() if they fall due before it ends.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._live: set[int] = set()
        self._seq = itertools.count()
        self._lock = threading.RLock()
        self._closed = False

    def call_later(self, delay: float, fn: Callable[[], None]) -> TimerHandle:
        with self._lock:
            seq = next(self._seq)

            def _cancel():
                with self._lock:
                    self._live.discard(seq)

            handle = TimerHandle(_cancel)
            if self._closed:
                handle.cancel()
                return handle
            heapq.heappush(self._queue, (self.now + max(0.0, delay), seq, fn))
            self._live.add(seq)
            return handle

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._live)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run due callbacks. Returns how many fired."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self.now + seconds
        fired = 0
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    break
                due, seq, fn = heapq.heappop(self._queue)
                if seq not in self._live:
                    continue
                self._live.discard(seq)
                self.now = due
            _run_guarded(fn)
            fired += 1
        with self._lock:
            self.now = target
        return fired

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._live.clear()
            self._queue.clear()
