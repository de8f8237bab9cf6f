"""
Transient toast alerts.

A toast is shown, lives for its duration, then removes itself. Manual
dismissal and expiry both go through remove(), which is idempotent, so a
timer that fires after the user already closed the toast does nothing.
"""
import logging
import threading
from typing import Callable

from tradedesk.models import (
    DEFAULT_TOAST_MS, IdSequence, Toast, validate_duration, validate_kind, validate_text,
)
from tradedesk.timers import TimerHandle

log = logging.getLogger("tradedesk.toasts")


class ToastScheduler:

    def __init__(self, scheduler, default_duration_ms: int = DEFAULT_TOAST_MS,
                 lock=None,
                 publish: Callable[[str, dict], None] | None = None):
        self._scheduler = scheduler
        self.default_duration_ms = validate_duration(default_duration_ms)
        self._lock = lock or threading.RLock()
        self._publish = publish
        self._ids = IdSequence("t")
        self._toasts: list[Toast] = []           # display order, oldest first
        self._timers: dict[str, TimerHandle] = {}
        self._closed = False

    @property
    def toasts(self) -> list[Toast]:
        with self._lock:
            return list(self._toasts)

    def show(self, message: str, kind: str = "info", duration: int | None = None,
             publish: bool = True) -> Toast | None:
        """
        Append a toast and arm its expiry timer.

        publish=False leaves announcing the toast to the caller, for callers
        that hold the shared lock and publish once it is released.
        """
        validate_text("message", message)
        validate_kind(kind)
        duration = validate_duration(duration) or self.default_duration_ms
        with self._lock:
            if self._closed:
                log.debug("Toast dropped after close: %s", message)
                return None
            toast = Toast(id=self._ids.next(), message=message, kind=kind, duration=duration)
            self._toasts.append(toast)
            self._timers[toast.id] = self._scheduler.call_later(
                duration / 1000.0, lambda: self.remove(toast.id))
        log.debug("Toast %s shown for %dms", toast.id, duration)
        if publish:
            self._emit("toast.shown", toast.to_dict())
        return toast

    def remove(self, toast_id: str) -> bool:
        """Remove a toast now. Returns False if it was already gone."""
        with self._lock:
            before = len(self._toasts)
            self._toasts[:] = [t for t in self._toasts if t.id != toast_id]
            removed = len(self._toasts) < before
            timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        if removed:
            self._emit("toast.removed", {"id": toast_id})
        return removed

    def close(self) -> None:
        """Cancel every pending expiry and drop all visible toasts."""
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
            self._toasts.clear()
        for timer in timers:
            timer.cancel()

    def _emit(self, event: str, payload: dict) -> None:
        if self._publish is not None:
            self._publish(event, payload)
