"""
In-app notification center.

Any part of the console can call add_notification() to surface a persistent
notification under the bell icon. Unless auto_close is explicitly False the
message is mirrored as a toast. The store is newest-first and only shrinks
through remove_notification() / clear_all_notifications(); toast expiry
never touches it.

All mutations run under one re-entrant lock shared with the toast
scheduler, so timer threads never observe a half-applied update. Bus
listeners and action operations always run outside the lock.
"""
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable

from tradedesk.models import (
    DEFAULT_TOAST_MS, IdSequence, InvalidNotification, Notification,
    NotificationAction, Toast,
)
from tradedesk.toasts import ToastScheduler

log = logging.getLogger("tradedesk.notifications")

Listener = Callable[[str, dict], None]


class NotificationCenter:

    def __init__(self, scheduler, default_toast_ms: int = DEFAULT_TOAST_MS):
        self._lock = threading.RLock()
        self._items: deque[Notification] = deque()   # newest first
        self._ids = IdSequence("n")
        self._listeners: list[Listener] = []
        self._closed = False
        self.toaster = ToastScheduler(scheduler, default_duration_ms=default_toast_ms,
                                      lock=self._lock, publish=self._publish)

    # ── Read access ───────────────────────────────────────────

    @property
    def notifications(self) -> list[Notification]:
        with self._lock:
            return list(self._items)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._items if not n.read)

    @property
    def toasts(self) -> list[Toast]:
        return self.toaster.toasts

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, notif_id: str) -> Notification | None:
        with self._lock:
            for n in self._items:
                if n.id == notif_id:
                    return n
        return None

    # ── Producers ─────────────────────────────────────────────

    def add_notification(self, title: str, message: str, kind: str,
                         auto_close: bool | None = None, duration: int | None = None,
                         action: NotificationAction | None = None,
                         *, created_at: datetime | None = None) -> Notification | None:
        """
        Prepend a new unread notification and, unless auto_close is False,
        show it as a toast for duration ms (default toast lifetime otherwise).

        auto_close=None means "not specified" and behaves as True.
        created_at is for records imported with their original timestamp.
        Raises InvalidNotification for an unknown kind, a non-positive
        duration or a malformed action.
        """
        if auto_close is not None and not isinstance(auto_close, bool):
            raise InvalidNotification(f"auto_close must be a boolean, got {auto_close!r}")
        show_toast = auto_close is not False
        n = Notification(
            id=self._ids.next(), title=title, message=message, kind=kind,
            auto_close=show_toast, duration=duration, action=action,
            created_at=created_at or datetime.now(timezone.utc),
        )
        with self._lock:
            if self._closed:
                log.debug("Notification dropped after shutdown: %s", title)
                return None
            self._items.appendleft(n)
            toast = None
            if show_toast:
                toast = self.toaster.show(message, kind, duration, publish=False)
        log.info("Notification %s [%s] %s", n.id, kind, title)
        self._publish("notification.added", n.to_dict())
        if toast is not None:
            self._publish("toast.shown", toast.to_dict())
        return n

    def add(self, payload: dict) -> Notification | None:
        """add_notification() from a payload dict (title, message, kind, ...)."""
        unknown = set(payload) - {"title", "message", "kind", "auto_close", "duration", "action"}
        if unknown:
            raise InvalidNotification(f"unknown notification fields: {sorted(unknown)}")
        for required in ("title", "message", "kind"):
            if required not in payload:
                raise InvalidNotification(f"notification payload missing {required!r}")
        return self.add_notification(**payload)

    def show_toast(self, message: str, kind: str = "info", duration: int | None = None) -> Toast | None:
        """Show a toast with no persistent notification behind it."""
        return self.toaster.show(message, kind, duration)

    # ── Consumers ─────────────────────────────────────────────

    def mark_as_read(self, notif_id: str) -> None:
        with self._lock:
            n = self.get(notif_id)
            changed = n.mark_read() if n is not None else False
        if changed:
            self._publish("notification.read", {"id": notif_id})

    def mark_all_as_read(self) -> None:
        with self._lock:
            changed = [n.id for n in self._items if n.mark_read()]
        if changed:
            self._publish("notification.all_read", {"ids": changed})

    def remove_notification(self, notif_id: str) -> None:
        with self._lock:
            n = self.get(notif_id)
            if n is not None:
                self._items.remove(n)
        if n is not None:
            self._publish("notification.removed", {"id": notif_id})

    def clear_all_notifications(self) -> None:
        with self._lock:
            count = len(self._items)
            self._items.clear()
        if count:
            log.info("Cleared %d notification(s)", count)
        self._publish("notification.cleared", {"count": count})

    def dismiss_toast(self, toast_id: str) -> None:
        self.toaster.remove(toast_id)

    def invoke_action(self, notif_id: str) -> bool:
        """
        Run the action attached to a notification, once.

        The notification's read state and presence are left alone; any such
        change is up to the operation itself. A failing operation is logged
        and reported as an error notification instead of propagating.
        """
        n = self.get(notif_id)
        if n is None or n.action is None:
            return False
        action = n.action
        try:
            action.operation()
        except Exception as exc:
            log.warning("Action %r on notification %s failed: %s", action.label, notif_id, exc)
            self.add_notification(
                title="Action failed",
                message=f"{action.label}: {exc}",
                kind="error",
            )
            return False
        log.debug("Action %r on notification %s completed", action.label, notif_id)
        return True

    # ── Bus ───────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a bus listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, payload)
            except Exception:
                log.exception("Notification listener %r failed on %s", listener, event)

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Tear down: cancel toast timers, drop listeners, ignore later producers."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._listeners.clear()
        self.toaster.close()
