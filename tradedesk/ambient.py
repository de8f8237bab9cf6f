"""
Background activity generators.

Each AmbientTier ticks on a fixed interval and asks its EventSource for a
notification payload; the source decides (randomly, or from a scripted
sequence in tests) whether anything happens on this tick. start() returns
a cancel function that must be called when the owner goes away; after it
runs no tier fires again.
"""
import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Protocol

from tradedesk.models import Notification, NotificationAction, validate_kind

log = logging.getLogger("tradedesk.ambient")

Payload = dict[str, Any]
Template = Payload | Callable[[random.Random], Payload]


class EventSource(Protocol):
    def draw(self) -> Payload | None:
        """Return add_notification() kwargs for this tick, or None to skip."""
        ...


class RandomEventSource:
    """Fires with the given probability per tick, picking one template uniformly."""

    def __init__(self, pool: list[Template], probability: float,
                 rng: random.Random | None = None):
        if not pool:
            raise ValueError("event pool must not be empty")
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {probability}")
        self.pool = list(pool)
        self.probability = probability
        self.rng = rng or random.Random()

    def draw(self) -> Payload | None:
        if self.rng.random() >= self.probability:
            return None
        template = self.rng.choice(self.pool)
        payload = template(self.rng) if callable(template) else dict(template)
        validate_kind(payload.get("kind"))
        return payload


class SequenceEventSource:
    """Replays a fixed list of payloads (None entries skip a tick), then stays quiet."""

    def __init__(self, items: Iterable[Payload | None]):
        self._items = list(items)
        self._pos = 0

    def draw(self) -> Payload | None:
        if self._pos >= len(self._items):
            return None
        item = self._items[self._pos]
        self._pos += 1
        return dict(item) if item is not None else None


@dataclass
class AmbientTier:
    name: str
    interval_seconds: float
    source: EventSource


class AmbientEventGenerator:

    def __init__(self, center, scheduler, tiers: list[AmbientTier]):
        for tier in tiers:
            if tier.interval_seconds <= 0:
                raise ValueError(f"tier {tier.name!r} needs a positive interval")
        self._center = center
        self._scheduler = scheduler
        self._tiers = list(tiers)
        self._handles: dict[str, Any] = {}
        # re-entrant: a listener or action reached from _tick may call stop()
        self._lock = threading.RLock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> Callable[[], None]:
        """Arm every tier. Returns the cancel function (same as stop)."""
        with self._lock:
            if not self._running:
                self._running = True
                for tier in self._tiers:
                    self._arm(tier)
                log.info("Ambient generator started (%s)",
                         ", ".join(f"{t.name}/{t.interval_seconds:g}s" for t in self._tiers))
        return self.stop

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()
        log.info("Ambient generator stopped")

    def _arm(self, tier: AmbientTier) -> None:
        self._handles[tier.name] = self._scheduler.call_later(
            tier.interval_seconds, lambda: self._tick(tier))

    def _tick(self, tier: AmbientTier) -> None:
        # no add may follow a completed stop()
        with self._lock:
            if not self._running:
                return
            self._arm(tier)
            payload = tier.source.draw()
            if payload is None:
                return
            log.debug("Ambient %s tick produced %r", tier.name, payload.get("title"))
            self._center.add_notification(**payload)


# ── Default console activity ──────────────────────────────────

def _new_customer(rng: random.Random) -> Payload:
    return {
        "title": "New Customer Registered",
        "message": f"Customer {rng.randrange(1000)} has joined the platform",
        "kind": "success",
    }


def _stock_alert(rng: random.Random) -> Payload:
    return {
        "title": "Stock Alert",
        "message": f"Product {rng.randrange(50)} is running low on stock",
        "kind": "warning",
    }


def _order_shipped(rng: random.Random) -> Payload:
    return {
        "title": "Order Update",
        "message": f"Order #ORD-{rng.randrange(999)} has been shipped",
        "kind": "info",
    }


PERFORMANCE_POOL: list[Template] = [
    {"title": "System Performance", "message": "All systems running optimally", "kind": "success"},
    {"title": "Backup Complete", "message": "Daily data backup completed successfully",
     "kind": "success"},
    {"title": "Security Scan", "message": "Weekly security scan completed - no issues found",
     "kind": "success"},
]


def _insights_pool(center, catalog) -> list[Template]:
    def _view_low_stock():
        names = [p.name for p in catalog.low_stock_products()] if catalog else []
        center.add_notification(
            title="Low Stock Items",
            message=", ".join(names[:5]) if names else "No products are low on stock",
            kind="info",
        )

    def _inventory_alert(rng: random.Random) -> Payload:
        return {
            "title": "Inventory Alert",
            "message": "5 products are running low on stock and need reordering",
            "kind": "warning",
            "action": NotificationAction("View Items", _view_low_stock),
        }

    return [
        {"title": "Sales Milestone",
         "message": "Congratulations! You've reached $50,000 in monthly sales", "kind": "success"},
        _inventory_alert,
        {"title": "Customer Growth", "message": "10 new customers joined this week", "kind": "info"},
        {"title": "Payment Reminder", "message": "3 invoices are overdue and require attention",
         "kind": "warning"},
    ]


def default_tiers(center, rng: random.Random | None = None, catalog=None) -> list[AmbientTier]:
    """The console's three activity tiers: 30s/30%, 45s/20%, 60s/10%."""
    rng = rng or random.Random()
    return [
        AmbientTier("activity", 30,
                    RandomEventSource([_new_customer, _stock_alert, _order_shipped], 0.3, rng)),
        AmbientTier("insights", 45, RandomEventSource(_insights_pool(center, catalog), 0.2, rng)),
        AmbientTier("performance", 60, RandomEventSource(PERFORMANCE_POOL, 0.1, rng)),
    ]


_SEED = [
    # (title, message, kind, read, age)
    ("New Order Received", "Order #ORD-123 has been placed by Fashion Store A", "info",
     False, timedelta(minutes=30)),
    ("Low Stock Alert", "Blue Denim Jeans is running low on stock (5 items remaining)", "warning",
     False, timedelta(hours=2)),
    ("Payment Received", "Payment of $2,450 received for Order #ORD-001", "success",
     True, timedelta(days=1)),
    ("System Update", "New features have been added to the dashboard", "info",
     False, timedelta(hours=6)),
]


def seed_notifications(center) -> list[Notification]:
    """
    Add the notifications a fresh console starts with, without toasts.

    The records are added oldest-first so the store ends up newest-first by
    insertion, each carrying its historical timestamp.
    """
    now = datetime.now(timezone.utc)
    added = []
    for title, message, kind, read, age in sorted(_SEED, key=lambda s: s[4], reverse=True):
        n = center.add_notification(title=title, message=message, kind=kind,
                                    auto_close=False, created_at=now - age)
        if n is None:
            continue
        if read:
            center.mark_as_read(n.id)
        added.append(n)
    return added
