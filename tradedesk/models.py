import itertools
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, get_args

NotificationKind = Literal["info", "success", "warning", "error"]
KINDS: tuple[str, ...] = get_args(NotificationKind)

DEFAULT_TOAST_MS = 5000


class InvalidNotification(ValueError):
    """Raised when a notification or toast is built from bad caller input."""


def validate_kind(kind: Any) -> str:
    if kind not in KINDS:
        raise InvalidNotification(f"kind must be one of {KINDS}, got {kind!r}")
    return kind


def validate_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidNotification(f"{name} must be a string, got {type(value).__name__}")
    return value


def validate_duration(duration: Any) -> int | None:
    if duration is None:
        return None
    # bool is an int subclass; True is not a duration
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise InvalidNotification(f"duration must be a positive integer (ms), got {duration!r}")
    return duration


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdSequence:
    """
    Mints ids of the form "<prefix><epoch-ms>-<seq>".

    The per-sequence counter keeps ids distinct even when two are minted in
    the same millisecond, and sorts them by creation order within a process.
    """

    def __init__(self, prefix: str):
        self.prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            seq = next(self._counter)
        return f"{self.prefix}{int(time.time() * 1000)}-{seq}"


@dataclass(frozen=True)
class NotificationAction:
    """A user-triggerable follow-up attached to a notification."""
    label: str
    operation: Callable[[], Any]

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label.strip():
            raise InvalidNotification("action label must be a non-empty string")
        if not callable(self.operation):
            raise InvalidNotification(f"action {self.label!r} operation is not callable")

    def to_dict(self) -> dict:
        return {"label": self.label}


@dataclass
class Notification:
    """
    Persistent record shown under the bell icon.

    read only ever moves False -> True, through mark_read().
    """
    id: str
    title: str
    message: str
    kind: NotificationKind
    read: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    auto_close: bool = True
    duration: int | None = None
    action: NotificationAction | None = None

    def __post_init__(self):
        validate_text("title", self.title)
        validate_text("message", self.message)
        validate_kind(self.kind)
        validate_duration(self.duration)
        if self.action is not None and not isinstance(self.action, NotificationAction):
            raise InvalidNotification("action must be a NotificationAction")

    def mark_read(self) -> bool:
        """Flip to read. Returns True if the state changed."""
        if self.read:
            return False
        self.read = True
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "kind": self.kind,
            "read": self.read,
            "created_at": self.created_at.isoformat(),
            "auto_close": self.auto_close,
            "duration": self.duration,
            "has_action": self.action is not None,
            "action": self.action.to_dict() if self.action else None,
        }


@dataclass(frozen=True)
class Toast:
    """Transient alert. Carries a copy of display data, never the source record."""
    id: str
    message: str
    kind: NotificationKind
    duration: int = DEFAULT_TOAST_MS
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "kind": self.kind,
            "duration": self.duration,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ConsoleSettings:
    """
    Runtime settings for the console, editable from the settings page.

      language           : UI locale preference (en | ru | uz)
      log_level          : root logger level
      ambient_enabled    : run the background activity generators
      toast_duration_ms  : default lifetime of a toast
    """
    language: Literal["en", "ru", "uz"] = "en"
    log_level: str = "INFO"
    ambient_enabled: bool = True
    toast_duration_ms: int = DEFAULT_TOAST_MS

    def to_dict(self):
        return {
            "language": self.language,
            "log_level": self.log_level,
            "ambient_enabled": self.ambient_enabled,
            "toast_duration_ms": self.toast_duration_ms,
        }


# ── Catalog records ───────────────────────────────────────────

@dataclass
class Customer:
    id: str
    name: str
    email: str
    phone: str = ""
    address: str = ""
    city: str = ""
    total_orders: int = 0
    total_spent: int = 0
    status: Literal["active", "inactive"] = "active"
    join_date: str = ""

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "total_orders": self.total_orders,
            "total_spent": self.total_spent,
            "status": self.status,
            "join_date": self.join_date,
        }


@dataclass
class Product:
    id: str
    name: str
    category: str
    price: float
    stock: int
    sku: str = ""
    supplier: str = ""
    description: str = ""
    status: Literal["active", "inactive", "low_stock"] = "active"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "stock": self.stock,
            "sku": self.sku,
            "supplier": self.supplier,
            "description": self.description,
            "status": self.status,
        }


OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
ORDER_STATUSES: tuple[str, ...] = get_args(OrderStatus)


@dataclass
class Order:
    id: str
    customer_name: str
    customer_email: str
    products: list[str] = field(default_factory=list)
    total_amount: int = 0
    status: OrderStatus = "pending"
    order_date: str = ""
    shipping_address: str = ""

    def to_dict(self):
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "products": list(self.products),
            "total_amount": self.total_amount,
            "status": self.status,
            "order_date": self.order_date,
            "shipping_address": self.shipping_address,
        }
