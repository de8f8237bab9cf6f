"""
In-memory catalog of customers, products and orders.

The console has no database: records are generated once from a seeded RNG
when the catalog is built. Every mutating operation reports what happened
through the notification center, and the follow-ups it offers (Undo,
Reorder, Send Refund, ...) are NotificationActions bound to this catalog.
"""
import itertools
import logging
import random
import threading
from datetime import date

from tradedesk.models import (
    ORDER_STATUSES, Customer, NotificationAction, Order, Product,
)

log = logging.getLogger("tradedesk.catalog")

LOW_STOCK_THRESHOLD = 10

COLLECTIONS = ("customers", "products", "orders")

_CUSTOMER_NAMES = [
    "Fashion Store A", "Retail Chain B", "Boutique C", "Store D", "Clothing Hub E",
    "Style Center F", "Fashion Point G", "Trendy Shop H", "Modern Wear I", "Classic Store J",
]
_CITIES = ["Tashkent", "Samarkand", "Bukhara", "Andijan", "Namangan", "Fergana", "Nukus", "Termez"]
_CATEGORIES = ["T-Shirts", "Jeans", "Dresses", "Jackets"]
_SUPPLIERS = ["Cotton Co.", "Denim Works", "Fashion Plus", "Leather Craft"]
_ORDER_PRODUCTS = [
    "Classic White T-Shirt", "Blue Denim Jeans", "Summer Floral Dress", "Leather Jacket",
    "Cotton Polo Shirt", "Black Hoodie", "Casual Shorts", "Evening Dress",
]
_FEATURED_PRODUCTS = [
    # name, category, price, stock, description, sku, supplier
    ("Classic White T-Shirt", "T-Shirts", 15.99, 150, "Premium cotton white t-shirt",
     "TS-001", "Cotton Co."),
    ("Blue Denim Jeans", "Jeans", 45.99, 8, "Classic blue denim jeans", "JN-001", "Denim Works"),
    ("Summer Floral Dress", "Dresses", 35.99, 75, "Light summer dress with floral pattern",
     "DR-001", "Fashion Plus"),
    ("Leather Jacket", "Jackets", 89.99, 2, "Genuine leather jacket", "JK-001", "Leather Craft"),
    ("Cotton Polo Shirt", "T-Shirts", 25.99, 120, "Premium cotton polo shirt",
     "PS-001", "Cotton Co."),
]

_STATUS_MESSAGES = {
    "pending": "Order is now pending review",
    "processing": "Order is being processed",
    "shipped": "Order has been shipped",
    "delivered": "Order has been delivered",
    "cancelled": "Order has been cancelled",
}


class RecordNotFound(KeyError):
    """Raised when a catalog id does not exist."""


def _random_date(rng: random.Random, year: int) -> str:
    return date(year, rng.randrange(12) + 1, rng.randrange(28) + 1).isoformat()


def generate_customers(rng: random.Random, count: int = 60) -> list[Customer]:
    out = []
    for i in range(count):
        out.append(Customer(
            id=str(i + 1),
            name=_CUSTOMER_NAMES[i] if i < len(_CUSTOMER_NAMES) else f"Customer {i + 1}",
            email=f"customer{i + 1}@example.com",
            phone=(f"+998 ({rng.randrange(10, 100)}) {rng.randrange(100, 1000)} - "
                   f"{rng.randrange(10, 100)} - {rng.randrange(10, 100)}"),
            address=f"Street {i + 1}, Building {rng.randrange(1, 51)}",
            city=_CITIES[i % len(_CITIES)],
            total_orders=rng.randrange(1, 51),
            total_spent=rng.randrange(500, 10500),
            status="active" if rng.random() > 0.1 else "inactive",
            join_date=_random_date(rng, 2023),
        ))
    return out


def generate_products(rng: random.Random, count: int = 50) -> list[Product]:
    out = []
    for i, (name, category, price, stock, desc, sku, supplier) in enumerate(_FEATURED_PRODUCTS):
        out.append(Product(
            id=str(i + 1), name=name, category=category, price=price, stock=stock,
            description=desc, sku=sku, supplier=supplier,
            status="low_stock" if stock < LOW_STOCK_THRESHOLD else "active",
        ))
    for i in range(len(out), count):
        stock = rng.randrange(1, 201)
        out.append(Product(
            id=str(i + 1),
            name=f"Product {i + 1}",
            category=_CATEGORIES[i % len(_CATEGORIES)],
            price=float(rng.randrange(10, 110)),
            stock=stock,
            description=f"Description for product {i + 1}",
            sku=f"SKU-{i + 1:03d}",
            supplier=_SUPPLIERS[i % len(_SUPPLIERS)],
            status="low_stock" if stock < LOW_STOCK_THRESHOLD else "active",
        ))
    return out


def generate_orders(rng: random.Random, count: int = 150) -> list[Order]:
    out = []
    for i in range(count):
        out.append(Order(
            id=f"ORD-{i + 1:03d}",
            customer_name=_CUSTOMER_NAMES[i % len(_CUSTOMER_NAMES)],
            customer_email=f"customer{(i % 10) + 1}@example.com",
            products=[rng.choice(_ORDER_PRODUCTS) for _ in range(rng.randrange(1, 4))],
            total_amount=rng.randrange(100, 5100),
            status=rng.choice(ORDER_STATUSES),
            order_date=_random_date(rng, 2024),
            shipping_address=f"Uzbekistan, Tashkent, Street {i + 1}",
        ))
    return out


def _matches(record, term: str, fields: tuple[str, ...]) -> bool:
    term = term.lower()
    return any(term in str(getattr(record, f, "")).lower() for f in fields)


_SEARCH_FIELDS = {
    "customers": ("name", "email", "phone", "city"),
    "products": ("name", "category", "sku"),
    "orders": ("id", "customer_name", "customer_email"),
}


class Catalog:

    def __init__(self, center, seed: int | None = None):
        self._center = center
        rng = random.Random(seed)
        self._lock = threading.RLock()
        self.customers: dict[str, Customer] = {c.id: c for c in generate_customers(rng)}
        self.products: dict[str, Product] = {p.id: p for p in generate_products(rng)}
        self.orders: dict[str, Order] = {o.id: o for o in generate_orders(rng)}
        # monotonic: an id freed by a delete is never handed out again
        self._id_counters = {
            name: itertools.count(max(int(k) for k in getattr(self, name)) + 1)
            for name in ("customers", "products")
        }

    def _collection(self, name: str) -> dict:
        if name not in COLLECTIONS:
            raise ValueError(f"collection must be one of {COLLECTIONS}")
        return getattr(self, name)

    def _get(self, collection: str, record_id: str):
        with self._lock:
            record = self._collection(collection).get(record_id)
        if record is None:
            raise RecordNotFound(f"{collection[:-1]} {record_id!r} not found")
        return record

    def _next_id(self, collection: str) -> str:
        return str(next(self._id_counters[collection]))

    def _restore(self, collection: str, record, label: str) -> bool:
        """
        Put a deleted record back unless its id has been taken since.

        Returns False without a notification when the record is already back.
        """
        with self._lock:
            records = self._collection(collection)
            current = records.get(record.id)
            if current is record:
                return False
            occupied = current is not None
            if not occupied:
                records[record.id] = record
        if occupied:
            log.warning("Not restoring %s %s: id is in use", collection[:-1], record.id)
            self._center.add_notification(
                title="Restore failed",
                message=f"{label} could not be restored: id {record.id} is already in use",
                kind="error",
                auto_close=False,
            )
        return not occupied

    # ── Queries ───────────────────────────────────────────────

    def query(self, collection: str, search: str = "", status: str = "") -> list:
        """Records of a collection, optionally narrowed by search term and status."""
        with self._lock:
            records = list(self._collection(collection).values())
        if search:
            records = [r for r in records if _matches(r, search, _SEARCH_FIELDS[collection])]
        if status:
            records = [r for r in records if r.status == status]
        return records

    def low_stock_products(self) -> list[Product]:
        with self._lock:
            return [p for p in self.products.values() if p.stock < LOW_STOCK_THRESHOLD]

    # ── Customers ─────────────────────────────────────────────

    def add_customer(self, name: str, email: str, phone: str, address: str = "",
                     city: str = "", status: str = "active") -> Customer:
        if not (name and email and phone):
            raise ValueError("name, email and phone are required")
        with self._lock:
            customer = Customer(
                id=self._next_id("customers"), name=name, email=email, phone=phone,
                address=address, city=city, status=status,
                join_date=date.today().isoformat(),
            )
            self.customers[customer.id] = customer
        log.info("Customer %s added: %s", customer.id, customer.name)

        def _view_profile():
            self._center.add_notification(
                title="Customer Profile",
                message=f"Viewing profile for {customer.name}",
                kind="info",
            )

        def _send_welcome():
            self._center.add_notification(
                title="Welcome Email Sent",
                message=f"Welcome email sent to {customer.email}",
                kind="success",
            )

        self._center.add_notification(
            title="New Customer Added",
            message=f"{customer.name} has been successfully added to the customer database",
            kind="success",
            auto_close=True,
            action=NotificationAction("View Profile", _view_profile),
        )
        self._center.add_notification(
            title="Welcome New Customer",
            message=f"Send welcome email to {customer.name} at {customer.email}",
            kind="info",
            auto_close=False,
            action=NotificationAction("Send Email", _send_welcome),
        )
        return customer

    def delete_customer(self, customer_id: str) -> Customer:
        customer = self._get("customers", customer_id)
        with self._lock:
            self.customers.pop(customer_id, None)

        def _undo():
            if not self._restore("customers", customer, customer.name):
                return
            self._center.add_notification(
                title="Customer Restored",
                message=f"{customer.name} has been restored to the database",
                kind="success",
            )

        self._center.add_notification(
            title="Customer Deleted",
            message=f"{customer.name} has been permanently removed from the database",
            kind="success",
            auto_close=True,
            action=NotificationAction("Undo", _undo),
        )
        return customer

    # ── Products ──────────────────────────────────────────────

    def add_product(self, name: str, category: str, price: float, stock: int,
                    description: str = "", sku: str = "", supplier: str = "") -> Product:
        if not (name and category) or price is None or stock is None:
            raise ValueError("name, category, price and stock are required")
        with self._lock:
            pid = self._next_id("products")
            product = Product(
                id=pid, name=name, category=category, price=price, stock=stock,
                description=description, sku=sku or f"SKU-{int(pid):03d}", supplier=supplier,
                status="low_stock" if stock < LOW_STOCK_THRESHOLD else "active",
            )
            self.products[pid] = product
        log.info("Product %s added: %s", product.id, product.name)

        self._center.add_notification(
            title="Product added successfully",
            message=f"{product.name} has been successfully added to inventory",
            kind="success",
            auto_close=True,
            duration=4000,
        )
        if product.stock < LOW_STOCK_THRESHOLD:
            def _reorder():
                self._center.add_notification(
                    title="Reorder Initiated",
                    message=f"Reorder process started for {product.name}",
                    kind="info",
                )

            self._center.add_notification(
                title="Low Stock Warning",
                message=f"{product.name} has low stock ({product.stock} items remaining)",
                kind="warning",
                auto_close=False,
                action=NotificationAction("Reorder", _reorder),
            )
        return product

    def update_product(self, product_id: str, **changes) -> Product:
        old = self._get("products", product_id)
        unknown = set(changes) - {"name", "category", "price", "stock", "description",
                                  "sku", "supplier"}
        if unknown:
            raise ValueError(f"unknown product fields: {sorted(unknown)}")
        with self._lock:
            updated = Product(**{**old.to_dict(), **changes})
            updated.status = "low_stock" if updated.stock < LOW_STOCK_THRESHOLD else "active"
            self.products[product_id] = updated

        self._center.add_notification(
            title="Product updated successfully",
            message=f"{updated.name} details have been updated successfully",
            kind="success",
            auto_close=True,
        )
        if old.stock != updated.stock:
            if updated.stock < LOW_STOCK_THRESHOLD <= old.stock:
                self._center.add_notification(
                    title="Stock Alert",
                    message=f"{updated.name} stock is now low ({updated.stock} items)",
                    kind="warning",
                    auto_close=False,
                )
            elif old.stock < LOW_STOCK_THRESHOLD <= updated.stock:
                self._center.add_notification(
                    title="Stock Replenished",
                    message=f"{updated.name} stock has been replenished ({updated.stock} items)",
                    kind="success",
                )
        if old.price != updated.price:
            direction = "increased" if updated.price > old.price else "decreased"
            self._center.add_notification(
                title="Price Updated",
                message=f"{updated.name} price {direction} from ${old.price} to ${updated.price}",
                kind="info",
            )
        return updated

    def delete_product(self, product_id: str) -> Product:
        product = self._get("products", product_id)
        with self._lock:
            self.products.pop(product_id, None)

        def _undo():
            if not self._restore("products", product, product.name):
                return
            self._center.add_notification(
                title="Product Restored",
                message=f"{product.name} has been restored to inventory",
                kind="info",
            )

        self._center.add_notification(
            title="Product Deleted",
            message=f"{product.name} has been permanently removed from inventory",
            kind="success",
            auto_close=True,
            action=NotificationAction("Undo", _undo),
        )
        return product

    # ── Orders ────────────────────────────────────────────────

    def delete_order(self, order_id: str) -> Order:
        order = self._get("orders", order_id)
        with self._lock:
            self.orders.pop(order_id, None)

        def _undo():
            if not self._restore("orders", order, order.id):
                return
            self._center.add_notification(
                title="Order Restored",
                message=f"{order.id} has been restored to the system",
                kind="success",
            )

        def _refund():
            self._center.add_notification(
                title="Refund Initiated",
                message=f"Refund of ${order.total_amount} initiated for {order.customer_name}",
                kind="info",
            )

        self._center.add_notification(
            title="Order Deleted",
            message=f"{order.id} has been permanently removed from the system",
            kind="success",
            auto_close=True,
            action=NotificationAction("Undo", _undo),
        )
        self._center.add_notification(
            title="Customer Notification",
            message=f"Cancellation notice sent to {order.customer_name}",
            kind="info",
            auto_close=False,
            action=NotificationAction("Send Refund", _refund),
        )
        return order

    def change_order_status(self, order_id: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise ValueError(f"status must be one of {ORDER_STATUSES}")
        order = self._get("orders", order_id)
        with self._lock:
            order.status = status

        action = None
        if status == "shipped":
            def _track():
                self._center.add_notification(
                    title="Tracking Information",
                    message=f"Tracking details sent to {order.customer_email}",
                    kind="info",
                )
            action = NotificationAction("Track Package", _track)

        kind = {"delivered": "success", "cancelled": "error"}.get(status, "info")
        self._center.add_notification(
            title="Order Status Updated",
            message=f"{order.id}: {_STATUS_MESSAGES[status]}",
            kind=kind,
            auto_close=True,
            action=action,
        )
        if status in ("shipped", "delivered"):
            self._center.add_notification(
                title="Customer Notification",
                message=(f"{'Shipping' if status == 'shipped' else 'Delivery'} "
                         f"notification sent to {order.customer_name}"),
                kind="info",
                auto_close=False,
            )
        return order

    def bulk_update_status(self, order_ids: list[str], status: str) -> int:
        if status not in ORDER_STATUSES:
            raise ValueError(f"status must be one of {ORDER_STATUSES}")
        with self._lock:
            targets = [self.orders[i] for i in order_ids if i in self.orders]
            for order in targets:
                order.status = status
        self._center.add_notification(
            title="Bulk Update Complete",
            message=f"{len(targets)} orders updated to {status} status",
            kind="success",
            auto_close=True,
        )
        return len(targets)

    # ── Bulk delete ───────────────────────────────────────────

    def bulk_delete(self, collection: str, ids: list[str]) -> int:
        item_type = collection[:-1]
        with self._lock:
            records = self._collection(collection)
            removed = [records.pop(i) for i in ids if i in records]
        self._center.add_notification(
            title="Items deleted successfully",
            message=f"{len(removed)} {item_type}(s) have been permanently removed",
            kind="success",
            auto_close=True,
        )
        return len(removed)
