"""Shared pytest fixtures: an in-memory store double and an API client wired to it."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings, get_settings
from storefront.core.deps import get_store
from storefront.core.errors import RemoteQueryError
from storefront.main import app
from storefront.repositories.store import cart_line_id, merge_quantity
from storefront.utils.query import sort_rows

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeWatch:
    def __init__(self, store, callback):
        self.store = store
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        self.active = False
        self.store.watchers.remove(self)


class FakeStore:
    """
    Same surface as StoreClient, backed by dicts shared between scoped copies.
    Set `fail` to a message to make every call raise RemoteQueryError.
    """

    def __init__(self, products=None, orders=None, owner_id=None, _shared=None):
        if _shared is None:
            _shared = {
                "products": {p["id"]: p for p in (products or [])},
                "cart": {},
                "orders": {o["id"]: o for o in (orders or [])},
                "watchers": [],
                "writes": 0,
                "fail": None,
            }
        self._shared = _shared
        self.owner_id = owner_id

    @property
    def products(self):
        return self._shared["products"]

    @property
    def cart(self):
        return self._shared["cart"]

    @property
    def watchers(self):
        return self._shared["watchers"]

    @property
    def writes(self):
        return self._shared["writes"]

    @property
    def fail(self):
        return self._shared["fail"]

    @fail.setter
    def fail(self, message):
        self._shared["fail"] = message

    def _check(self, op):
        if self.fail:
            raise RemoteQueryError(self.fail, op)

    def scoped(self, uid):
        return FakeStore(owner_id=uid, _shared=self._shared)

    def stream_products(self, category, order_field, descending=False):
        self._check("stream_products")
        rows = [dict(p) for p in self.products.values()
                if p.get("is_active") and (not category or p.get("category") == category)]
        return sort_rows(rows, order_field, descending)

    def page_products(self, category, order_field, descending, offset, limit):
        rows = self.stream_products(category, order_field, descending)
        return rows[offset:offset + limit], len(rows)

    def latest_products(self, limit):
        return self.stream_products(None, "created_at", True)[:limit]

    def get_product(self, product_id):
        self._check("get_product")
        p = self.products.get(product_id)
        return dict(p) if p and p.get("is_active") else None

    def upsert_cart_line(self, product_id, quantity, cap=None):
        self._check("upsert_cart_line")
        key = cart_line_id(self.owner_id, product_id)
        line = self.cart.get(key)
        now = BASE_TIME + timedelta(seconds=len(self.cart))
        if line is None:
            line = {"id": key, "user_id": self.owner_id, "product_id": product_id,
                    "quantity": quantity, "created_at": now, "updated_at": now}
            self.cart[key] = line
            created, clamped = True, False
        else:
            line["quantity"], clamped = merge_quantity(line["quantity"], quantity, cap)
            line["updated_at"] = now
            created = False
        self._shared["writes"] += 1
        for watch in list(self.watchers):
            if watch.active:
                watch.callback()
        return dict(line), created, clamped

    def list_cart_lines(self):
        self._check("list_cart_lines")
        rows = [dict(l) for l in self.cart.values() if l["user_id"] == self.owner_id]
        return sort_rows(rows, "created_at")

    def count_cart_lines(self):
        self._check("count_cart_lines")
        return sum(1 for l in self.cart.values() if l["user_id"] == self.owner_id)

    def watch_cart_lines(self, on_change):
        watch = FakeWatch(self, on_change)
        self.watchers.append(watch)
        # Firestore fires once with the initial snapshot
        on_change()
        return watch

    def list_orders(self, status=None):
        self._check("list_orders")
        rows = [dict(o) for o in self._shared["orders"].values()
                if o["user_id"] == self.owner_id and (not status or o["status"] == status)]
        return sort_rows(rows, "created_at", descending=True)

    def get_order(self, order_id):
        self._check("get_order")
        o = self._shared["orders"].get(order_id)
        return dict(o) if o and o["user_id"] == self.owner_id else None


def make_product(pid, name, category, price, stock=10, active=True, description=None, minutes=0):
    return {
        "id": pid,
        "name": name,
        "description": description,
        "category": category,
        "price": price,
        "stock_quantity": stock,
        "is_active": active,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }


def make_order(oid, uid, status, minutes, total=10000):
    return {
        "id": oid,
        "user_id": uid,
        "total_amount": total,
        "status": status,
        "shipping_address": {"name": "Kim", "city": "Seoul"},
        "order_note": None,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
        "updated_at": BASE_TIME + timedelta(minutes=minutes),
    }


PRODUCTS = [
    make_product("p01", "Wireless Mouse", "electronics", 25000, stock=50, minutes=1,
                 description="Ergonomic 2.4GHz mouse"),
    make_product("p02", "Bluetooth Speaker", "electronics", 59000, stock=5, minutes=2),
    make_product("p03", "Air Purifier", "home", 189000, stock=3, minutes=3,
                 description="HEPA filter, quiet MODE for bedrooms"),
    make_product("p04", "Cotton T-Shirt", "clothing", 15000, stock=200, minutes=4),
    make_product("p05", "Python Cookbook", "books", 42000, stock=0, minutes=5,
                 description="Recipes for mastering the language"),
    make_product("p06", "USB-C Hub", "electronics", 39000, stock=120, minutes=6,
                 description="7-in-1 hub with HDMI"),
    make_product("p07", "Old Walkman", "electronics", 99000, active=False, minutes=7),
    make_product("p08", "Yoga Mat", "sports", 30000, stock=12, minutes=8),
    make_product("p09", "Aloe Gel", "beauty", 8000, stock=300, minutes=9),
    make_product("p10", "Green Tea", "food", 12000, stock=40, minutes=10,
                 description="Organic leaves from Jeju"),
    make_product("p11", "Mechanical Keyboard", "electronics", 129000, stock=7, minutes=11),
    make_product("p12", "Desk Lamp", "home", 45000, stock=9, minutes=12,
                 description="LED lamp with USB port"),
]

ORDERS = [
    make_order("o1", "alice", "pending", 1),
    make_order("o2", "alice", "shipped", 2),
    make_order("o3", "alice", "delivered", 3),
    make_order("o4", "alice", "shipped", 4),
    make_order("o5", "bob", "shipped", 5),
]


@pytest.fixture
def settings():
    return Settings(allow_mock_tokens=True, catalog_page_size=12, catalog_max_page_size=100)


@pytest.fixture
def store():
    return FakeStore(products=[dict(p) for p in PRODUCTS], orders=[dict(o) for o in ORDERS])


@pytest.fixture
def client(settings, store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Bearer header factory using development mock tokens."""
    def _headers(uid="alice"):
        return {"Authorization": f"Bearer mock_jwt_token_{uid}"}
    return _headers
