import os

os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import itertools
import pytest
from typing import Generator, Dict, Any, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from marketplace.app import app as fastapi_app
from marketplace.config import ShopSettings, get_settings
from marketplace.utils.security import require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def fake_user() -> Dict[str, Any]:
    return {
        "id": "test-user",
        "email": "test@example.com",
        "name": "Test User",
        "stripe_customer_id": None,
    }

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app, fake_user):
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

# Par défaut aucune passerelle configurée: chemins « dégradés »
@pytest.fixture(autouse=True)
def shop_settings(app):
    current = {"settings": ShopSettings()}
    app.dependency_overrides[get_settings] = lambda: current["settings"]

    def _set(**kwargs) -> ShopSettings:
        current["settings"] = ShopSettings(**kwargs)
        return current["settings"]

    try:
        yield _set
    finally:
        app.dependency_overrides.pop(get_settings, None)

# Aucun accès réseau à Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("marketplace.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.users.repository.set_stripe_customer_id", lambda user_id, customer_id: True)


class InMemoryStore:
    """Remplace les repositories panier / commandes / moyens locaux par un état en mémoire."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)
        self.listings: Dict[str, Dict[str, Any]] = {}
        self.cart: List[Dict[str, Any]] = []
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.order_items: List[Dict[str, Any]] = []
        self.methods: List[Dict[str, Any]] = []

    def _id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # --- fixtures de données ---

    def add_listing(self, title: str, price: str, seller_id: str = "seller") -> str:
        listing_id = self._id("listing")
        self.listings[listing_id] = {
            "id": listing_id,
            "title": title,
            "price": price,
            "user_id": seller_id,
            "users": {"id": seller_id, "name": f"Seller {seller_id}", "region": "MM"},
        }
        return listing_id

    def put_in_cart(self, user_id: str, listing_id: str) -> None:
        self.add_cart_item(user_id, listing_id)

    def add_method_row(self, user_id: str, type: str = "kbz_pay", identifier: str = "09123456789", is_default: bool = False) -> str:
        method_id = self._id("lpm")
        self.methods.append(
            {
                "id": method_id,
                "user_id": user_id,
                "type": type,
                "identifier": identifier,
                "is_default": is_default,
                "created_at": next(self._clock),
            }
        )
        return method_id

    def defaults_of(self, user_id: str) -> List[str]:
        return [m["id"] for m in self.methods if m["user_id"] == user_id and m["is_default"]]

    # --- cart.repository ---

    def get_listing(self, listing_id: str) -> Optional[Dict[str, Any]]:
        return self.listings.get(listing_id)

    def fetch_cart_items(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            {"id": row["id"], "listing_id": row["listing_id"], "listings": dict(self.listings[row["listing_id"]])}
            for row in self.cart
            if row["user_id"] == user_id
        ]

    def add_cart_item(self, user_id: str, listing_id: str) -> bool:
        if not any(r["user_id"] == user_id and r["listing_id"] == listing_id for r in self.cart):
            self.cart.append({"id": self._id("cart"), "user_id": user_id, "listing_id": listing_id})
        return True

    def remove_cart_item(self, user_id: str, listing_id: str) -> bool:
        self.cart = [r for r in self.cart if not (r["user_id"] == user_id and r["listing_id"] == listing_id)]
        return True

    def clear_cart(self, user_id: str) -> bool:
        self.cart = [r for r in self.cart if r["user_id"] != user_id]
        return True

    def count_cart_items(self, user_id: str) -> int:
        return sum(1 for r in self.cart if r["user_id"] == user_id)

    def fetch_cart_listing_ids(self, user_id: str) -> List[str]:
        return [r["listing_id"] for r in self.cart if r["user_id"] == user_id]

    # --- orders.repository ---

    def create_order_with_items(self, *, user_id: str, total: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        order_id = self._id("order")
        order = {
            "id": order_id,
            "user_id": user_id,
            "status": "pending",
            "total": total,
            "payment_gateway": None,
            "payment_reference": None,
        }
        self.orders[order_id] = order
        for item in items:
            self.order_items.append({"order_id": order_id, **item})
        return dict(order)

    def update_order(self, order_id: str, fields: Dict[str, Any], *, user_id: Optional[str] = None) -> bool:
        order = self.orders.get(order_id)
        if not order or (user_id is not None and order["user_id"] != user_id):
            return False
        order.update(fields)
        return True

    def fetch_user_orders(self, user_id: str, statuses) -> List[Dict[str, Any]]:
        statuses = list(statuses)
        return [
            {**o, "order_items": self.items_of(o["id"])}
            for o in self.orders.values()
            if o["user_id"] == user_id and o["status"] in statuses
        ]

    def items_of(self, order_id: str) -> List[Dict[str, Any]]:
        return [i for i in self.order_items if i["order_id"] == order_id]

    # --- payment_methods.repository (mêmes règles que les fonctions SQL) ---

    def fetch_local_methods(self, user_id: str) -> List[Dict[str, Any]]:
        rows = [dict(m) for m in self.methods if m["user_id"] == user_id]
        return sorted(rows, key=lambda m: (not m["is_default"], m["created_at"]))

    def add_local_method(self, *, user_id: str, type: str, identifier: str) -> Dict[str, Any]:
        first = not any(m["user_id"] == user_id for m in self.methods)
        method_id = self.add_method_row(user_id, type, identifier, is_default=first)
        return next(dict(m) for m in self.methods if m["id"] == method_id)

    def set_default_local_method(self, *, user_id: str, method_id: str) -> bool:
        if not any(m["id"] == method_id and m["user_id"] == user_id for m in self.methods):
            return False
        for m in self.methods:
            if m["user_id"] == user_id:
                m["is_default"] = m["id"] == method_id
        return True

    def delete_local_method(self, *, user_id: str, method_id: str) -> bool:
        target = next((m for m in self.methods if m["id"] == method_id and m["user_id"] == user_id), None)
        if target is None:
            return False
        self.methods.remove(target)
        if target["is_default"]:
            remaining = sorted((m for m in self.methods if m["user_id"] == user_id), key=lambda m: m["created_at"])
            if remaining:
                remaining[0]["is_default"] = True
        return True


@pytest.fixture()
def store(monkeypatch) -> InMemoryStore:
    s = InMemoryStore()
    for name in ("get_listing", "fetch_cart_items", "add_cart_item", "remove_cart_item", "clear_cart", "count_cart_items", "fetch_cart_listing_ids"):
        monkeypatch.setattr(f"marketplace.cart.repository.{name}", getattr(s, name))
    for name in ("create_order_with_items", "update_order", "fetch_user_orders"):
        monkeypatch.setattr(f"marketplace.orders.repository.{name}", getattr(s, name))
    for name in ("fetch_local_methods", "add_local_method", "set_default_local_method", "delete_local_method"):
        monkeypatch.setattr(f"marketplace.payment_methods.repository.{name}", getattr(s, name))
    return s


@pytest.fixture()
def region(app):
    """Force la région résolue pour la requête: region('SG')."""
    from marketplace.region.resolver import get_region

    def _set(code: str) -> None:
        app.dependency_overrides[get_region] = lambda: code

    try:
        yield _set
    finally:
        app.dependency_overrides.pop(get_region, None)


