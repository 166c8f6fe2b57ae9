from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import get_identity_client, get_lock_service
from storefront.data.database import get_db
from storefront.domain.errors import AuthenticationRequired
from storefront.main import create_app


class FakeIdentity:
    tokens = {"alice-token": "alice", "bob-token": "bob"}

    def resolve_account(self, token):
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthenticationRequired("Niepoprawny token")


@pytest.fixture
def client(session_factory, lock_service):
    app = create_app()

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_identity_client] = lambda: FakeIdentity()
    return TestClient(app)


ALICE = {"Authorization": "Bearer alice-token"}
GUEST = {"X-Session-Id": "guest-1"}


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["database"] == "connected"


def test_guest_cart_flow(client, add_product):
    add_product(1, "10.00", 5)

    resp = client.post("/cart/items", json={"product_id": 1, "quantity": 2}, headers=GUEST)
    assert resp.status_code == 200
    body = resp.json()
    assert body["owner_key"] == "session:guest-1"
    assert Decimal(body["total"]) == Decimal("20.00")

    resp = client.put("/cart/items/1", json={"quantity": 3}, headers=GUEST)
    assert resp.json()["items"][0]["quantity"] == 3

    resp = client.delete("/cart/items/1", headers=GUEST)
    assert resp.json()["items"] == []


def test_cart_requires_owner(client):
    assert client.get("/cart").status_code == 400


def test_unknown_product_is_bad_request(client):
    resp = client.post("/cart/items", json={"product_id": 9, "quantity": 1}, headers=GUEST)

    assert resp.status_code == 400


def test_update_missing_item_is_not_found(client, add_product):
    add_product(1, "10.00", 5)

    resp = client.put("/cart/items/1", json={"quantity": 2}, headers=GUEST)

    assert resp.status_code == 404


def test_invalid_token(client):
    resp = client.get("/cart", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401


def test_merge_then_checkout(client, add_product):
    add_product(1, "10.00", 5)
    add_product(2, "5.00", 5)
    client.post("/cart/items", json={"product_id": 1, "quantity": 2}, headers=GUEST)
    client.post("/cart/items", json={"product_id": 2, "quantity": 1}, headers=ALICE)

    merged = client.post("/cart/merge", headers={**GUEST, **ALICE})
    assert merged.status_code == 200
    assert {i["product_id"]: i["quantity"] for i in merged.json()["items"]} == {1: 2, 2: 1}

    resp = client.post("/orders/checkout", headers=ALICE)
    assert resp.status_code == 201
    order = resp.json()
    assert Decimal(order["total"]) == Decimal("25.00")
    assert order["status"] == "PLACED"

    listed = client.get("/orders", headers=ALICE).json()
    assert [o["order_id"] for o in listed] == [order["order_id"]]
    assert client.get("/cart", headers=ALICE).json()["items"] == []


def test_checkout_insufficient_stock(client, add_product):
    add_product(1, "10.00", 1)
    client.post("/cart/items", json={"product_id": 1, "quantity": 3}, headers=ALICE)

    resp = client.post("/orders/checkout", headers=ALICE)

    assert resp.status_code == 409
    assert resp.json() == {
        "state": "FAILED",
        "error": "InsufficientStock",
        "message": resp.json()["message"],
        "product_id": 1,
        "requested": 3,
        "available": 1,
    }


def test_checkout_requires_login(client):
    assert client.post("/orders/checkout", headers=GUEST).status_code == 401


def test_order_access_and_cancel(client, add_product):
    add_product(1, "10.00", 5)
    client.post("/cart/items", json={"product_id": 1, "quantity": 1}, headers=ALICE)
    order_id = client.post("/orders/checkout", headers=ALICE).json()["order_id"]

    bob = {"Authorization": "Bearer bob-token"}
    assert client.get(f"/orders/{order_id}", headers=bob).status_code == 403
    assert client.get("/orders/missing", headers=ALICE).status_code == 404

    resp = client.post(f"/orders/{order_id}/cancel", headers=ALICE)
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    assert client.post(f"/orders/{order_id}/cancel", headers=ALICE).status_code == 409
