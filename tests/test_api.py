from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from storefront.api import build_application, create_app
from storefront.catalog import MemoryCatalog
from storefront.identity import Identity
from storefront.shop import Shop
from storefront.wire.contrib.fastapi import route_table

SHIPPING = {
    "first_name": "Ada",
    "last_name": "Rider",
    "email": "ada@example.com",
    "address": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "phone": "555-0100",
}


@pytest.fixture
def shop(catalog: MemoryCatalog) -> Shop:
    return Shop.in_memory(catalog=catalog)


@pytest.fixture
def client(shop: Shop) -> Iterator[TestClient]:
    with TestClient(create_app(shop)) as c:
        yield c


def bearer(shop: Shop, who: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {shop.verifier.issue(who)}"}


def test_every_route_is_mounted(shop: Shop) -> None:
    routes = route_table(build_application(shop))
    assert len(routes) == 22
    assert ("POST", "/api/checkout/submit") in routes
    assert ("GET", "/api/reviews/statistics") in routes


def test_protected_routes_need_a_token(client: TestClient) -> None:
    response = client.get("/api/cart")
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthenticated"

    forged = client.get("/api/cart", headers={"Authorization": "Bearer a.b.c"})
    assert forged.status_code == 401


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


def test_cart_routes(client: TestClient, shop: Shop, alice: Identity) -> None:
    auth = bearer(shop, alice)

    added = client.post("/api/cart", json={"product_id": 1, "quantity": 2}, headers=auth)
    assert added.status_code == 200
    body = added.json()
    assert body["total"] == 129.98
    assert body["count"] == 2
    item_id = body["items"][0]["id"]

    too_many = client.post("/api/cart", json={"product_id": 1, "quantity": 4}, headers=auth)
    assert too_many.status_code == 409
    assert too_many.json()["detail"]["code"] == "insufficient_stock"

    bad = client.post("/api/cart", json={"product_id": 1, "quantity": 0}, headers=auth)
    assert bad.status_code == 400

    missing = client.post("/api/cart", json={"product_id": 404}, headers=auth)
    assert missing.status_code == 404

    updated = client.put("/api/cart/item", json={"item_id": item_id, "quantity": 1}, headers=auth)
    assert updated.json()["items"][0]["quantity"] == 1

    removed = client.delete("/api/cart/item", params={"item_id": item_id}, headers=auth)
    assert removed.status_code == 200
    assert removed.json()["items"] == []


def test_guest_cart_import(client: TestClient, shop: Shop, alice: Identity) -> None:
    auth = bearer(shop, alice)
    guest = {
        "items": [
            {"product_id": 2, "quantity": 2, "name": "Chain kit", "unit_price": 64.99},
            {"product_id": 3, "quantity": 1, "name": "Spark plug", "unit_price": 4.5},
        ]
    }

    response = client.put("/api/cart/import", json=guest, headers=auth)

    assert response.status_code == 200
    body = response.json()
    assert body["merged"] == [2]
    assert body["skipped"] == [{"product_id": 3, "code": "out_of_stock", "message": "Spark plug is out of stock"}]
    assert body["cart"]["count"] == 2

    cleared = client.delete("/api/cart", headers=auth)
    assert cleared.json()["items"] == []


# ═══════════════════════════════════════════════════════════════════════════════
# Reviews
# ═══════════════════════════════════════════════════════════════════════════════


def test_review_routes(client: TestClient, shop: Shop, alice: Identity, bob: Identity, admin: Identity) -> None:
    created = client.post(
        "/api/reviews",
        json={"product_id": 1, "rating": 4, "title": "Good pads"},
        headers=bearer(shop, alice),
    )
    assert created.status_code == 201
    review_id = created.json()["id"]
    assert created.json()["is_approved"] is False

    duplicate = client.post("/api/reviews", json={"product_id": 1, "rating": 5}, headers=bearer(shop, alice))
    assert duplicate.status_code == 409

    # Pending reviews are hidden from everyone but the author and admins
    assert client.get("/api/reviews", params={"product_id": 1}).json()["reviews"] == []
    own = client.get("/api/reviews", params={"product_id": 1}, headers=bearer(shop, alice))
    assert [r["id"] for r in own.json()["reviews"]] == [review_id]

    assert client.get("/api/admin/reviews", headers=bearer(shop, alice)).status_code == 403
    queue = client.get("/api/admin/reviews", params={"status": "pending"}, headers=bearer(shop, admin))
    assert queue.json()["pagination"]["total"] == 1

    approved = client.put("/api/reviews", json={"review_id": review_id, "is_approved": True}, headers=bearer(shop, admin))
    assert approved.json()["is_approved"] is True

    stats = client.get("/api/reviews/statistics", params={"product_id": 1})
    assert stats.status_code == 200
    assert stats.json()["total_reviews"] == 1
    assert stats.json()["average_rating"] == 4.0

    voted = client.post("/api/reviews/helpful", json={"review_id": review_id, "is_helpful": True}, headers=bearer(shop, bob))
    assert voted.json()["helpful_count"] == 1
    unvoted = client.delete("/api/reviews/helpful", params={"review_id": review_id}, headers=bearer(shop, bob))
    assert unvoted.json()["helpful_count"] == 0

    forbidden = client.delete("/api/reviews", params={"review_id": review_id}, headers=bearer(shop, bob))
    assert forbidden.status_code == 403
    deleted = client.delete("/api/reviews", params={"review_id": review_id}, headers=bearer(shop, alice))
    assert deleted.json() == {"id": review_id, "deleted": True}


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout and orders
# ═══════════════════════════════════════════════════════════════════════════════


def test_checkout_flow(client: TestClient, shop: Shop, alice: Identity, admin: Identity) -> None:
    auth = bearer(shop, alice)
    client.post("/api/cart", json={"product_id": 1, "quantity": 1}, headers=auth)
    client.post("/api/cart", json={"product_id": 2, "quantity": 1}, headers=auth)

    early = client.post("/api/checkout/submit", json={}, headers=auth)
    assert early.status_code == 409
    assert early.json()["detail"]["code"] == "invalid_step"

    assert client.get("/api/checkout", headers=auth).json()["step"] == "shipping"

    incomplete = client.post("/api/checkout/shipping", json={"first_name": "Ada"}, headers=auth)
    assert incomplete.status_code == 400
    assert incomplete.json()["detail"]["code"] == "missing_fields"

    shipped = client.post("/api/checkout/shipping", json=SHIPPING, headers=auth)
    assert shipped.json()["step"] == "payment_method"

    chosen = client.post("/api/checkout/payment-method", json={"payment_method": "bank_transfer"}, headers=auth)
    assert chosen.json()["step"] == "payment_details"

    back = client.post("/api/checkout/back", json={}, headers=auth)
    assert back.json()["step"] == "payment_method"
    assert back.json()["shipping"] == SHIPPING
    client.post("/api/checkout/payment-method", json={"payment_method": "cash_on_delivery"}, headers=auth)

    refused = client.post("/api/checkout/confirm", json={}, headers=auth)
    assert refused.status_code == 400
    assert refused.json()["detail"]["code"] == "acknowledgement_required"

    intent = client.post("/api/checkout/confirm", json={"acknowledged": True}, headers=auth)
    assert intent.status_code == 200
    assert intent.json()["amount"] == 129.98
    assert intent.json()["transaction_id"].startswith("COD_")

    submitted = client.post("/api/checkout/submit", json={"idempotency_key": "tab-1"}, headers=auth)
    assert submitted.status_code == 201
    order = submitted.json()["order"]
    assert order["total_amount"] == 129.98
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending_payment"
    assert shop.checkouts.peek(alice.id) is None

    assert client.get("/api/cart", headers=auth).json()["items"] == []
    assert client.get("/api/checkout", headers=auth).json()["step"] == "shipping"

    mine = client.get("/api/orders", headers=auth).json()["orders"]
    assert [o["id"] for o in mine] == [order["id"]]

    denied = client.put("/api/admin/orders", json={"order_id": order["id"], "status": "shipped"}, headers=auth)
    assert denied.status_code == 403
    moved = client.put(
        "/api/admin/orders", json={"order_id": order["id"], "status": "shipped"}, headers=bearer(shop, admin)
    )
    assert moved.json()["status"] == "shipped"
    assert [h["status"] for h in moved.json()["status_history"]] == ["pending", "shipped"]


def test_purchase_marks_review_verified(client: TestClient, shop: Shop, alice: Identity) -> None:
    auth = bearer(shop, alice)
    client.post("/api/cart", json={"product_id": 2, "quantity": 1}, headers=auth)
    client.post("/api/checkout/shipping", json=SHIPPING, headers=auth)
    client.post("/api/checkout/payment-method", json={"payment_method": "check"}, headers=auth)
    client.post("/api/checkout/confirm", json={"confirmed": True}, headers=auth)
    assert client.post("/api/checkout/submit", json={}, headers=auth).status_code == 201

    review = client.post("/api/reviews", json={"product_id": 2, "rating": 5}, headers=auth)
    assert review.json()["is_verified_purchase"] is True
