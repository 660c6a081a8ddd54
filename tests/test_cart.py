"""Tests for the cart API and its cached line prices."""

from storefront.store import cart_store

from .conftest import auth_headers, make_tier, make_variation


def test_cart_requires_an_owner(client):
    assert client.get("/cart/v1/cart").status_code == 401


def test_add_item_caches_tier_price(client, db):
    v = make_variation(db, price_cents=10000, stock=100)
    make_tier(db, v.id, min_quantity=10, price_cents=9000)

    resp = client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 12}, headers=auth_headers())
    assert resp.status_code == 201
    cart = resp.json()
    assert cart["items"][0]["unit_price_cents"] == 9000
    assert cart["items"][0]["line_price_cents"] == 108000
    assert cart["total_items"] == 12
    assert cart["total_price_cents"] == 108000


def test_adding_again_merges_and_reprices(client, db):
    v = make_variation(db, price_cents=10000, stock=100)
    make_tier(db, v.id, min_quantity=10, price_cents=9000)
    headers = auth_headers()

    client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 6}, headers=headers)
    cart = client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 6}, headers=headers).json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 12
    assert cart["items"][0]["unit_price_cents"] == 9000


def test_cached_price_survives_tier_changes(client, db):
    v = make_variation(db, price_cents=10000, stock=100)
    headers = auth_headers()
    client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 20}, headers=headers)

    make_tier(db, v.id, min_quantity=10, price_cents=5000)
    cart = client.get("/cart/v1/cart", headers=headers).json()
    assert cart["items"][0]["unit_price_cents"] == 10000
    assert cart["total_price_cents"] == 200000


def test_totals_follow_every_mutation(client, db):
    a = make_variation(db, sku="A", price_cents=1000, stock=10)
    b = make_variation(db, sku="B", price_cents=250, stock=10)
    headers = auth_headers()
    client.post("/cart/v1/cart/items", json={"variation_id": a.id, "quantity": 2}, headers=headers)
    client.post("/cart/v1/cart/items", json={"variation_id": b.id, "quantity": 4}, headers=headers)

    cart = client.patch(f"/cart/v1/cart/items/{a.id}", json={"quantity": 3}, headers=headers).json()
    assert (cart["total_items"], cart["total_price_cents"]) == (7, 4000)

    cart = client.delete(f"/cart/v1/cart/items/{b.id}", headers=headers).json()
    assert (cart["total_items"], cart["total_price_cents"]) == (3, 3000)

    cart = client.patch(f"/cart/v1/cart/items/{a.id}", json={"quantity": 0}, headers=headers).json()
    assert cart["items"] == []
    assert (cart["total_items"], cart["total_price_cents"]) == (0, 0)


def test_add_more_than_stock_is_rejected(client, db):
    v = make_variation(db, stock=2)
    resp = client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 3}, headers=auth_headers())
    assert resp.status_code == 400
    assert "Only 2 units available" in resp.json()["detail"]


def test_add_inactive_variation_is_not_found(client, db):
    v = make_variation(db, active=False)
    resp = client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 1}, headers=auth_headers())
    assert resp.status_code == 404


def test_anonymous_session_cart(client, db):
    v = make_variation(db, stock=5)
    headers = {"X-Session-Id": "anon-42"}
    client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 1}, headers=headers)

    assert cart_store.get_cart("session:anon-42")["total_items"] == 1
    assert client.get("/cart/v1/cart", headers=auth_headers("user-9")).json()["items"] == []


def test_clear(client, db):
    v = make_variation(db, stock=5)
    headers = auth_headers()
    client.post("/cart/v1/cart/items", json={"variation_id": v.id, "quantity": 1}, headers=headers)
    cart = client.post("/cart/v1/cart/clear", headers=headers).json()
    assert cart["items"] == []
