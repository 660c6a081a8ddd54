"""Tests for the signed payment webhook endpoint."""

import pytest

from storefront.core.config import settings
from storefront.core.webhook import compute_signature, parse_signature, signature_manifest
from storefront.db.models import Order, OrderItem, OrderPaymentDetail, OrderStatus

from .conftest import make_variation

WEBHOOK = "/payment/v1/payments/mercadopago/webhook"


def signed_headers(data_id, request_id="req-1", ts="1700000000", secret=None):
    digest = compute_signature(secret or settings.PAYMENT_WEBHOOK_SECRET, str(data_id), request_id, ts)
    return {"x-signature": f"ts={ts},v1={digest}", "x-request-id": request_id}


def body(data_id, ntype="payment"):
    return {"id": 99, "type": ntype, "action": f"{ntype}.created", "data": {"id": str(data_id)}}


@pytest.fixture
def order(db):
    v = make_variation(db, stock=5)
    order = Order(user_id="user-1", status=OrderStatus.PENDING.value, total_cents=1000, currency="ARS")
    order.items.append(OrderItem(variation_id=v.id, title=v.name, quantity=1, unit_price_cents=1000))
    db.add(order)
    db.commit()
    return order


class TestSignature:
    def test_parse(self):
        assert parse_signature("ts=123, v1=abc") == ("123", "abc")
        assert parse_signature("garbage") == (None, None)

    def test_manifest_layout(self):
        assert signature_manifest("55", "r-1", "9") == "id:55;request-id:r-1;ts:9;"

    def test_missing_headers_rejected(self, client, gateway, order):
        gateway.add_payment("p1", "approved", order.id)
        resp = client.post(f"{WEBHOOK}?data.id=p1", json=body("p1"))
        assert resp.status_code == 401
        assert gateway.payment_lookups == []

    def test_bad_signature_rejected_before_settlement(self, client, db, gateway, order):
        gateway.add_payment("p1", "approved", order.id)
        headers = signed_headers("p1", secret="someone-else")
        resp = client.post(f"{WEBHOOK}?data.id=p1", json=body("p1"), headers=headers)
        assert resp.status_code == 401
        assert gateway.payment_lookups == []
        assert db.query(OrderPaymentDetail).count() == 0

    def test_malformed_signature(self, client):
        headers = {"x-signature": "v1=only", "x-request-id": "r"}
        resp = client.post(f"{WEBHOOK}?data.id=p1", json=body("p1"), headers=headers)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid x-signature format"

    def test_data_id_taken_from_body_without_query(self, client, db, gateway, order):
        gateway.add_payment("p2", "approved", order.id)
        resp = client.post(WEBHOOK, json=body("p2"), headers=signed_headers("p2"))
        assert resp.status_code == 200
        assert resp.json()["processed"] is True

    def test_body_id_must_match_signed_id(self, client, db, gateway, order):
        gateway.add_payment("p7", "approved", order.id)
        gateway.add_payment("p8", "approved", order.id)
        resp = client.post(f"{WEBHOOK}?data.id=p7", json=body("p8"), headers=signed_headers("p7"))
        assert resp.status_code == 401
        assert gateway.payment_lookups == []
        assert db.query(OrderPaymentDetail).count() == 0

    def test_settles_the_signed_id(self, client, gateway, order):
        gateway.add_payment("p9", "approved", order.id)
        payload = body("p9")
        del payload["data"]
        resp = client.post(f"{WEBHOOK}?data.id=p9", json=payload, headers=signed_headers("p9"))
        assert resp.status_code == 200
        assert gateway.payment_lookups == ["p9"]

    def test_missing_secret_is_a_server_error(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "")
        headers = {"x-signature": "ts=1,v1=abc", "x-request-id": "r"}
        resp = client.post(f"{WEBHOOK}?data.id=p1", json=body("p1"), headers=headers)
        assert resp.status_code == 500


class TestWebhookEndpoint:
    def test_approved_payment(self, client, db, gateway, order):
        gateway.add_payment("p3", "approved", order.id)
        resp = client.post(f"{WEBHOOK}?data.id=p3", json=body("p3"), headers=signed_headers("p3"))
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.COMPLETED.value

    def test_body_fields_are_not_trusted(self, client, db, gateway, order):
        gateway.add_payment("p4", "rejected", order.id)
        payload = body("p4")
        payload["status"] = "approved"
        resp = client.post(f"{WEBHOOK}?data.id=p4", json=payload, headers=signed_headers("p4"))
        assert resp.json()["status"] == "cancelled"

    def test_unknown_type_acknowledged(self, client, db, gateway, order):
        resp = client.post(f"{WEBHOOK}?data.id=s1", json=body("s1", ntype="subscription"),
                           headers=signed_headers("s1"))
        assert resp.status_code == 200
        assert resp.json() == {"received": True, "processed": False, "reason": "unhandled_type"}
        assert gateway.payment_lookups == []
        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.PENDING.value

    def test_missing_order_still_acknowledged(self, client, gateway):
        gateway.add_payment("p5", "approved", "424242")
        resp = client.post(f"{WEBHOOK}?data.id=p5", json=body("p5"), headers=signed_headers("p5"))
        assert resp.status_code == 200
        assert resp.json()["processed"] is False
        assert "not found" in resp.json()["reason"]

    def test_gateway_outage_is_not_acknowledged(self, client, gateway):
        resp = client.post(f"{WEBHOOK}?data.id=p6", json=body("p6"), headers=signed_headers("p6"))
        assert resp.status_code == 502
