"""Pytest fixtures for storefront tests."""

import os

os.environ["POSTGRES_DSN"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["EVENTS_ENABLED"] = "true"
os.environ["SVC_INTERNAL_KEY"] = "test-internal-key"

from datetime import datetime, timedelta, timezone

import fakeredis
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db
from storefront.core.config import settings
from storefront.db.models import PriceTier, ProductVariation
from storefront.db.session import Base
from storefront.errors import PaymentGatewayError
from storefront.kafka import producer
from storefront.services.gateway import get_gateway
from storefront.store import cart_store


class FakeGateway:
    """In-memory stand-in for the Mercado Pago client."""

    def __init__(self):
        self.payments = {}
        self.preferences = []
        self.payment_lookups = []
        self.fail_preference = False

    def add_payment(self, payment_id, status, external_reference, status_detail="accredited", method="visa"):
        self.payments[str(payment_id)] = {
            "id": str(payment_id),
            "status": status,
            "status_detail": status_detail,
            "payment_method_id": method,
            "external_reference": str(external_reference),
        }

    def create_preference(self, lines, back_urls, external_reference, notification_url=None):
        if self.fail_preference:
            raise PaymentGatewayError("create_preference", "ConnectError: gateway unreachable")
        self.preferences.append({
            "lines": lines,
            "back_urls": back_urls,
            "external_reference": external_reference,
            "notification_url": notification_url,
        })
        return {
            "id": f"pref-{external_reference}",
            "init_point": f"https://mp.example/checkout/pref-{external_reference}",
            "sandbox_init_point": f"https://sandbox.mp.example/checkout/pref-{external_reference}",
        }

    def get_payment(self, payment_id):
        self.payment_lookups.append(payment_id)
        if payment_id not in self.payments:
            raise PaymentGatewayError("get_payment", "HTTP 404: payment not found")
        return dict(self.payments[payment_id])


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def redis_client(monkeypatch):
    """Route the cart store to a private fakeredis server."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    monkeypatch.setattr(cart_store, "get_client", lambda: client)
    return client


@pytest.fixture(autouse=True)
def events(monkeypatch):
    """Record published events instead of talking to Kafka."""
    sent = []
    monkeypatch.setattr(producer, "send", lambda topic, key, value: sent.append((topic, key, value)))
    return sent


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(session_factory, gateway):
    from storefront.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_token(sub: str, role: str = "customer") -> str:
    payload = {
        "sub": sub,
        "role": role,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(sub: str = "user-1", role: str = "customer") -> dict:
    return {"Authorization": f"Bearer {make_token(sub, role)}"}


def make_variation(db, sku="SKU-1", name="Walnut shelf", price_cents=10000, stock=10, active=True) -> ProductVariation:
    variation = ProductVariation(sku=sku, name=name, price_cents=price_cents, stock=stock, active=active)
    db.add(variation)
    db.commit()
    db.refresh(variation)
    return variation


def make_tier(db, variation_id, min_quantity, price_cents, max_quantity=None, sort_order=0, active=True) -> PriceTier:
    tier = PriceTier(
        variation_id=variation_id,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        price_cents=price_cents,
        sort_order=sort_order,
        active=active,
    )
    db.add(tier)
    db.commit()
    db.refresh(tier)
    return tier
