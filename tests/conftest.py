# tests/conftest.py
"""Wspolne fixture'y: plikowa baza SQLite per test, dublery bramki i redisa."""
import hashlib
import hmac
import json
import os
import time

# przed importem aplikacji - engine i celery biora URL-e z env
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base, make_engine
from storefront.data.models import ProductModel, UserModel
from storefront.domain.errors import GatewayError
from storefront.domain.schemas import CheckoutSession
from storefront.services.payment_gateway import ORDER_ID_METADATA_KEY, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


class FakeGateway(StripeGateway):
    """
    Tworzenie sesji bez sieci; weryfikacja webhooka to prawdziwy kod
    StripeGateway (HMAC), wiec testy podpisuja payloady same.
    """

    def __init__(self, fail: bool = False):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.fail = fail
        self.calls = []

    def create_session(self, correlation_id, amount_minor_units, currency, customer_email):
        self.calls.append(
            {
                "correlation_id": correlation_id,
                "amount": amount_minor_units,
                "currency": currency,
                "email": customer_email,
            }
        )
        if self.fail:
            raise GatewayError("Failed to create checkout session")
        return CheckoutSession(
            session_id=f"cs_test_{correlation_id}",
            redirect_url=f"https://checkout.test/pay/cs_test_{correlation_id}",
            metadata={ORDER_ID_METADATA_KEY: str(correlation_id)},
        )


class InMemoryRedis:
    """Tyle redisa ile uzywamy: zbiory, SET NX, EVAL zwalniania locka."""

    def __init__(self):
        self.sets = {}
        self.values = {}
        self.ttls = {}

    def sadd(self, key, *members):
        bucket = self.sets.setdefault(key, set())
        added = len(set(members) - bucket)
        bucket.update(members)
        return added

    def srem(self, key, *members):
        bucket = self.sets.get(key, set())
        removed = len(bucket & set(members))
        bucket.difference_update(members)
        return removed

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def expire(self, key, ttl):
        self.ttls[key] = ttl
        return True

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.values:
            return None
        self.values[name] = value
        if ex:
            self.ttls[name] = ex
        return True

    def get(self, name):
        return self.values.get(name)

    def eval(self, script, numkeys, key, owner):
        if self.values.get(key) == owner:
            del self.values[key]
            return 1
        return 0


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def catalog(db):
    """Dwa produkty z przykladu: 12.99 i 15.99, plus jeden niedostepny."""
    products = [
        ProductModel(name="Margherita", price=Decimal("12.99"), available=True),
        ProductModel(name="Pepperoni", price=Decimal("15.99"), available=True),
        ProductModel(name="Seasonal Special", price=Decimal("20.00"), available=False),
    ]
    db.add_all(products)
    db.commit()
    return products


@pytest.fixture()
def customer(db):
    user = UserModel(id=10, email="customer@example.com", name="Customer")
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def admin(db):
    user = UserModel(id=1, email="admin@example.com", name="Admin", is_admin=True)
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def notifier():
    return MagicMock()


@pytest.fixture()
def fake_redis():
    return InMemoryRedis()


@pytest.fixture(autouse=True)
def no_broker(monkeypatch):
    """Zadne .delay() nie idzie do prawdziwego brokera."""
    from storefront.services import notification_service
    from storefront.tasks import analytics

    email_delay = MagicMock()
    counts_delay = MagicMock()
    monkeypatch.setattr(notification_service.send_email_task, "delay", email_delay)
    monkeypatch.setattr(analytics.record_order_counts_task, "delay", counts_delay)
    return {"email": email_delay, "order_counts": counts_delay}


@pytest.fixture()
def failing_gateway():
    return FakeGateway(fail=True)


def _signature(payload: str, secret: str, timestamp: int) -> str:
    digest = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256)
    return f"t={timestamp},v1={digest.hexdigest()}"


@pytest.fixture()
def stripe_event():
    """Buduje podpisany event checkoutu: zwraca (body, naglowek Stripe-Signature)."""

    def build(
        session_id,
        order_id=None,
        event_type="checkout.session.completed",
        payment_status="paid",
        secret=WEBHOOK_SECRET,
    ):
        metadata = {"order_id": str(order_id)} if order_id is not None else {}
        body = json.dumps(
            {
                "id": f"evt_{session_id}_{event_type.rsplit('.', 1)[-1]}",
                "object": "event",
                "type": event_type,
                "data": {
                    "object": {
                        "id": session_id,
                        "object": "checkout.session",
                        "payment_status": payment_status,
                        "metadata": metadata,
                    }
                },
            }
        )
        return body.encode("utf-8"), _signature(body, secret, int(time.time()))

    return build


@pytest.fixture()
def sign_payload():
    """Podpis dla dowolnego body, np. zeby sprawdzic parsowanie po weryfikacji."""

    def sign(body: str, secret=WEBHOOK_SECRET):
        return body.encode("utf-8"), _signature(body, secret, int(time.time()))

    return sign
