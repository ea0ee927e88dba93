import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta

# settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_storefront"
os.environ["ADMIN_EMAILS"] = '["ops@uzyhomes.test"]'
os.environ.pop("PAYSTACK_WEBHOOK_SECRET", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from storefront import models  # noqa: F401
from storefront.config import settings
from storefront.database import engine
from storefront.main import app
from storefront.models.coupon import Coupon
from storefront.models.product import Product
from storefront.models.user import User
from storefront.notifications import delivery
from storefront.services import email_service
from storefront.services.paystack_client import PaystackError, get_payment_gateway
from storefront.utils.token import create_access_token


ADDRESS = {
    "first_name": "Ada",
    "last_name": "Obi",
    "phone": "+2348000000000",
    "street": "12 Admiralty Way",
    "city": "Lekki",
    "state": "Lagos",
    "zip_code": "106104",
}


class FakeGateway:
    """In-memory stand-in for PaystackClient."""

    def __init__(self):
        self.initialized = {}
        self.verify_status = "success"
        self.fail_initialize = False
        self.fail_verify = False
        self.fail_refund = False
        self.refunds = []
        self._next_id = 900001

    def initialize_transaction(self, *, amount, email, reference, callback_url=None, metadata=None):
        if self.fail_initialize:
            raise PaystackError("Paystack Error: Invalid key")
        self.initialized[reference] = {"amount": amount, "email": email, "metadata": metadata}
        return {
            "authorization_url": f"https://checkout.paystack.com/{reference.lower()}",
            "access_code": f"ac_{reference.lower()}",
            "reference": reference,
        }

    def transaction(self, reference, status=None):
        txn = self.initialized[reference]
        return {
            "id": 4000000 + list(self.initialized).index(reference),
            "status": status or self.verify_status,
            "reference": reference,
            "amount": txn["amount"],
            "currency": "NGN",
            "paid_at": "2026-10-19T10:00:00.000Z",
            "channel": "card",
            "gateway_response": "Successful",
            "authorization": {"brand": "visa", "last4": "4081"},
            "customer": {"email": txn["email"]},
        }

    def verify_transaction(self, reference):
        if self.fail_verify:
            raise PaystackError("Paystack unreachable")
        return self.transaction(reference)

    def create_refund(self, transaction_id, amount=None):
        if self.fail_refund:
            raise PaystackError("Paystack Error: Transaction has been fully reversed")
        self._next_id += 1
        self.refunds.append(transaction_id)
        return {"id": self._next_id, "status": "pending", "transaction": {"id": transaction_id}}


@pytest.fixture
def db():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Record outgoing email and keep delivery out of the request cycle."""
    sent = []

    def fake_send(to, subject, html):
        sent.append({"to": to, "subject": subject})
        return True

    monkeypatch.setattr(email_service, "send_email", fake_send)
    monkeypatch.setattr(delivery, "deliver_outbox", lambda: None)
    return sent


@pytest.fixture
def client(db, gateway):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _user(db, email, role="user", first_name="Ada"):
    user = User(first_name=first_name, last_name="Obi", email=email, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return _user(db, "ada@example.com")


@pytest.fixture
def other_customer(db):
    return _user(db, "tunde@example.com", first_name="Tunde")


@pytest.fixture
def admin(db):
    return _user(db, "admin@uzyhomes.test", role="admin", first_name="Admin")


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "name": f"Cotton Duvet {n}",
            "slug": f"cotton-duvet-{n}",
            "description": "Soft cotton",
            "category": "bedding",
            "price": 10000,
            "stock": 10,
            "sku": f"SKU-{n:04d}",
        }
        data.update(kwargs)
        product = Product(**data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_coupon(db):
    def _make(**kwargs):
        now = datetime.utcnow()
        data = {
            "code": "WELCOME10",
            "discount_type": "percentage",
            "discount_value": 10,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
        }
        data.update(kwargs)
        coupon = Coupon(**data)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make


@pytest.fixture
def place_order(client):
    def _place(user, items, coupon_code=None):
        body = {
            "items": [{"product_id": p.id, "quantity": q} for p, q in items],
            "shipping_address": ADDRESS,
        }
        if coupon_code:
            body["coupon_code"] = coupon_code
        return client.post("/orders", json=body, headers=auth(user))

    return _place


def sign(payload: bytes, secret: str = None) -> str:
    secret = secret or settings.webhook_secret
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


@pytest.fixture
def send_webhook(client):
    def _send(event, data, signature=None):
        raw = json.dumps({"event": event, "data": data}).encode("utf-8")
        return client.post(
            "/webhooks/paystack",
            content=raw,
            headers={
                "Content-Type": "application/json",
                "x-paystack-signature": signature if signature is not None else sign(raw),
            },
        )

    return _send
