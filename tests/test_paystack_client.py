import hashlib
import hmac
from unittest.mock import MagicMock

import pytest
import requests

from storefront.config import settings
from storefront.services.paystack_client import (
    PaystackClient,
    PaystackError,
    verify_webhook_signature,
)


def response(status_code=200, body=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status_code
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def paystack(monkeypatch):
    client = PaystackClient(settings)
    client.session.request = MagicMock()
    return client


def test_initialize_sends_amount_in_kobo_and_returns_data(paystack):
    paystack.session.request.return_value = response(body={
        "status": True,
        "message": "Authorization URL created",
        "data": {"authorization_url": "https://checkout.paystack.com/x", "access_code": "x", "reference": "R1"},
    })

    data = paystack.initialize_transaction(amount=6480000, email="ada@example.com", reference="R1")

    assert data["access_code"] == "x"
    method, url = paystack.session.request.call_args.args
    payload = paystack.session.request.call_args.kwargs["json"]
    assert method == "POST"
    assert url.endswith("/transaction/initialize")
    assert payload["amount"] == 6480000
    assert payload["currency"] == "NGN"
    assert paystack.session.headers["Authorization"] == f"Bearer {settings.paystack_secret_key}"


def test_status_false_raises(paystack):
    paystack.session.request.return_value = response(body={"status": False, "message": "Invalid key"})

    with pytest.raises(PaystackError, match="Invalid key"):
        paystack.verify_transaction("R1")


def test_http_error_raises(paystack):
    paystack.session.request.return_value = response(404, body={"status": False, "message": "Transaction reference not found"})

    with pytest.raises(PaystackError):
        paystack.verify_transaction("R1")


def test_unparsable_body_raises(paystack):
    paystack.session.request.return_value = response(502, json_error=True)

    with pytest.raises(PaystackError):
        paystack.verify_transaction("R1")


def test_network_error_raises(paystack):
    paystack.session.request.side_effect = requests.ConnectionError("boom")

    with pytest.raises(PaystackError):
        paystack.create_refund("4000000")


def test_refund_posts_transaction_id(paystack):
    paystack.session.request.return_value = response(body={"status": True, "data": {"id": 5}})

    assert paystack.create_refund("4000000") == {"id": 5}
    assert paystack.session.request.call_args.kwargs["json"] == {"transaction": "4000000"}


def test_webhook_signature():
    body = b'{"event":"charge.success","data":{"reference":"R1"}}'
    good = hmac.new(b"whsec", body, hashlib.sha512).hexdigest()

    assert verify_webhook_signature("whsec", good, body) is True
    assert verify_webhook_signature("whsec", good, body + b" ") is False
    assert verify_webhook_signature("other", good, body) is False
    assert verify_webhook_signature("whsec", None, body) is False
    assert verify_webhook_signature("whsec", "", body) is False


def test_webhook_signature_with_non_ascii_header():
    body = b'{"event":"charge.success"}'
    good = hmac.new(b"whsec", body, hashlib.sha512).hexdigest()

    assert verify_webhook_signature("whsec", "café", body) is False
    assert verify_webhook_signature("whsec", good[:-1] + "é", body) is False
