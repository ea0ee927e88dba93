import json

from sqlmodel import select

from conftest import sign
from storefront.models.email import EmailLog
from storefront.models.order import Order
from storefront.models.order_status_history import OrderStatusHistory
from storefront.models.payment import Payment
from storefront.models.product import Product
from storefront.services import webhook_service


def history_count(db):
    return len(db.exec(select(OrderStatusHistory)).all())


def test_bad_signature_is_rejected_without_writes(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product(stock=5)
    created = place_order(customer, [(product, 1)]).json()
    before = history_count(db)

    forged = send_webhook("charge.success", gateway.transaction(created["reference"]), signature="deadbeef")
    missing = send_webhook("charge.success", gateway.transaction(created["reference"]), signature="")

    assert forged.status_code == 403
    assert missing.status_code == 403

    db.expire_all()
    order = db.get(Order, created["order"]["id"])
    assert order.payment_status == "pending"
    assert db.get(Product, product.id).stock == 5
    assert db.exec(select(Payment)).all() == []
    assert db.exec(select(EmailLog)).all() == []
    assert history_count(db) == before


def test_signature_is_checked_against_raw_bytes(client, db, gateway, customer, make_product, place_order):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()
    payload = {"event": "charge.success", "data": gateway.transaction(created["reference"])}

    signed = json.dumps(payload).encode()
    # same JSON document, different bytes
    sent = json.dumps(payload, indent=2).encode()

    resp = client.post("/webhooks/paystack", content=sent,
                       headers={"x-paystack-signature": sign(signed)})

    assert resp.status_code == 403


def test_non_ascii_signature_header_is_rejected(client, db, gateway, customer, make_product, place_order):
    product = make_product(stock=5)
    created = place_order(customer, [(product, 1)]).json()
    raw = json.dumps({"event": "charge.success", "data": gateway.transaction(created["reference"])}).encode()

    resp = client.post("/webhooks/paystack", content=raw, headers={"x-paystack-signature": b"caf\xc3\xa9"})

    assert resp.status_code == 403
    db.expire_all()
    assert db.get(Order, created["order"]["id"]).payment_status == "pending"
    assert db.get(Product, product.id).stock == 5


def test_unparsable_body(client):
    raw = b"not json"
    resp = client.post("/webhooks/paystack", content=raw, headers={"x-paystack-signature": sign(raw)})
    assert resp.status_code == 400


def test_charge_success_confirms(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product(stock=5)
    created = place_order(customer, [(product, 2)]).json()

    resp = send_webhook("charge.success", gateway.transaction(created["reference"]))

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    db.expire_all()
    order = db.get(Order, created["order"]["id"])
    assert order.payment_status == "completed"
    assert order.order_status == "confirmed"
    assert order.payment_details["transaction_id"] == str(gateway.transaction(created["reference"])["id"])
    assert db.get(Product, product.id).stock == 3

    history = db.exec(
        select(OrderStatusHistory).where(OrderStatusHistory.order_id == order.id)
    ).all()
    assert history[-1].created_by == "webhook"


def test_unknown_reference_and_event_are_acknowledged(client, send_webhook):
    assert send_webhook("charge.success", {"reference": "NOT-OURS"}).status_code == 200
    assert send_webhook("transfer.success", {"reference": "X"}).status_code == 200


def test_charge_failed_marks_pending_payment_failed(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()

    resp = send_webhook("charge.failed", {"reference": created["reference"], "gateway_response": "Declined"})

    assert resp.status_code == 200
    db.expire_all()
    order = db.get(Order, created["order"]["id"])
    assert order.payment_status == "failed"
    assert order.payment_details["failure_reason"] == "Declined"
    failed_mail = db.exec(select(EmailLog).where(EmailLog.event == "payment_failed")).one()
    assert failed_mail.to_email == customer.email


def test_charge_failed_never_downgrades_a_paid_order(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()
    send_webhook("charge.success", gateway.transaction(created["reference"]))

    send_webhook("charge.failed", {"reference": created["reference"], "gateway_response": "Declined"})

    db.expire_all()
    assert db.get(Order, created["order"]["id"]).payment_status == "completed"


def test_failed_then_successful_charge(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()

    send_webhook("charge.failed", {"reference": created["reference"]})
    send_webhook("charge.success", gateway.transaction(created["reference"]))

    db.expire_all()
    order = db.get(Order, created["order"]["id"])
    assert order.payment_status == "completed"
    assert order.order_status == "confirmed"


def test_refund_processed_marks_refunded_once(client, db, gateway, customer, make_product, place_order, send_webhook):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()
    transaction = gateway.transaction(created["reference"])
    send_webhook("charge.success", transaction)

    refund = {"transaction": transaction["id"], "status": "processed", "refund_reference": "RF-1"}
    assert send_webhook("refund.processed", refund).status_code == 200
    assert send_webhook("refund.processed", refund).status_code == 200

    db.expire_all()
    order = db.get(Order, created["order"]["id"])
    assert order.payment_status == "refunded"
    assert order.order_status == "refunded"
    payment = db.exec(select(Payment)).one()
    assert payment.status == "refunded"
    assert payment.refund_reference == "RF-1"
    assert len(db.exec(select(EmailLog).where(EmailLog.event == "refund_processed")
                       .where(EmailLog.to_email == customer.email)).all()) == 1


def test_processing_error_returns_500_and_rolls_back(client, db, gateway, customer, make_product, place_order, send_webhook, monkeypatch):
    product = make_product()
    created = place_order(customer, [(product, 1)]).json()

    def explode(session, data):
        raise RuntimeError("database went away")

    monkeypatch.setitem(webhook_service.EVENT_HANDLERS, "charge.success", explode)

    resp = send_webhook("charge.success", gateway.transaction(created["reference"]))

    assert resp.status_code == 500
    db.expire_all()
    assert db.get(Order, created["order"]["id"]).payment_status == "pending"
