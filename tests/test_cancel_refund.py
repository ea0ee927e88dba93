import pytest
from sqlalchemy import update
from sqlmodel import select

from conftest import auth
from storefront.models.email import EmailLog
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.models.product import Product


@pytest.fixture
def paid_order(client, db, gateway, customer, make_product, place_order):
    product = make_product(stock=5)
    created = place_order(customer, [(product, 2)]).json()
    client.post("/orders/verify", json={"reference": created["reference"]}, headers=auth(customer))
    return created["order"]["id"], product


def set_status(db, order_id, **values):
    db.execute(update(Order).where(Order.id == order_id).values(**values))
    db.commit()
    db.expire_all()


def test_cancel_unpaid_order(client, db, customer, make_product, place_order):
    product = make_product()
    order_id = place_order(customer, [(product, 1)]).json()["order"]["id"]

    resp = client.put(f"/orders/{order_id}/cancel", json={"reason": "Changed my mind"}, headers=auth(customer))

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["order_status"] == "cancelled"
    assert order["payment_status"] == "pending"
    assert order["status_history"][-1]["note"] == "Changed my mind"
    assert db.exec(select(EmailLog).where(EmailLog.event == "order_cancelled")).all()


def test_cancel_paid_order_restocks_and_refunds(client, db, gateway, customer, paid_order):
    order_id, product = paid_order
    db.expire_all()
    assert db.get(Product, product.id).stock == 3

    resp = client.put(f"/orders/{order_id}/cancel", headers=auth(customer))

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["order_status"] == "cancelled"
    assert order["payment_status"] == "refunded"
    assert len(gateway.refunds) == 1

    db.expire_all()
    assert db.get(Product, product.id).stock == 5
    assert db.exec(select(Payment)).one().status == "refunded"


def test_cancel_survives_refund_failure(client, db, gateway, customer, paid_order):
    order_id, product = paid_order
    gateway.fail_refund = True

    resp = client.put(f"/orders/{order_id}/cancel", headers=auth(customer))

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["order_status"] == "cancelled"
    assert order["payment_status"] == "completed"
    db.expire_all()
    assert db.get(Product, product.id).stock == 5


@pytest.mark.parametrize("status", ["shipped", "delivered", "cancelled", "refunded"])
def test_cannot_cancel_late_orders(client, db, customer, paid_order, status):
    order_id, _ = paid_order
    set_status(db, order_id, order_status=status)

    resp = client.put(f"/orders/{order_id}/cancel", headers=auth(customer))

    assert resp.status_code == 400
    db.expire_all()
    assert db.get(Order, order_id).order_status == status


def test_cannot_cancel_someone_elses_order(client, db, other_customer, admin, paid_order):
    order_id, _ = paid_order

    assert client.put(f"/orders/{order_id}/cancel", headers=auth(other_customer)).status_code == 403
    db.expire_all()
    assert db.get(Order, order_id).order_status == "confirmed"

    assert client.put(f"/orders/{order_id}/cancel", headers=auth(admin)).status_code == 200


def test_refund_requires_delivered_and_paid(client, db, customer, paid_order, make_product, place_order):
    order_id, _ = paid_order

    # confirmed but not delivered
    assert client.post(f"/orders/{order_id}/refund", headers=auth(customer)).status_code == 400

    product = make_product()
    unpaid_id = place_order(customer, [(product, 1)]).json()["order"]["id"]
    set_status(db, unpaid_id, order_status="delivered")
    assert client.post(f"/orders/{unpaid_id}/refund", headers=auth(customer)).status_code == 400


def test_refund_delivered_order(client, db, gateway, customer, paid_order):
    order_id, _ = paid_order
    set_status(db, order_id, order_status="delivered")

    resp = client.post(f"/orders/{order_id}/refund", json={"reason": "Wrong colour"}, headers=auth(customer))

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["order_status"] == "refunded"
    assert order["payment_status"] == "refunded"
    assert order["payment_details"]["refund_reference"]
    assert order["status_history"][-1]["note"] == "Wrong colour"

    # a second request finds nothing left to refund
    assert client.post(f"/orders/{order_id}/refund", headers=auth(customer)).status_code == 400
    assert len(gateway.refunds) == 1


def test_refunded_order_cannot_be_cancelled(client, db, gateway, customer, paid_order):
    order_id, product = paid_order
    set_status(db, order_id, order_status="delivered")
    client.post(f"/orders/{order_id}/refund", headers=auth(customer))

    resp = client.put(f"/orders/{order_id}/cancel", headers=auth(customer))

    assert resp.status_code == 400
    db.expire_all()
    assert db.get(Order, order_id).order_status == "refunded"
    assert db.get(Product, product.id).stock == 3
    assert len(gateway.refunds) == 1


def test_refund_gateway_failure_leaves_order_untouched(client, db, gateway, customer, paid_order):
    order_id, _ = paid_order
    set_status(db, order_id, order_status="delivered")
    gateway.fail_refund = True

    resp = client.post(f"/orders/{order_id}/refund", headers=auth(customer))

    assert resp.status_code == 400
    db.expire_all()
    order = db.get(Order, order_id)
    assert order.order_status == "delivered"
    assert order.payment_status == "completed"
