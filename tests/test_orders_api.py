from sqlmodel import select

from conftest import ADDRESS, auth
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.order_status_history import OrderStatusHistory
from storefront.models.product import Product


def test_create_order_prices_from_catalog(client, db, gateway, customer, make_product, place_order):
    sheet = make_product(price=12000, discount_price=10000)
    lamp = make_product(name="Brass Lamp", category="decor", price=25000, stock=3)

    resp = place_order(customer, [(sheet, 1), (lamp, 2)])

    assert resp.status_code == 201
    body = resp.json()
    order = body["order"]
    assert order["subtotal"] == 60000
    assert order["tax"] == 4800
    assert order["shipping_cost"] == 0
    assert order["total"] == 64800
    assert order["order_status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["order_number"].startswith("ORD-")
    assert order["order_number"].endswith(f"-{order['id']:06d}")
    assert order["payment_reference"].startswith("UZYHOMES-")
    assert order["billing_address"] == order["shipping_address"]
    assert body["authorization_url"].startswith("https://checkout.paystack.com/")

    # gateway is charged in kobo
    assert gateway.initialized[body["reference"]]["amount"] == 6480000

    lines = {i["product_id"]: i for i in order["items"]}
    assert lines[sheet.id]["unit_price"] == 10000
    assert lines[lamp.id]["unit_price"] == 25000

    # stock is only taken once payment is confirmed
    db.expire_all()
    assert db.get(Product, lamp.id).stock == 3

    history = db.exec(select(OrderStatusHistory).where(OrderStatusHistory.order_id == order["id"])).all()
    assert [h.status for h in history] == ["pending"]


def test_item_prices_do_not_follow_later_catalog_changes(client, db, customer, make_product, place_order):
    product = make_product(price=10000)
    order_id = place_order(customer, [(product, 1)]).json()["order"]["id"]

    product.price = 99000
    db.add(product)
    db.commit()

    resp = client.get(f"/orders/{order_id}", headers=auth(customer))
    assert resp.json()["items"][0]["unit_price"] == 10000


def test_duplicate_lines_are_merged(client, customer, make_product, place_order):
    product = make_product(stock=3)

    resp = place_order(customer, [(product, 1), (product, 2)])

    assert resp.status_code == 201
    items = resp.json()["order"]["items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 3


def test_insufficient_stock_persists_nothing(client, db, customer, make_product, place_order):
    product = make_product(stock=1)

    resp = place_order(customer, [(product, 2)])

    assert resp.status_code == 400
    assert "Insufficient stock" in resp.json()["detail"]
    assert db.exec(select(Order)).all() == []


def test_unknown_or_inactive_product_rejected(client, db, customer, make_product, place_order):
    hidden = make_product(is_active=False)

    assert place_order(customer, [(hidden, 1)]).status_code == 404

    resp = client.post(
        "/orders",
        json={"items": [{"product_id": 9999, "quantity": 1}], "shipping_address": ADDRESS},
        headers=auth(customer),
    )
    assert resp.status_code == 404
    assert db.exec(select(Order)).all() == []


def test_empty_items_or_missing_address_rejected(client, customer):
    assert client.post("/orders", json={"items": [], "shipping_address": ADDRESS},
                       headers=auth(customer)).status_code == 422
    assert client.post("/orders", json={"items": [{"product_id": 1, "quantity": 1}]},
                       headers=auth(customer)).status_code == 422


def test_gateway_failure_removes_the_order(client, db, gateway, customer, make_product, place_order):
    product = make_product()
    gateway.fail_initialize = True

    resp = place_order(customer, [(product, 1)])

    assert resp.status_code == 400
    assert "Payment initialization failed" in resp.json()["detail"]
    db.expire_all()
    assert db.exec(select(Order)).all() == []
    assert db.exec(select(OrderItem)).all() == []
    assert db.exec(select(OrderStatusHistory)).all() == []


def test_coupon_discount_applied_without_counting_usage(client, db, customer, make_product, make_coupon, place_order):
    product = make_product(price=20000)
    make_coupon(code="TENOFF", discount_value=10, max_discount_amount=1500)

    resp = place_order(customer, [(product, 1)], coupon_code="tenoff")

    assert resp.status_code == 201
    order = resp.json()["order"]
    assert order["coupon_code"] == "TENOFF"
    assert order["discount"] == 1500
    # 20,000 + 1,600 tax + 2,500 shipping - 1,500
    assert order["total"] == 22600

    db.expire_all()
    assert db.exec(select(Coupon).where(Coupon.code == "TENOFF")).one().usage_count == 0


def test_invalid_coupon_persists_nothing(client, db, customer, make_product, place_order):
    product = make_product()

    resp = place_order(customer, [(product, 1)], coupon_code="NOPE")

    assert resp.status_code == 400
    assert db.exec(select(Order)).all() == []


def test_requires_authentication(client, make_product):
    product = make_product()
    resp = client.post("/orders", json={
        "items": [{"product_id": product.id, "quantity": 1}],
        "shipping_address": ADDRESS,
    })
    assert resp.status_code == 401


def test_order_visibility(client, customer, other_customer, admin, make_product, place_order):
    product = make_product()
    order_id = place_order(customer, [(product, 1)]).json()["order"]["id"]

    assert client.get(f"/orders/{order_id}", headers=auth(customer)).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth(other_customer)).status_code == 403
    assert client.get(f"/orders/{order_id}", headers=auth(admin)).status_code == 200
    assert client.get("/orders/4242", headers=auth(customer)).status_code == 404

    mine = client.get("/orders", headers=auth(customer)).json()
    assert mine["total_items"] == 1
    assert client.get("/orders", headers=auth(other_customer)).json()["total_items"] == 0
