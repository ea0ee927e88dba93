from conftest import auth


def add(client, user, product, quantity=1):
    return client.post("/cart/items", json={"product_id": product.id, "quantity": quantity}, headers=auth(user))


def test_empty_cart(client, customer):
    resp = client.get("/cart", headers=auth(customer))

    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert resp.json()["summary"]["total"] == 0


def test_add_merges_lines_and_summarises(client, customer, make_product):
    duvet = make_product(price=12000, discount_price=10000)
    lamp = make_product(price=25000)

    add(client, customer, duvet)
    add(client, customer, lamp)
    resp = add(client, customer, lamp)

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["items"]) == 2
    assert body["summary"] == {
        "subtotal": 60000,
        "tax": 4800,
        "shipping_cost": 0,
        "discount": 0,
        "total": 64800,
    }
    assert client.get("/cart/count", headers=auth(customer)).json() == {"count": 3}


def test_add_checks_stock_and_product(client, customer, make_product):
    product = make_product(stock=2)

    assert add(client, customer, product, 2).status_code == 200
    resp = add(client, customer, product, 1)
    assert resp.status_code == 400
    assert "Insufficient stock" in resp.json()["detail"]

    hidden = make_product(is_active=False)
    assert add(client, customer, hidden).status_code == 404


def test_update_and_remove(client, customer, make_product):
    product = make_product(stock=5)
    item_id = add(client, customer, product).json()["items"][0]["item_id"]

    resp = client.put(f"/cart/items/{item_id}", json={"quantity": 4}, headers=auth(customer))
    assert resp.json()["items"][0]["quantity"] == 4

    assert client.put(f"/cart/items/{item_id}", json={"quantity": 6},
                      headers=auth(customer)).status_code == 400

    resp = client.put(f"/cart/items/{item_id}", json={"quantity": 0}, headers=auth(customer))
    assert resp.json()["items"] == []

    assert client.delete(f"/cart/items/{item_id}", headers=auth(customer)).status_code == 404


def test_other_customers_items_are_invisible(client, customer, other_customer, make_product):
    product = make_product()
    item_id = add(client, customer, product).json()["items"][0]["item_id"]

    assert client.delete(f"/cart/items/{item_id}", headers=auth(other_customer)).status_code == 404


def test_coupon_is_cleared_when_items_change(client, customer, make_product, make_coupon):
    product = make_product(price=20000)
    make_coupon(code="CART10", discount_value=10)
    add(client, customer, product)

    resp = client.post("/cart/coupon", json={"code": "cart10"}, headers=auth(customer))
    assert resp.status_code == 200
    assert resp.json()["coupon_code"] == "CART10"
    assert resp.json()["summary"]["discount"] == 2000

    resp = add(client, customer, product)
    assert resp.json()["coupon_code"] is None
    assert resp.json()["summary"]["discount"] == 0


def test_coupon_errors(client, customer, make_product, make_coupon):
    assert client.post("/cart/coupon", json={"code": "ANY"}, headers=auth(customer)).status_code == 400

    product = make_product(price=5000)
    make_coupon(code="BIGSPEND", min_purchase_amount=100000)
    add(client, customer, product)

    assert client.post("/cart/coupon", json={"code": "BIGSPEND"}, headers=auth(customer)).status_code == 400
    assert client.post("/cart/coupon", json={"code": "MISSING"}, headers=auth(customer)).status_code == 400

    resp = client.delete("/cart/coupon", headers=auth(customer))
    assert resp.status_code == 200
    assert resp.json()["coupon_code"] is None


def test_clear(client, customer, make_product):
    add(client, customer, make_product())

    assert client.delete("/cart/clear", headers=auth(customer)).status_code == 200
    assert client.get("/cart", headers=auth(customer)).json()["items"] == []
    assert client.get("/cart/count", headers=auth(customer)).json() == {"count": 0}
