from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.db import SessionLocal
from app.main import app
from app.models.cart import Cart, CartStatus
from app.services.cart_service import UserOwner
from app.services.checkout_service import CheckoutService, generate_order_number
from app.services.exceptions import ValidationError
from conftest import read_variant, update_variant, user_headers

client = TestClient(app)


def _dec(value):
    return Decimal(str(value))


def _kiosk_add(session_key, variant_id, qty):
    return client.post(
        "/api/kiosk/cart/items",
        json={"product_variant_id": variant_id, "qty": qty},
        headers={"X-Session-Key": session_key},
    )


def _user_add(user_id, variant_id, qty):
    return client.post(
        "/api/cart/items",
        json={"product_variant_id": variant_id, "qty": qty},
        headers=user_headers(user_id),
    )


def test_kiosk_purchase_end_to_end(make_variant):
    vid = make_variant(price="2.50", stock_qty=10)
    session = client.post("/api/kiosk/cart/init").json()
    key = session["session_key"]
    headers = {"X-Session-Key": key}

    assert _kiosk_add(key, vid, 3).status_code == 200
    res = _kiosk_add(key, vid, 2)
    assert res.status_code == 200
    cart = res.json()
    assert len(cart["cart"]["items"]) == 1
    assert cart["cart"]["items"][0]["qty"] == 5
    assert _dec(cart["total"]) == Decimal("12.50")

    res = client.post("/api/kiosk/checkout", headers=headers)
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Order created"
    order = body["order"]
    assert order["session_key"] == key
    assert order["user_id"] is None
    assert order["status"] == "PENDING"
    assert _dec(order["total_amount"]) == Decimal("12.50")
    assert len(order["items"]) == 1
    assert order["items"][0]["qty"] == 5
    assert order["items"][0]["variant"]["product"]["name"]

    assert read_variant(vid).stock_qty == 5

    db = SessionLocal()
    try:
        cart_row = db.get(Cart, session["cart_id"])
        assert cart_row.status == CartStatus.CHECKED_OUT
        assert cart_row.items == []
    finally:
        db.close()

    receipt = client.get(f"/api/kiosk/orders/{order['order_no']}")
    assert receipt.status_code == 200
    assert receipt.json()["id"] == order["id"]

    # the finished session cannot be reused
    assert client.get("/api/kiosk/cart", headers=headers).status_code == 440
    assert client.post("/api/kiosk/checkout", headers=headers).status_code == 440


def test_unknown_receipt_is_404():
    assert client.get("/api/kiosk/orders/ORD-19700101000000-0000").status_code == 404


def test_user_checkout_clears_cart_and_keeps_it_active(user_id, make_variant):
    a = make_variant(price="1.20", stock_qty=5)
    b = make_variant(price="3.05", stock_qty=5)
    _user_add(user_id, a, 2)
    _user_add(user_id, b, 1)

    res = client.post("/api/checkout", headers=user_headers(user_id))
    assert res.status_code == 201
    order = res.json()["order"]
    assert order["user_id"] == user_id
    assert len(order["items"]) == 2
    subtotals = sum(_dec(i["subtotal"]) for i in order["items"])
    assert subtotals == _dec(order["total_amount"]) == Decimal("5.45")
    for line in order["items"]:
        assert _dec(line["subtotal"]) == _dec(line["price_snapshot"]) * line["qty"]

    cart = client.get("/api/cart", headers=user_headers(user_id)).json()
    assert cart["cart"]["status"] == "ACTIVE"
    assert cart["cart"]["items"] == []
    assert read_variant(a).stock_qty == 3
    assert read_variant(b).stock_qty == 4


def test_checkout_empty_cart_is_rejected(user_id):
    client.get("/api/cart", headers=user_headers(user_id))
    res = client.post("/api/checkout", headers=user_headers(user_id))
    assert res.status_code == 422
    assert res.json()["detail"] == "Cart is empty"


def test_checkout_without_cart_is_rejected(user_id):
    res = client.post("/api/checkout", headers=user_headers(user_id))
    assert res.status_code == 422
    assert res.json()["detail"] == "Cart not found"


def test_checkout_charges_current_price_not_snapshot(user_id, make_variant):
    vid = make_variant(price="2.00", stock_qty=10)
    _user_add(user_id, vid, 3)
    update_variant(vid, price=Decimal("2.40"))

    cart = client.get("/api/cart", headers=user_headers(user_id)).json()
    assert _dec(cart["cart"]["items"][0]["price_snapshot"]) == Decimal("2.00")

    order = client.post("/api/checkout", headers=user_headers(user_id)).json()["order"]
    assert _dec(order["items"][0]["price_snapshot"]) == Decimal("2.40")
    assert _dec(order["total_amount"]) == Decimal("7.20")


def test_orders_are_scoped_to_their_owner(make_variant):
    owner, other = 7001, 7002
    vid = make_variant(stock_qty=10)
    _user_add(owner, vid, 1)
    order = client.post("/api/checkout", headers=user_headers(owner)).json()["order"]

    mine = client.get("/api/orders", headers=user_headers(owner)).json()
    assert [o["id"] for o in mine["items"]] == [order["id"]]
    assert mine["total"] == 1
    assert client.get(f"/api/orders/{order['id']}", headers=user_headers(owner)).status_code == 200

    assert client.get("/api/orders", headers=user_headers(other)).json()["items"] == []
    assert client.get(f"/api/orders/{order['id']}", headers=user_headers(other)).status_code == 404


def test_order_number_format():
    number = generate_order_number()
    prefix, stamp, suffix = number.split("-")
    assert prefix == "ORD"
    assert len(stamp) == 14 and stamp.isdigit()
    assert 1000 <= int(suffix) <= 9999


def test_order_number_collision_is_retried(user_id, make_variant, db):
    vid = make_variant(stock_qty=10)
    _user_add(user_id, vid, 1)
    first = client.post("/api/checkout", headers=user_headers(user_id)).json()["order"]

    candidates = iter([first["order_no"], "ORD-20260101000000-4242"])
    _user_add(user_id, vid, 1)
    order = CheckoutService(db, number_factory=lambda: next(candidates)).checkout(
        UserOwner(user_id)
    )
    assert order.order_no == "ORD-20260101000000-4242"


def test_order_number_gives_up_after_max_attempts(user_id, make_variant, db):
    vid = make_variant(stock_qty=10)
    _user_add(user_id, vid, 1)
    taken = client.post("/api/checkout", headers=user_headers(user_id)).json()["order"]["order_no"]

    _user_add(user_id, vid, 1)
    svc = CheckoutService(db, number_factory=lambda: taken)
    with pytest.raises(ValidationError):
        svc.checkout(UserOwner(user_id))
    # nothing was taken from stock
    assert read_variant(vid).stock_qty == 9


def test_order_number_taken_at_commit_time_is_retried(user_id, make_variant, db):
    vid = make_variant(stock_qty=10)
    _user_add(user_id, vid, 1)
    taken = client.post("/api/checkout", headers=user_headers(user_id)).json()["order"]["order_no"]

    _user_add(user_id, vid, 2)
    candidates = iter([taken, "ORD-20260101000000-5151"])
    svc = CheckoutService(db, number_factory=lambda: next(candidates))
    # the other checkout has not committed yet when the number is checked
    svc.order_repo.number_exists = lambda order_no: False

    order = svc.checkout(UserOwner(user_id))
    assert order.order_no == "ORD-20260101000000-5151"
    assert order.items[0].qty == 2
    assert read_variant(vid).stock_qty == 7
