import threading
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.db import SessionLocal
from app.main import app
from app.models.order import Order
from app.services.cart_service import KioskOwner, UserOwner
from app.services.checkout_service import CheckoutService
from app.services.exceptions import (
    EmptyCart,
    InsufficientStock,
    InventoryLockTimeout,
    PosError,
    SessionExpired,
)
from app.services.inventory_service import InventoryService
from app.utils.transactions import UnitOfWork
from conftest import read_variant, update_variant, user_headers

client = TestClient(app)


def _user_add(user_id, variant_id, qty):
    res = client.post(
        "/api/cart/items",
        json={"product_variant_id": variant_id, "qty": qty},
        headers=user_headers(user_id),
    )
    assert res.status_code == 200
    return res


def _order_count(user_id):
    db = SessionLocal()
    try:
        return db.query(Order).filter(Order.user_id == user_id).count()
    finally:
        db.close()


def test_failed_line_rolls_back_whole_checkout(user_id, make_variant):
    a = make_variant(stock_qty=5)
    b = make_variant(stock_qty=5)
    _user_add(user_id, a, 2)
    _user_add(user_id, b, 2)
    update_variant(b, stock_qty=1)

    res = client.post("/api/checkout", headers=user_headers(user_id))
    assert res.status_code == 422
    assert res.json()["detail"].startswith("Not enough stock for SKU:")

    assert read_variant(a).stock_qty == 5
    assert read_variant(b).stock_qty == 1
    assert _order_count(user_id) == 0
    cart = client.get("/api/cart", headers=user_headers(user_id)).json()
    assert len(cart["cart"]["items"]) == 2


def test_inactive_variant_fails_checkout(user_id, make_variant):
    a = make_variant(stock_qty=5)
    b = make_variant(stock_qty=5)
    _user_add(user_id, a, 1)
    _user_add(user_id, b, 1)
    update_variant(b, is_active=False)

    res = client.post("/api/checkout", headers=user_headers(user_id))
    assert res.status_code == 422
    assert res.json()["detail"] == f"Variant inactive: {b}"
    assert read_variant(a).stock_qty == 5
    assert _order_count(user_id) == 0


def test_concurrent_checkouts_never_oversell(make_variant):
    vid = make_variant(stock_qty=1)
    buyers = [8101, 8102]
    for uid in buyers:
        _user_add(uid, vid, 1)

    barrier = threading.Barrier(len(buyers))
    results = {}

    def buy(uid):
        db = SessionLocal()
        try:
            barrier.wait()
            order = CheckoutService(db).checkout(UserOwner(uid))
            results[uid] = order.order_no
        except InsufficientStock as e:
            results[uid] = e
        finally:
            db.close()

    threads = [threading.Thread(target=buy, args=(uid,)) for uid in buyers]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    outcomes = list(results.values())
    assert len(outcomes) == 2
    assert sum(isinstance(o, str) for o in outcomes) == 1
    assert sum(isinstance(o, InsufficientStock) for o in outcomes) == 1
    assert read_variant(vid).stock_qty == 0


def test_lock_sequence_follows_configured_order(db):
    items = [SimpleNamespace(product_variant_id=i) for i in (7, 3, 5)]

    as_added = CheckoutService(db, lock_order="insertion")._lock_sequence(items)
    assert [i.product_variant_id for i in as_added] == [7, 3, 5]

    by_id = CheckoutService(db, lock_order="variant_id")._lock_sequence(items)
    assert [i.product_variant_id for i in by_id] == [3, 5, 7]


def test_lock_wait_times_out(make_variant):
    vid = make_variant(stock_qty=3)
    holder_db, waiter_db = SessionLocal(), SessionLocal()
    try:
        with UnitOfWork(holder_db) as holder:
            holder.hold_lock(f"variant_{vid}", timeout=1)
            with pytest.raises(InventoryLockTimeout):
                with UnitOfWork(waiter_db) as waiter:
                    InventoryService(waiter_db, lock_timeout=0.1).lock_variant(waiter, vid)
    finally:
        holder_db.close()
        waiter_db.close()

    # released once the holder's unit of work ends
    with UnitOfWork(waiter_db) as uow:
        assert InventoryService(waiter_db, lock_timeout=1).lock_variant(uow, vid).stock_qty == 3
    waiter_db.close()


def test_lock_timeout_answers_503_with_retry_after(user_id, make_variant, monkeypatch, db):
    vid = make_variant(stock_qty=3)
    _user_add(user_id, vid, 1)
    monkeypatch.setattr(settings, "INVENTORY_LOCK_TIMEOUT_SECONDS", 0.1)

    with UnitOfWork(db) as holder:
        holder.hold_lock(f"variant_{vid}", timeout=1)
        res = client.post("/api/checkout", headers=user_headers(user_id))

    assert res.status_code == 503
    assert res.headers["Retry-After"] == "1"
    assert read_variant(vid).stock_qty == 3
    assert _order_count(user_id) == 0


def _race(checkouts):
    """Run each callable at the same moment; return what each returned or raised."""
    barrier = threading.Barrier(len(checkouts))
    outcomes = [None] * len(checkouts)

    def run(i, fn):
        db = SessionLocal()
        try:
            barrier.wait()
            outcomes[i] = fn(db).order_no
        except PosError as e:
            outcomes[i] = e
        finally:
            db.close()

    threads = [threading.Thread(target=run, args=(i, fn)) for i, fn in enumerate(checkouts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


def test_same_kiosk_cart_checked_out_twice_yields_one_order(make_variant):
    vid = make_variant(stock_qty=10)
    key = client.post("/api/kiosk/cart/init").json()["session_key"]
    client.post(
        "/api/kiosk/cart/items",
        json={"product_variant_id": vid, "qty": 3},
        headers={"X-Session-Key": key},
    )

    def buy(db):
        return CheckoutService(db).checkout(KioskOwner(key))

    outcomes = _race([buy, buy])

    assert sum(isinstance(o, str) for o in outcomes) == 1
    assert sum(isinstance(o, SessionExpired) for o in outcomes) == 1
    assert read_variant(vid).stock_qty == 7
    db = SessionLocal()
    try:
        assert db.query(Order).filter(Order.session_key == key).count() == 1
    finally:
        db.close()


def test_same_user_cart_checked_out_twice_yields_one_order(user_id, make_variant):
    vid = make_variant(stock_qty=10)
    _user_add(user_id, vid, 3)

    def buy(db):
        return CheckoutService(db).checkout(UserOwner(user_id))

    outcomes = _race([buy, buy])

    assert sum(isinstance(o, str) for o in outcomes) == 1
    assert sum(isinstance(o, EmptyCart) for o in outcomes) == 1
    assert read_variant(vid).stock_qty == 7
    assert _order_count(user_id) == 1


def test_checkout_of_finished_kiosk_cart_is_rejected(make_variant, db):
    vid = make_variant(stock_qty=5)
    key = client.post("/api/kiosk/cart/init").json()["session_key"]
    client.post(
        "/api/kiosk/cart/items",
        json={"product_variant_id": vid, "qty": 1},
        headers={"X-Session-Key": key},
    )
    svc = CheckoutService(db)
    cart = svc.carts.resolve_for_checkout(KioskOwner(key))
    svc.checkout_cart(cart, KioskOwner(key))

    # a second pass with the cart object read before the first one finished
    with pytest.raises(SessionExpired):
        svc.checkout_cart(cart, KioskOwner(key))
    assert read_variant(vid).stock_qty == 4
