from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_session_key
from app.api.errors import to_http
from app.db import get_db
from app.schemas.cart_schema import AddItemIn, UpdateItemIn, cart_view
from app.schemas.order_schema import order_detail
from app.services.cart_service import CartService, KioskOwner
from app.services.checkout_service import CheckoutService
from app.services.exceptions import PosError
from app.services.kiosk_session_service import KioskSessionService
from app.services.order_service import OrderService
from app.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/kiosk", tags=["kiosk"])


@router.post("/cart/init", summary="Create new kiosk cart session (returns session_key)")
def init_session(db: Session = Depends(get_db)):
    return KioskSessionService(db).init_session()


@router.get("/cart", summary="Get kiosk cart by session key")
def get_cart(session_key: Optional[str] = Depends(get_session_key), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        view = svc.show(KioskOwner(session_key))
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.post("/cart/items", summary="Add item to kiosk cart (or increase qty if exists)")
def add_item(
    payload: AddItemIn,
    session_key: Optional[str] = Depends(get_session_key),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.add_item(KioskOwner(session_key), payload.product_variant_id, payload.qty)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.put("/cart/items/{item_id}", summary="Update kiosk cart item qty")
def update_item(
    item_id: int,
    payload: UpdateItemIn,
    session_key: Optional[str] = Depends(get_session_key),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.update_item(KioskOwner(session_key), item_id, payload.qty)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.delete("/cart/items/{item_id}", summary="Remove item from kiosk cart")
def remove_item(
    item_id: int,
    session_key: Optional[str] = Depends(get_session_key),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.remove_item(KioskOwner(session_key), item_id)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.delete("/cart/clear", summary="Clear kiosk cart items")
def clear(session_key: Optional[str] = Depends(get_session_key), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        view = svc.clear(KioskOwner(session_key))
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.post("/cart/ping", summary="Refresh session activity (Continue button)")
def ping(session_key: Optional[str] = Depends(get_session_key), db: Session = Depends(get_db)):
    try:
        return KioskSessionService(db).ping(session_key)
    except PosError as e:
        raise to_http(e)


@router.post(
    "/checkout",
    status_code=status.HTTP_201_CREATED,
    summary="Checkout: convert kiosk cart to order",
)
def checkout(session_key: Optional[str] = Depends(get_session_key), db: Session = Depends(get_db)):
    svc = CheckoutService(db)
    try:
        order = svc.checkout(KioskOwner(session_key))
    except PosError as e:
        raise to_http(e)
    except Exception:
        log.exception("kiosk checkout crashed")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "Order created", "order": order_detail(order)}


@router.get("/orders/{order_no}", summary="Get order by order_no (receipt screen)")
def get_order_by_number(order_no: str, db: Session = Depends(get_db)):
    try:
        order = OrderService(db).get_by_number(order_no)
    except PosError as e:
        raise to_http(e)
    return order_detail(order)
