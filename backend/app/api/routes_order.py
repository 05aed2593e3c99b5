from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import CurrentUser, get_current_user
from app.api.errors import to_http
from app.db import get_db
from app.schemas.order_schema import order_detail, order_page
from app.services.cart_service import UserOwner
from app.services.checkout_service import CheckoutService
from app.services.exceptions import PosError
from app.services.order_service import OrderService
from app.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["orders"])


@router.post(
    "/checkout",
    status_code=status.HTTP_201_CREATED,
    summary="Checkout: create order from current cart",
)
def checkout(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    svc = CheckoutService(db)
    try:
        order = svc.checkout(UserOwner(user.id))
    except PosError as e:
        raise to_http(e)
    except Exception:
        log.exception("checkout crashed for user %s", user.id)
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "Order created", "order": order_detail(order)}


@router.get("/orders", summary="Get my orders")
def my_orders(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return order_page(OrderService(db).list_for_user(user.id, page=page, size=size))


@router.get("/orders/{order_id}", summary="Get my order detail")
def my_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        order = OrderService(db).get_for_user(user.id, order_id)
    except PosError as e:
        raise to_http(e)
    return order_detail(order)
