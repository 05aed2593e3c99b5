from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import CurrentUser, get_current_user
from app.api.errors import to_http
from app.db import get_db
from app.schemas.cart_schema import AddItemIn, UpdateItemIn, cart_view
from app.services.cart_service import CartService, UserOwner
from app.services.exceptions import PosError

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", summary="Get my cart")
def get_cart(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    svc = CartService(db)
    return cart_view(svc.show(UserOwner(user.id)))


@router.post("/items", summary="Add item to cart (or increase qty if exists)")
def add_item(
    payload: AddItemIn,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.add_item(UserOwner(user.id), payload.product_variant_id, payload.qty)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.put("/items/{item_id}", summary="Update cart item qty")
def update_item(
    item_id: int,
    payload: UpdateItemIn,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.update_item(UserOwner(user.id), item_id, payload.qty)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.delete("/items/{item_id}", summary="Remove item from cart")
def remove_item(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        view = svc.remove_item(UserOwner(user.id), item_id)
    except PosError as e:
        raise to_http(e)
    return cart_view(view)


@router.delete("/clear", summary="Clear cart items")
def clear(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        view = svc.clear(UserOwner(user.id))
    except PosError as e:
        raise to_http(e)
    return cart_view(view)
