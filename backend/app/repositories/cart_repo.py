from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models.cart import Cart, CartStatus
from app.models.cart_item import CartItem
from app.models.product_variant import ProductVariant


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: int) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()

    def get_by_session_key(self, session_key: str) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.session_key == session_key).first()

    def create_user_cart(self, user_id: int) -> Cart:
        c = Cart(user_id=user_id, status=CartStatus.ACTIVE)
        self.db.add(c)
        self.db.flush()
        return c

    def create_kiosk_cart(self, session_key: str, now: datetime) -> Cart:
        c = Cart(session_key=session_key, status=CartStatus.ACTIVE, last_activity_at=now)
        self.db.add(c)
        self.db.flush()
        return c

    def lock_cart(self, cart_id: int) -> Optional[Cart]:
        """Re-read the cart row under FOR UPDATE, discarding any stale copy."""
        return (
            self.db.query(Cart)
            .filter(Cart.id == cart_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def list_stale_kiosk_carts(self, idle_before: datetime) -> List[Cart]:
        return (
            self.db.query(Cart)
            .filter(
                Cart.session_key.isnot(None),
                Cart.status == CartStatus.ACTIVE,
                Cart.last_activity_at < idle_before,
            )
            .all()
        )

    def list_items(self, cart: Cart, refresh: bool = False) -> List[CartItem]:
        """Items in storage order, with variant and product loaded for display."""
        qry = (
            self.db.query(CartItem)
            .options(selectinload(CartItem.variant).selectinload(ProductVariant.product))
            .filter(CartItem.cart_id == cart.id)
        )
        if refresh:
            qry = qry.populate_existing()
        return qry.order_by(CartItem.id).all()

    def get_item(self, cart: Cart, item_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.id == item_id, CartItem.cart_id == cart.id)
            .first()
        )

    def find_item_for_variant(self, cart: Cart, variant_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart.id, CartItem.product_variant_id == variant_id)
            .first()
        )

    def add_item(self, cart: Cart, variant: ProductVariant, qty: int) -> CartItem:
        item = CartItem(
            cart_id=cart.id,
            product_variant_id=variant.id,
            qty=qty,
            price_snapshot=variant.price,
        )
        self.db.add(item)
        self.db.flush()
        return item

    def delete_item(self, item: CartItem) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear(self, cart: Cart) -> int:
        removed = (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart.id)
            .delete(synchronize_session=False)
        )
        self.db.expire(cart, ["items"])
        return removed
