from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.cart import Cart, CartStatus
from app.models.cart_item import CartItem
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.services.exceptions import (
    EmptyCart,
    NotFound,
    SessionExpired,
    ValidationError,
    VariantInactive,
)
from app.services.inventory_service import InventoryService
from app.services.kiosk_session_service import KioskSessionService
from app.utils.money import money


@dataclass(frozen=True)
class UserOwner:
    """Authenticated caller, identity supplied by the auth service."""

    user_id: int


@dataclass(frozen=True)
class KioskOwner:
    """Anonymous kiosk terminal, identified by its session key."""

    session_key: str


CartOwner = Union[UserOwner, KioskOwner]


class CartService:
    """
    One cart store for both owner kinds. Resolving the owner is the only
    place the two differ: user carts are created on first access, kiosk carts
    go through the session guard (which refreshes the session on every call).
    """

    def __init__(self, db: Session, sessions: KioskSessionService = None):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.inventory = InventoryService(db)
        self.sessions = sessions or KioskSessionService(db)

    def resolve(self, owner: CartOwner) -> Cart:
        if isinstance(owner, KioskOwner):
            return self.sessions.touch(owner.session_key)
        cart = self.cart_repo.get_by_user(owner.user_id)
        if not cart:
            cart = self.cart_repo.create_user_cart(owner.user_id)
            self.db.commit()
        return cart

    def resolve_for_checkout(self, owner: CartOwner) -> Cart:
        if isinstance(owner, KioskOwner):
            return self.sessions.touch(owner.session_key)
        cart = self.cart_repo.get_by_user(owner.user_id)
        if not cart:
            raise EmptyCart("Cart not found")
        return cart

    def _ensure_mutable(self, cart: Cart) -> None:
        if cart.status != CartStatus.ACTIVE:
            raise SessionExpired()

    def show(self, owner: CartOwner) -> Dict:
        return self.view(self.resolve(owner))

    def view(self, cart: Cart) -> Dict:
        items = self.cart_repo.list_items(cart)
        total = sum((i.qty * Decimal(i.price_snapshot) for i in items), Decimal("0.00"))
        return {"cart": cart, "items": items, "total": money(total)}

    def add_item(self, owner: CartOwner, variant_id: int, qty: int) -> Dict:
        cart = self.resolve(owner)
        self._ensure_mutable(cart)
        if qty < 1:
            raise ValidationError("The qty field must be at least 1.")

        variant = self.product_repo.get_variant(variant_id)
        if not variant:
            raise ValidationError("The selected product variant id is invalid.")
        if not variant.is_active:
            raise VariantInactive(f"Variant inactive: {variant.id}")

        self.inventory.ensure_available(variant, qty)

        item = self.cart_repo.find_item_for_variant(cart, variant.id)
        if not item:
            try:
                self.cart_repo.add_item(cart, variant, qty)
                self.db.commit()
                return self.view(cart)
            except IntegrityError:
                # a concurrent add created the line first; merge into it
                self.db.rollback()
                item = self.cart_repo.find_item_for_variant(cart, variant.id)
                if not item:
                    raise

        new_qty = item.qty + qty
        self.inventory.ensure_available(variant, new_qty)
        item.qty = new_qty
        item.price_snapshot = variant.price
        self.db.commit()
        return self.view(cart)

    def _owned_item(self, cart: Cart, item_id: int) -> CartItem:
        item = self.cart_repo.get_item(cart, item_id)
        if not item:
            raise NotFound("Cart item not found")
        return item

    def update_item(self, owner: CartOwner, item_id: int, qty: int) -> Dict:
        cart = self.resolve(owner)
        self._ensure_mutable(cart)
        if qty < 1:
            raise ValidationError("The qty field must be at least 1.")

        item = self._owned_item(cart, item_id)
        variant = self.product_repo.get_variant(item.product_variant_id)
        if not variant:
            raise NotFound("Product variant not found")

        # absolute quantity, not an increment
        self.inventory.ensure_available(variant, qty)
        item.qty = qty
        item.price_snapshot = variant.price
        self.db.commit()
        return self.view(cart)

    def remove_item(self, owner: CartOwner, item_id: int) -> Dict:
        cart = self.resolve(owner)
        self._ensure_mutable(cart)
        self.cart_repo.delete_item(self._owned_item(cart, item_id))
        self.db.commit()
        return self.view(cart)

    def clear(self, owner: CartOwner) -> Dict:
        cart = self.resolve(owner)
        self._ensure_mutable(cart)
        self.cart_repo.clear(cart)
        self.db.commit()
        return self.view(cart)
