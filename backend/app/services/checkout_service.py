"""
CHECKOUT ENGINE

Converts a cart's items into an immutable order while protecting inventory
under concurrent checkouts.

Hard rules:
- The whole conversion runs in one UnitOfWork: order row, order items, stock
  decrements, cart clearing (and the kiosk CHECKED_OUT transition) commit
  together or roll back together.
- The cart is locked and re-read before any variant; only an ACTIVE cart with
  lines can be checked out, so one cart yields at most one order.
- Each variant is locked before its stock is read, and stays locked until the
  unit of work ends.
- Line prices are re-read from the locked variant at checkout time; the cart's
  price snapshot is display-only.
- Writes are flushed once, after every lock is held.
"""

import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from filelock import Timeout
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.cart import Cart, CartStatus
from app.models.cart_item import CartItem
from app.models.order import Order, OrderItem, OrderStatus
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.services.cart_service import CartOwner, CartService, KioskOwner, UserOwner
from app.services.exceptions import (
    EmptyCart,
    InventoryLockTimeout,
    PosError,
    SessionExpired,
    ValidationError,
)
from app.services.inventory_service import InventoryService
from app.utils.logging import get_logger
from app.utils.transactions import UnitOfWork

log = get_logger(__name__)


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{settings.ORDER_NUMBER_PREFIX}-{now:%Y%m%d%H%M%S}-{random.randint(1000, 9999)}"


class CheckoutService:
    def __init__(
        self,
        db: Session,
        carts: CartService = None,
        number_factory: Callable[[], str] = generate_order_number,
        lock_order: Optional[str] = None,
    ):
        self.db = db
        self.carts = carts or CartService(db)
        self.cart_repo = CartRepository(db)
        self.order_repo = OrderRepository(db)
        self.inventory = InventoryService(db)
        self.number_factory = number_factory
        self.lock_order = lock_order or settings.CHECKOUT_LOCK_ORDER

    def checkout(self, owner: CartOwner) -> Order:
        cart = self.carts.resolve_for_checkout(owner)
        return self.checkout_cart(cart, owner)

    def checkout_cart(self, cart: Cart, owner: CartOwner) -> Order:
        cart_id = cart.id
        for attempt in range(1, settings.ORDER_NUMBER_MAX_ATTEMPTS + 1):
            try:
                with UnitOfWork(self.db) as uow:
                    cart, items = self._claim_cart(uow, cart_id)
                    order = self._place_order(uow, cart, owner, items)
                    order_id = order.id
                break
            except IntegrityError as e:
                # a concurrent checkout committed the same order number first
                if "order_no" not in str(e.orig):
                    raise
                log.warning("order number collision cart=%s attempt=%d", cart_id, attempt)
            except PosError as e:
                log.warning("checkout failed cart=%s reason=%s", cart_id, e.message)
                raise
        else:
            raise ValidationError("Could not allocate a unique order number, try again")

        order = self.order_repo.get(order_id)
        log.info(
            "checkout ok order=%s owner=%s lines=%d total=%s",
            order.order_no,
            _describe(owner),
            len(order.items),
            order.total_amount,
        )
        return order

    def _claim_cart(self, uow: UnitOfWork, cart_id: int) -> Tuple[Cart, List[CartItem]]:
        """
        Lock the cart ahead of any variant, then re-read it and its lines.
        A second checkout of the same cart waits here and finds it finished.
        """
        try:
            uow.hold_lock(f"cart_{cart_id}", timeout=self.inventory.lock_timeout)
        except Timeout:
            raise InventoryLockTimeout("Checkout already in progress for this cart, try again")

        cart = self.cart_repo.lock_cart(cart_id)
        if not cart or cart.status != CartStatus.ACTIVE:
            raise SessionExpired()
        items = self.cart_repo.list_items(cart, refresh=True)
        if not items:
            raise EmptyCart("Cart is empty")
        return cart, items

    def _next_order_number(self) -> str:
        for _ in range(settings.ORDER_NUMBER_MAX_ATTEMPTS):
            candidate = self.number_factory()
            if not self.order_repo.number_exists(candidate):
                return candidate
        raise ValidationError("Could not allocate a unique order number, try again")

    def _lock_sequence(self, items: List[CartItem]) -> List[CartItem]:
        if self.lock_order == "variant_id":
            return sorted(items, key=lambda i: i.product_variant_id)
        return list(items)

    def _place_order(
        self, uow: UnitOfWork, cart: Cart, owner: CartOwner, items: List[CartItem]
    ) -> Order:
        order = Order(
            order_no=self._next_order_number(),
            status=OrderStatus.PENDING,
            total_amount=Decimal("0.00"),
        )
        if isinstance(owner, UserOwner):
            order.user_id = owner.user_id
        else:
            order.session_key = owner.session_key
        uow.session.add(order)

        total = Decimal("0.00")
        for item in self._lock_sequence(items):
            variant = self.inventory.lock_variant(uow, item.product_variant_id)
            self.inventory.decrement(variant, item.qty)

            price = Decimal(variant.price)
            subtotal = price * item.qty
            total += subtotal
            order.items.append(
                OrderItem(
                    product_variant_id=variant.id,
                    qty=item.qty,
                    price_snapshot=price,
                    subtotal=subtotal,
                )
            )

        order.total_amount = total

        for item in items:
            uow.session.delete(item)
        if isinstance(owner, KioskOwner):
            cart.status = CartStatus.CHECKED_OUT

        uow.flush()
        return order


def _describe(owner: CartOwner) -> str:
    if isinstance(owner, UserOwner):
        return f"user:{owner.user_id}"
    return f"kiosk:{owner.session_key[:8]}"
