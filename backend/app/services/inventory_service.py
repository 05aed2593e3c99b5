from filelock import Timeout
from sqlalchemy.orm import Session

from app.config import settings
from app.models.product_variant import ProductVariant
from app.services.exceptions import (
    InsufficientStock,
    InventoryLockTimeout,
    NotFound,
    VariantInactive,
)
from app.utils.logging import get_logger
from app.utils.transactions import UnitOfWork

log = get_logger(__name__)


class InventoryService:
    """
    Inventory ledger: per-variant stock reads for cart validation and the
    locked read-and-decrement used by checkout.
    """

    def __init__(self, db: Session, lock_timeout: float = None):
        self.db = db
        self.lock_timeout = (
            settings.INVENTORY_LOCK_TIMEOUT_SECONDS if lock_timeout is None else lock_timeout
        )

    def ensure_available(self, variant: ProductVariant, qty: int) -> None:
        """Unlocked stock check used by cart mutations."""
        if variant.stock_qty < qty:
            raise InsufficientStock("Not enough stock")

    def lock_variant(self, uow: UnitOfWork, variant_id: int) -> ProductVariant:
        """
        Take the exclusive lock on one variant row for the rest of `uow`.

        The file lock serializes checkouts across workers even on backends
        that ignore FOR UPDATE (SQLite); the row lock does the same on
        PostgreSQL. populate_existing() discards any copy of the row already
        in the session's identity map, so the stock read is the committed one.
        """
        try:
            uow.hold_lock(f"variant_{variant_id}", timeout=self.lock_timeout)
        except Timeout:
            log.warning("lock wait timed out for variant %s", variant_id)
            raise InventoryLockTimeout(
                f"Inventory for variant {variant_id} is busy, try again"
            )

        variant = (
            uow.session.query(ProductVariant)
            .filter(ProductVariant.id == variant_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if not variant:
            raise NotFound(f"Product variant {variant_id} not found")
        return variant

    def decrement(self, variant: ProductVariant, qty: int) -> None:
        """Must be called on a variant returned by lock_variant."""
        if not variant.is_active:
            raise VariantInactive(f"Variant inactive: {variant.id}")
        if variant.stock_qty < qty:
            raise InsufficientStock(f"Not enough stock for SKU: {variant.sku}")
        variant.stock_qty = variant.stock_qty - qty
