from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db import Base


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        # repeated adds bump qty instead of duplicating rows
        UniqueConstraint("cart_id", "product_variant_id", name="uq_cart_items_cart_variant"),
        CheckConstraint("qty >= 1", name="ck_cart_items_qty_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(
        Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_variant_id = Column(
        Integer, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qty = Column(Integer, nullable=False, default=1)
    price_snapshot = Column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )  # variant price at the time of the last add/update

    cart = relationship("Cart", back_populates="items")
    variant = relationship("ProductVariant")
