from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from app.db import Base


class ProductVariant(Base):
    """
    The purchasable unit inventory is tracked against. `stock_qty` is only
    decremented by checkout, under the inventory lock.
    """

    __tablename__ = "product_variants"
    __table_args__ = (
        CheckConstraint("stock_qty >= 0", name="ck_product_variants_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=True)  # e.g. "Large", "Mint"
    price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    stock_qty = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    product = relationship("Product", back_populates="variants")

    def __repr__(self):
        return f"<ProductVariant sku={self.sku} stock={self.stock_qty}>"
