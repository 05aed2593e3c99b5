import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship

from app.db import Base


class CartStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CHECKED_OUT = "CHECKED_OUT"


class Cart(Base):
    __tablename__ = "carts"
    __table_args__ = (
        # a cart belongs to exactly one owner kind
        CheckConstraint(
            "(user_id IS NULL) <> (session_key IS NULL)", name="ck_carts_single_owner"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, unique=True, nullable=True, index=True)  # owned by the auth service
    session_key = Column(String(64), unique=True, nullable=True, index=True)  # kiosk session
    status = Column(
        Enum(CartStatus, native_enum=False, length=16),
        nullable=False,
        default=CartStatus.ACTIVE,
    )
    last_activity_at = Column(DateTime(timezone=True), nullable=True)  # kiosk only
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )

    @property
    def is_kiosk(self) -> bool:
        return self.session_key is not None
