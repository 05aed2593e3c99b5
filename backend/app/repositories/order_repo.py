from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.order import Order, OrderItem, OrderStatus
from app.models.product_variant import ProductVariant


def _with_receipt(query):
    # items -> variant -> product, for receipt/detail views
    return query.options(
        selectinload(Order.items)
        .selectinload(OrderItem.variant)
        .selectinload(ProductVariant.product)
    )


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def number_exists(self, order_no: str) -> bool:
        return (
            self.db.query(Order.id).filter(Order.order_no == order_no).first() is not None
        )

    def get(self, order_id: int) -> Optional[Order]:
        return _with_receipt(self.db.query(Order)).filter(Order.id == order_id).first()

    def get_by_number(self, order_no: str) -> Optional[Order]:
        return _with_receipt(self.db.query(Order)).filter(Order.order_no == order_no).first()

    def get_for_user(self, user_id: int, order_id: int) -> Optional[Order]:
        return (
            _with_receipt(self.db.query(Order))
            .filter(Order.id == order_id, Order.user_id == user_id)
            .first()
        )

    def _page(self, query, page: int, size: int) -> Tuple[List[Order], int]:
        total = query.with_entities(func.count(Order.id)).scalar() or 0
        items = (
            query.order_by(Order.id.desc()).offset((page - 1) * size).limit(size).all()
        )
        return items, total

    def list_for_user(self, user_id: int, page: int = 1, size: int = 20) -> Tuple[List[Order], int]:
        return self._page(self.db.query(Order).filter(Order.user_id == user_id), page, size)

    def list_all(
        self, status: Optional[OrderStatus] = None, page: int = 1, size: int = 20
    ) -> Tuple[List[Order], int]:
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        return self._page(query, page, size)
