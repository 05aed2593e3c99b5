from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.models.order import Order, OrderStatus
from app.repositories.order_repo import OrderRepository
from app.services.exceptions import NotFound, ValidationError
from app.utils.logging import get_logger

log = get_logger(__name__)


class OrderService:
    """Read-back of created orders, plus the admin-driven status changes."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository(db)

    def get_by_number(self, order_no: str) -> Order:
        order = self.repo.get_by_number(order_no)
        if not order:
            raise NotFound("Order not found")
        return order

    def get_for_user(self, user_id: int, order_id: int) -> Order:
        order = self.repo.get_for_user(user_id, order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    def list_for_user(self, user_id: int, page: int = 1, size: int = 20) -> Dict:
        items, total = self.repo.list_for_user(user_id, page=page, size=size)
        return {"items": items, "total": total, "page": page, "size": size}

    def list_all(self, status: Optional[str] = None, page: int = 1, size: int = 20) -> Dict:
        items, total = self.repo.list_all(
            status=_parse_status(status) if status else None, page=page, size=size
        )
        return {"items": items, "total": total, "page": page, "size": size}

    def update_status(self, order_id: int, status: str) -> Order:
        new_status = _parse_status(status)
        order = self.repo.get(order_id)
        if not order:
            raise NotFound("Order not found")
        old_status = order.status
        order.status = new_status
        self.db.commit()
        log.info("order %s status %s -> %s", order.order_no, old_status.value, new_status.value)
        return self.repo.get(order_id)


def _parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ",".join(s.value for s in OrderStatus)
        raise ValidationError(f"The selected status is invalid. Allowed: {allowed}")
