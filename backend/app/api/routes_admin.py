from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import CurrentUser, Role, require_role
from app.api.errors import to_http
from app.db import get_db
from app.models.order import OrderStatus
from app.schemas.order_schema import OrderStatusIn, order_detail, order_page
from app.services.exceptions import PosError
from app.services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_role(Role.ADMIN)


@router.get("/orders", summary="Admin: list orders")
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    admin: CurrentUser = Depends(admin_only),
    db: Session = Depends(get_db),
):
    page_data = OrderService(db).list_all(
        status=status.value if status else None, page=page, size=size
    )
    return order_page(page_data)


@router.put("/orders/{order_id}/status", summary="Admin: update order status")
def update_status(
    order_id: int,
    payload: OrderStatusIn,
    admin: CurrentUser = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        order = OrderService(db).update_status(order_id, payload.status)
    except PosError as e:
        raise to_http(e)
    return {"message": "Order status updated", "order": order_detail(order)}
