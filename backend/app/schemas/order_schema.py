# backend/app/schemas/order_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.order import OrderStatus
from app.schemas.product_schema import VariantWithProductOut


class OrderStatusIn(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    product_variant_id: int
    qty: int
    price_snapshot: Decimal
    subtotal: Decimal
    variant: VariantWithProductOut


class OrderSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    order_no: str
    user_id: Optional[int] = None
    session_key: Optional[str] = None
    status: OrderStatus
    total_amount: Decimal
    created_at: Optional[datetime] = None


class OrderOut(OrderSummaryOut):
    items: List[OrderItemOut] = []


def order_detail(order) -> Dict:
    return OrderOut.model_validate(order).model_dump()


def order_page(page: Dict) -> Dict:
    return {
        "items": [OrderSummaryOut.model_validate(o).model_dump() for o in page["items"]],
        "total": page["total"],
        "page": page["page"],
        "size": page["size"],
    }
