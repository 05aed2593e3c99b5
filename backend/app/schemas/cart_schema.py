# backend/app/schemas/cart_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.cart import CartStatus
from app.schemas.product_schema import VariantWithProductOut


class AddItemIn(BaseModel):
    product_variant_id: int = Field(..., gt=0)
    qty: int = Field(..., ge=1)


class UpdateItemIn(BaseModel):
    qty: int = Field(..., ge=1)


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    cart_id: int
    product_variant_id: int
    qty: int
    price_snapshot: Decimal
    variant: VariantWithProductOut


class CartOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: Optional[int] = None
    session_key: Optional[str] = None
    status: CartStatus
    last_activity_at: Optional[datetime] = None


def cart_view(view: Dict) -> Dict:
    """Render CartService.view() output as {"cart": {..., "items": [...]}, "total": ...}."""
    cart = CartOut.model_validate(view["cart"]).model_dump()
    cart["items"] = [CartItemOut.model_validate(i).model_dump() for i in view["items"]]
    return {"cart": cart, "total": view["total"]}
