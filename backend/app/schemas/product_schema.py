# backend/app/schemas/product_schema.py
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ProductBriefOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    is_active: bool


class VariantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    product_id: int
    sku: str
    name: Optional[str] = None
    price: Decimal
    stock_qty: int
    is_active: bool


class VariantWithProductOut(VariantOut):
    product: ProductBriefOut


class ProductOut(ProductBriefOut):
    variants: List[VariantOut] = []
