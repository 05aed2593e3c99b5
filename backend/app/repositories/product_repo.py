from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models.product import Product
from app.models.product_variant import ProductVariant


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int, active_only: bool = True) -> Optional[Product]:
        qry = (
            self.db.query(Product)
            .options(selectinload(Product.variants))
            .filter(Product.id == product_id)
        )
        if active_only:
            qry = qry.filter(Product.is_active == True)
        return qry.first()

    def list_products(self, active_only: bool = True) -> List[Product]:
        qry = self.db.query(Product).options(selectinload(Product.variants))
        if active_only:
            qry = qry.filter(Product.is_active == True)
        return qry.order_by(Product.name, Product.id).all()

    def get_variant(self, variant_id: int, active_only: bool = False) -> Optional[ProductVariant]:
        qry = self.db.query(ProductVariant).filter(ProductVariant.id == variant_id)
        if active_only:
            qry = qry.filter(ProductVariant.is_active == True)
        return qry.first()

    def get_variant_by_sku(self, sku: str) -> Optional[ProductVariant]:
        return self.db.query(ProductVariant).filter(ProductVariant.sku == sku).first()

    def list_variants(self, product_id: int, active_only: bool = True) -> List[ProductVariant]:
        qry = self.db.query(ProductVariant).filter(ProductVariant.product_id == product_id)
        if active_only:
            qry = qry.filter(ProductVariant.is_active == True)
        return qry.order_by(ProductVariant.id).all()

    def get_or_create_product(self, name: str, description: str = None) -> Product:
        p = self.db.query(Product).filter(Product.name == name).first()
        if not p:
            p = Product(name=name, description=description)
            self.db.add(p)
            self.db.flush()
        return p

    def create_or_update_variant(
        self,
        product: Product,
        sku: str,
        price: Decimal,
        stock_qty: int = 0,
        name: str = None,
        is_active: bool = True,
    ) -> ProductVariant:
        v = self.get_variant_by_sku(sku)
        if v:
            v.product_id = product.id
            v.price = price
            v.stock_qty = stock_qty
            v.name = name
            v.is_active = is_active
        else:
            v = ProductVariant(
                product_id=product.id,
                sku=sku,
                name=name,
                price=price,
                stock_qty=stock_qty,
                is_active=is_active,
            )
            self.db.add(v)
        self.db.flush()
        return v
