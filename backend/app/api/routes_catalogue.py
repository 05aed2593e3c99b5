from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.repositories.product_repo import ProductRepository
from app.schemas.product_schema import ProductOut, VariantOut, VariantWithProductOut

router = APIRouter(tags=["catalogue"])


def _with_active_variants(product) -> dict:
    data = ProductOut.model_validate(product).model_dump()
    data["variants"] = [v for v in data["variants"] if v["is_active"]]
    return data


@router.get("/products", summary="List active products with their active variants")
def list_products(db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    return [_with_active_variants(p) for p in repo.list_products()]


@router.get("/products/{product_id}", summary="Get product with its active variants")
def get_product(product_id: int, db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    p = repo.get_product(product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return _with_active_variants(p)


@router.get("/products/{product_id}/variants", summary="List active variants of a product")
def list_variants(product_id: int, db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    if not repo.get_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return [VariantOut.model_validate(v).model_dump() for v in repo.list_variants(product_id)]


@router.get("/variants/{variant_id}", summary="Get variant by id")
def get_variant(variant_id: int, db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    v = repo.get_variant(variant_id, active_only=True)
    if not v or not v.product.is_active:
        raise HTTPException(status_code=404, detail="Variant not found")
    return VariantWithProductOut.model_validate(v).model_dump()
