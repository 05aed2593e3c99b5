import itertools
import os
import tempfile
from decimal import Decimal
from uuid import uuid4

# point the app at a throwaway database before anything imports app.config
_tmp = tempfile.mkdtemp(prefix="kioskpos-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["INVENTORY_LOCK_DIR"] = os.path.join(_tmp, "locks")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.db import SessionLocal, init_db
from app.models.product_variant import ProductVariant
from app.repositories.product_repo import ProductRepository

_user_ids = itertools.count(1000)


@pytest.fixture(autouse=True, scope="session")
def setup_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def user_id():
    return next(_user_ids)


def user_headers(user_id, role="CUSTOMER"):
    return {"X-User-Id": str(user_id), "X-User-Role": role}


@pytest.fixture
def make_variant():
    """Create a product with one variant and return the variant id."""

    def _make(price="2.50", stock_qty=10, is_active=True, sku=None, product_name=None):
        s = SessionLocal()
        try:
            repo = ProductRepository(s)
            product = repo.get_or_create_product(product_name or f"Product {uuid4().hex[:6]}")
            v = repo.create_or_update_variant(
                product,
                sku=sku or f"SKU-{uuid4().hex[:8].upper()}",
                price=Decimal(price),
                stock_qty=stock_qty,
                is_active=is_active,
            )
            s.commit()
            return v.id
        finally:
            s.close()

    return _make


def read_variant(variant_id):
    s = SessionLocal()
    try:
        return s.get(ProductVariant, variant_id)
    finally:
        s.close()


def update_variant(variant_id, **fields):
    s = SessionLocal()
    try:
        v = s.get(ProductVariant, variant_id)
        for k, val in fields.items():
            setattr(v, k, val)
        s.commit()
    finally:
        s.close()
