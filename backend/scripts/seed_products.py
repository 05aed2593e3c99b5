#!/usr/bin/env python3
"""
Seed the catalog (products + variants) from a JSON file, or with a small
built-in demo catalog when no file is given.

Accepted JSON shapes: a list of product entries, or {"items": [...]}. Each
product entry has "name", optional "description", and "variants": a list of
{"sku", "name", "price", "stock_qty", "is_active"}. A flat entry with its own
"sku" is treated as a product with a single variant.

Usage:
    python scripts/seed_products.py
    python scripts/seed_products.py --file catalog.json
"""
import argparse
import json
import os
import sys
from decimal import Decimal

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.db import SessionLocal, init_db
from app.repositories.product_repo import ProductRepository
from app.utils.logging import get_logger
from app.utils.money import money

log = get_logger("scripts.seed_products")

DEMO_CATALOG = [
    {
        "name": "Iced Latte",
        "description": "Espresso over milk and ice",
        "variants": [
            {"sku": "SKU-001", "name": "Regular", "price": "2.50", "stock_qty": 10},
            {"sku": "SKU-002", "name": "Large", "price": "3.25", "stock_qty": 10},
        ],
    },
    {
        "name": "Croissant",
        "variants": [
            {"sku": "SKU-010", "name": "Butter", "price": "1.75", "stock_qty": 24},
            {"sku": "SKU-011", "name": "Almond", "price": "2.10", "stock_qty": 12},
        ],
    },
    {
        "name": "Bottled Water",
        "variants": [{"sku": "SKU-020", "name": "500ml", "price": "0.80", "stock_qty": 48}],
    },
]


def _normalize_variant(entry):
    """Return a dict with keys: sku, name, price, stock_qty, is_active."""
    try:
        price = money(entry.get("price", entry.get("amount", 0)))
    except Exception:
        price = Decimal("0.00")
    try:
        stock_qty = int(entry.get("stock_qty", entry.get("stock", 0)) or 0)
    except (TypeError, ValueError):
        stock_qty = 0
    return {
        "sku": entry.get("sku"),
        "name": entry.get("name"),
        "price": price,
        "stock_qty": max(0, stock_qty),
        "is_active": bool(entry.get("is_active", True)),
    }


def _normalize_product(entry):
    variants = entry.get("variants")
    if variants is None and entry.get("sku"):
        variants = [entry]
    return {
        "name": entry.get("name") or entry.get("title") or "",
        "description": entry.get("description"),
        "variants": [_normalize_variant(v) for v in (variants or [])],
    }


def load_catalog(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")
    if isinstance(data, dict):
        data = data.get("items", list(data.values()))
    return data if isinstance(data, list) else []


def seed(catalog):
    db = SessionLocal()
    repo = ProductRepository(db)
    count = 0
    try:
        for raw in catalog:
            entry = _normalize_product(raw)
            if not entry["name"]:
                continue
            product = repo.get_or_create_product(entry["name"], entry["description"])
            for v in entry["variants"]:
                if not v["sku"]:
                    continue
                repo.create_or_update_variant(product, **v)
                count += 1
        db.commit()
        log.info("Seeded %d variants", count)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    return count


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to a catalog json file")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables first")
    args = parser.parse_args()

    init_db(reset=args.reset)
    if args.file:
        if not os.path.exists(args.file):
            print("File not found:", args.file)
            sys.exit(1)
        seed(load_catalog(args.file))
    else:
        seed(DEMO_CATALOG)
