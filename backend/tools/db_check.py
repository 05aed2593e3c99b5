import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
SKU = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Recent Orders ===")
cur.execute(
    "SELECT id, order_no, status, total_amount, user_id, session_key, created_at FROM orders ORDER BY id DESC LIMIT 20"
)
for r in cur.fetchall():
    print(r)

print("\n=== Kiosk Sessions ===")
cur.execute(
    "SELECT id, session_key, status, last_activity_at FROM carts WHERE session_key IS NOT NULL ORDER BY id DESC LIMIT 20"
)
for r in cur.fetchall():
    print(r)

print("\n=== Variants ===")
if SKU:
    cur.execute("SELECT id, sku, price, stock_qty, is_active FROM product_variants WHERE sku=?", (SKU,))
else:
    cur.execute("SELECT id, sku, price, stock_qty, is_active FROM product_variants ORDER BY id LIMIT 50")
rows = cur.fetchall()
for r in rows:
    print(r)

# stock_qty must never be negative
negative = [r for r in rows if r[3] is not None and r[3] < 0]
if negative:
    print("\n!!! NEGATIVE STOCK:", negative)

if SKU:
    print(f"\n=== Order items for SKU={SKU} ===")
    cur.execute(
        "SELECT oi.order_id, o.order_no, oi.qty, oi.price_snapshot, oi.subtotal "
        "FROM order_items oi JOIN orders o ON o.id = oi.order_id "
        "JOIN product_variants v ON v.id = oi.product_variant_id WHERE v.sku=? ORDER BY oi.id DESC LIMIT 50",
        (SKU,),
    )
    for r in cur.fetchall():
        print(r)

conn.close()
