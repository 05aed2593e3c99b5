import os
import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import argparse
import concurrent.futures
from collections import Counter

import requests

BASE = os.environ.get("KIOSKPOS_BASE", "http://127.0.0.1:8000/api")


def kiosk_checkout_task(i, variant_id, qty):
    """Open a kiosk session, add the variant, check out. Returns (i, step, status, body)."""
    try:
        r = requests.post(f"{BASE}/kiosk/cart/init", timeout=10)
        if r.status_code != 200:
            return (i, "init", r.status_code, r.text)
        headers = {"X-Session-Key": r.json()["session_key"]}
        r = requests.post(
            f"{BASE}/kiosk/cart/items",
            json={"product_variant_id": variant_id, "qty": qty},
            headers=headers,
            timeout=10,
        )
        if r.status_code != 200:
            return (i, "add", r.status_code, r.text)
        r = requests.post(f"{BASE}/kiosk/checkout", headers=headers, timeout=30)
        return (i, "checkout", r.status_code, r.text)
    except Exception as e:
        return (i, "error", "ERR", str(e))


def run_checkout_concurrent(workers, variant_id, qty):
    print(f"Running kiosk checkout test: workers={workers}, variant={variant_id}, qty={qty}")
    before = requests.get(f"{BASE}/variants/{variant_id}", timeout=10).json()
    print("Stock before:", before.get("stock_qty"))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(kiosk_checkout_task, i, variant_id, qty) for i in range(workers)]
        results = [f.result() for f in futures]
    for r in results:
        print(r[:3], r[3][:120])
    print("Outcomes:", Counter((r[1], r[2]) for r in results))
    after = requests.get(f"{BASE}/variants/{variant_id}", timeout=10)
    if after.status_code == 200:
        print("Stock after:", after.json().get("stock_qty"))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent kiosk checkouts against one variant.")
    parser.add_argument("--variant", type=int, default=1)
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--workers", type=int, default=8)
    args = parser.parse_args()

    run_checkout_concurrent(args.workers, args.variant, args.qty)
