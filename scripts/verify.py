"""
Snapshot Verification Script

Checks an exported snapshot workbook for missing sheets, duplicate keys,
food items without inventory, and orders that reference unknown records.
Dangling references are reported but are not errors: deletes never cascade.
Run from project root: python scripts/verify.py [path/to/snapshot.xlsx]
"""

import json
import os
import sys
from datetime import datetime

import pandas as pd

EXCEL_FILE = os.path.join("data", "snapshot.xlsx")

KEYS = {
    "clients": "id",
    "food_items": "id",
    "orders": "id",
    "reviews": "id",
    "drivers": "id",
    "delivery_addresses": "id",
    "inventory": "food_item_id",
}


def verify_snapshot(path: str = EXCEL_FILE) -> bool:
    """Print an integrity report for the workbook at `path`."""

    print("=" * 60)
    print("SNAPSHOT VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {path}")
    print("=" * 60)

    if not os.path.exists(path):
        print("\nSnapshot file not found!")
        print("   Queue an export first: POST /api/exports")
        return False

    try:
        sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    except (OSError, ValueError) as e:
        print(f"\nCould not read workbook: {e}")
        return False

    ok = True

    missing = [name for name in KEYS if name not in sheets]
    if missing:
        print(f"\nMissing sheets: {missing}")
        ok = False

    print("\nRECORD COUNTS:")
    for name, key in KEYS.items():
        if name not in sheets:
            continue
        df = sheets[name]
        duplicates = int(df[key].duplicated().sum()) if key in df.columns else 0
        print(f"   {name:<20} {len(df):>6}")
        if duplicates:
            print(f"   {duplicates} duplicate keys in {name}!")
            ok = False

    if "food_items" in sheets and "inventory" in sheets:
        food_ids = set(sheets["food_items"]["id"].astype(str))
        stocked = set(sheets["inventory"]["food_item_id"].astype(str))
        unstocked = food_ids - stocked
        if unstocked:
            print(f"\n{len(unstocked)} food items have no inventory record")
            ok = False

    if "orders" in sheets:
        orders = sheets["orders"]
        client_ids = set(sheets.get("clients", pd.DataFrame(columns=["id"]))["id"].astype(str))
        food_ids = set(sheets.get("food_items", pd.DataFrame(columns=["id"]))["id"].astype(str))

        dangling_clients = (~orders["client_id"].astype(str).isin(client_ids)).sum()
        dangling_items = sum(
            1
            for raw in orders["items"].dropna()
            for item_id in json.loads(raw)
            if item_id not in food_ids
        )
        print("\nREFERENCES:")
        print(f"   Orders with removed clients: {dangling_clients}")
        print(f"   Order lines with removed food items: {dangling_items}")

    print("\n" + "=" * 60)
    print("VERIFICATION COMPLETE" if ok else "VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else EXCEL_FILE
    sys.exit(0 if verify_snapshot(target) else 1)
