"""
Concurrency Simulation Script

Seeds a menu, clients and drivers through the API, then fires many order
placements at once and checks that every stored total matches the menu.
Run from project root against a running server: python scripts/simulate.py
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis"]
STREETS = ["Main St", "Broadway", "5th Avenue", "Park Ave", "Madison Ave", "Lexington Ave"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "description": "Tomato, mozzarella, basil", "price": "14.99"},
    {"name": "Pepperoni Pizza", "description": "Pepperoni and mozzarella", "price": "16.99"},
    {"name": "Caesar Salad", "description": "Romaine, parmesan, croutons", "price": "8.99"},
    {"name": "Garlic Bread", "description": "Four slices", "price": "5.99"},
    {"name": "Tiramisu", "description": "House made", "price": "7.99"},
    {"name": "Sparkling Water", "description": "500ml", "price": "3.49"},
]


# =============================================================================
# SEEDING
# =============================================================================

async def seed(client: httpx.AsyncClient, num_clients: int = 10) -> dict[str, Any]:
    """Create the menu, some clients and drivers. Returns their ids and prices."""
    prices: dict[str, Decimal] = {}
    for item in MENU_ITEMS:
        response = await client.post(
            f"{API_BASE_URL}/api/food-items",
            json={**item, "initial_inventory": random.randint(10, 100)},
        )
        response.raise_for_status()
        prices[response.json()["id"]] = Decimal(item["price"])

    client_ids = []
    for _ in range(num_clients):
        response = await client.post(
            f"{API_BASE_URL}/api/clients",
            json={
                "name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
                "address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
            },
        )
        response.raise_for_status()
        client_ids.append(response.json()["id"])

    driver_ids = []
    for i in range(3):
        response = await client.post(
            f"{API_BASE_URL}/api/drivers",
            json={"name": f"Driver {i + 1}", "contact": f"555-000-{1000 + i}"},
        )
        response.raise_for_status()
        driver_ids.append(response.json()["id"])

    return {"prices": prices, "client_ids": client_ids, "driver_ids": driver_ids}


# =============================================================================
# ORDERS
# =============================================================================

async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    fixtures: dict[str, Any],
) -> dict[str, Any]:
    """Place one random order and compare its total with the menu prices."""
    prices = fixtures["prices"]
    items = random.choices(list(prices), k=random.randint(1, 4))
    expected = sum((prices[i] for i in items), Decimal("0"))
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json={"client_id": random.choice(fixtures["client_ids"]), "items": items},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        if response.status_code != 200 or not data.get("order_id"):
            return {
                "order_num": order_num,
                "success": False,
                "error": data.get("msg", response.text[:100]),
                "time": elapsed,
            }

        await client.put(
            f"{API_BASE_URL}/api/orders/{data['order_id']}/driver",
            json={"driver_id": random.choice(fixtures["driver_ids"])},
        )

        return {
            "order_num": order_num,
            "success": True,
            "order_id": data["order_id"],
            "total": Decimal(str(data["total_price"])),
            "expected": expected,
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """Seed, fire `num_orders` concurrent orders and report."""
    print("=" * 70)
    print("CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        await client.post(f"{API_BASE_URL}/api/system/init")
        fixtures = await seed(client)
        tasks = [send_order(client, i + 1, fixtures) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    mispriced = [r for r in successful if r["total"] != r["expected"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    print(f"Mispriced Orders: {len(mispriced)}")
    print(f"Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum((r["total"] for r in successful), Decimal("0"))
        print(f"\nAverage Response: {avg_time}s")
        print(f"Total Revenue: ${revenue}")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "mispriced": len(mispriced),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    summary = asyncio.run(run_simulation(args.orders))
    sys.exit(1 if summary["failed"] or summary["mispriced"] else 0)
