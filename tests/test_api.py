"""
HTTP layer tests: routes, status codes and the error envelope, driven in
process through httpx's ASGI transport.
"""

import httpx
import pytest

from app.main import app
from app.services.delivery import get_delivery_service


@pytest.fixture
async def api(service):
    app.dependency_overrides[get_delivery_service] = lambda: service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def add_food(api, name="Pizza", price="10.00", initial_inventory=5) -> str:
    response = await api.post(
        "/api/food-items",
        json={
            "name": name,
            "description": "Tasty",
            "price": price,
            "initial_inventory": initial_inventory,
        },
    )
    assert response.status_code == 201
    return response.json()["id"]


async def test_root(api):
    response = await api.get("/")
    assert response.status_code == 200
    assert response.json()["documentation"] == "/docs"


async def test_init_is_idempotent(api):
    first = (await api.post("/api/system/init")).json()
    second = (await api.post("/api/system/init")).json()

    assert first["initialized"] is True
    assert first["message"] == first["client_id"]
    assert second == {
        "initialized": False,
        "message": "Food delivery system has already been initialized",
        "client_id": None,
    }


async def test_empty_collection_is_not_found(api):
    response = await api.get("/api/clients")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "No clients found", "detail": None}


async def test_client_crud(api):
    created = await api.post("/api/clients", json={"name": "Jane", "address": "1 Main St"})
    assert created.status_code == 201
    client_id = created.json()["id"]

    listed = (await api.get("/api/clients")).json()
    assert listed[0]["name"] == "Jane"
    assert listed[0]["updated_at"] is None

    updated = await api.put(f"/api/clients/{client_id}", json={"name": "Janet", "address": "2 Main St"})
    assert updated.json()["id"] == client_id
    assert (await api.get(f"/api/clients/{client_id}")).json()["name"] == "Janet"

    deleted = await api.delete(f"/api/clients/{client_id}")
    assert deleted.json()["message"] == f"Client with ID: {client_id} removed successfully"

    missing = await api.put(f"/api/clients/{client_id}", json={"name": "x", "address": "y"})
    assert missing.status_code == 404
    assert missing.json()["error"] == "Client not found"


async def test_food_item_validation_error(api):
    response = await api.post(
        "/api/food-items",
        json={"name": "", "description": "Tasty", "price": "1.00", "initial_inventory": 1},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Please provide valid values for name, description, and price"


async def test_food_item_creates_inventory(api):
    food_id = await add_food(api, initial_inventory=7)

    inventory = (await api.get(f"/api/inventory/{food_id}")).json()
    assert inventory["quantity"] == 7

    await api.put(f"/api/inventory/{food_id}", json={"quantity": 2})
    assert (await api.get("/api/inventory")).json()[0]["quantity"] == 2


async def test_place_order_flow(api):
    client_id = (await api.post("/api/clients", json={"name": "Jane", "address": "x"})).json()["id"]
    pizza = await add_food(api, "Pizza", "10.00")
    salad = await add_food(api, "Salad", "5.50")

    response = await api.post("/api/orders", json={"client_id": client_id, "items": [pizza, salad]})

    assert response.status_code == 200
    body = response.json()
    assert body["msg"] == "Order placed successfully. Total Price: $15.50"
    assert body["total_price"] == 15.5
    order_id = body["order_id"]

    driver_id = (await api.post("/api/drivers", json={"name": "Sam", "contact": "555"})).json()["id"]
    assigned = await api.put(f"/api/orders/{order_id}/driver", json={"driver_id": driver_id})
    assert assigned.status_code == 200

    delivered = await api.put(f"/api/orders/{order_id}/delivered")
    assert delivered.status_code == 200

    order = (await api.get(f"/api/orders/{order_id}")).json()
    assert order["driver_id"] == driver_id
    assert order["is_delivered"] is True
    assert order["total_price"] == "15.50"
    assert order["items"] == [pizza, salad]


async def test_place_order_invalid_client_is_still_200(api):
    response = await api.post("/api/orders", json={"client_id": "nobody", "items": []})

    assert response.status_code == 200
    assert response.json() == {"msg": "Invalid client ID", "total_price": 0, "order_id": None}
    assert (await api.get("/api/orders")).status_code == 404


async def test_assign_driver_unknown_order(api):
    response = await api.put("/api/orders/missing/driver", json={"driver_id": "d"})

    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


async def test_delivery_addresses_by_client(api):
    client_id = (await api.post("/api/clients", json={"name": "Jane", "address": "x"})).json()["id"]

    empty = await api.get(f"/api/clients/{client_id}/delivery-addresses")
    assert empty.status_code == 404
    assert empty.json()["error"] == "No delivery addresses found for the client"

    created = await api.post(
        "/api/delivery-addresses",
        json={"client_id": client_id, "street": "1 Main St", "city": "New York", "postal_code": "10001"},
    )
    assert created.status_code == 201

    addresses = (await api.get(f"/api/clients/{client_id}/delivery-addresses")).json()
    assert addresses[0]["city"] == "New York"


async def test_review_routes(api):
    review_id = (
        await api.post("/api/reviews", json={"order_id": "o", "rating": 4, "comment": ""})
    ).json()["id"]

    await api.put(f"/api/reviews/{review_id}", json={"rating": 5, "comment": "Better"})
    review = (await api.get(f"/api/reviews/{review_id}")).json()
    assert (review["rating"], review["comment"]) == (5, "Better")


async def test_export_queues_snapshot(api, monkeypatch):
    queued = {}

    class FakeResult:
        id = "task-1"

    class FakeTask:
        def delay(self, snapshot):
            queued["snapshot"] = snapshot
            return FakeResult()

    monkeypatch.setattr("app.main.export_snapshot_to_excel", FakeTask())
    client_id = (await api.post("/api/clients", json={"name": "Jane", "address": "x"})).json()["id"]

    response = await api.post("/api/exports")

    assert response.status_code == 202
    body = response.json()
    assert body["task_id"] == "task-1"
    assert body["record_counts"]["clients"] == 1
    assert body["record_counts"]["orders"] == 0
    assert queued["snapshot"]["clients"][0]["id"] == client_id
