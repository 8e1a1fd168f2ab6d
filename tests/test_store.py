import asyncio

import pytest
from sqlalchemy import String, Text

from app.database import Base
from app.models import KEY_LENGTH, Client, FoodItem, Inventory
from app.services.delivery import FoodDeliveryService
from app.services.identifiers import UuidGenerator


def make_client(key: str, name: str = "Client") -> Client:
    return Client(id=key, name=name, address="Somewhere", created_date=1, updated_at=None)


async def test_empty_collection(store):
    async with store.read() as view:
        assert await view.clients.is_empty()
        assert await view.clients.values() == []
        assert await view.clients.get("missing") is None


async def test_insert_then_get(store):
    async with store.write() as tx:
        previous = await tx.clients.insert("a", make_client("a", "Alice"))
        assert previous is None

    async with store.read() as view:
        record = await view.clients.get("a")
        assert record.name == "Alice"
        assert not await view.clients.is_empty()


async def test_values_in_key_order(store):
    async with store.write() as tx:
        for key in ["c", "a", "b"]:
            await tx.clients.insert(key, make_client(key))

    async with store.read() as view:
        assert [c.id for c in await view.clients.values()] == ["a", "b", "c"]


async def test_insert_over_existing_key_returns_previous(store):
    async with store.write() as tx:
        await tx.clients.insert("a", make_client("a", "Old"))

    async with store.write() as tx:
        previous = await tx.clients.insert("a", make_client("a", "New"))
        assert previous.name == "Old"

    async with store.read() as view:
        records = await view.clients.values()
        assert len(records) == 1
        assert records[0].name == "New"


async def test_insert_of_mutated_record_returns_old_values(store):
    async with store.write() as tx:
        await tx.clients.insert("a", make_client("a", "Old"))

    async with store.write() as tx:
        client = await tx.clients.get("a")
        client.name = "New"
        client.updated_at = 5
        previous = await tx.clients.insert("a", client)

        assert previous is not client
        assert (previous.name, previous.updated_at) == ("Old", None)
        assert client.name == "New"

    async with store.read() as view:
        assert (await view.clients.get("a")).name == "New"


async def test_remove(store):
    async with store.write() as tx:
        await tx.clients.insert("a", make_client("a"))

    async with store.write() as tx:
        removed = await tx.clients.remove("a")
        assert removed.id == "a"
        assert await tx.clients.remove("a") is None

    async with store.read() as view:
        assert await view.clients.is_empty()


async def test_key_longer_than_limit_rejected(store):
    key = "k" * 45
    with pytest.raises(ValueError):
        async with store.write() as tx:
            await tx.clients.insert(key, make_client(key))


async def test_record_key_must_match(store):
    with pytest.raises(ValueError):
        async with store.write() as tx:
            await tx.clients.insert("a", make_client("b"))


async def test_failed_write_rolls_back_every_collection(store):
    with pytest.raises(RuntimeError):
        async with store.write() as tx:
            await tx.food_items.insert(
                "f",
                FoodItem(
                    id="f", name="Pizza", description="d", price="1.00",
                    inventory=1, created_date=1,
                ),
            )
            await tx.inventory.insert(
                "f", Inventory(food_item_id="f", quantity=1, created_date=1)
            )
            raise RuntimeError("boom")

    async with store.read() as view:
        assert await view.food_items.is_empty()
        assert await view.inventory.is_empty()


async def test_collections_are_independent(store):
    async with store.write() as tx:
        await tx.clients.insert("same", make_client("same"))

    async with store.read() as view:
        assert await view.food_items.get("same") is None
        assert list(view.collections) == [
            "clients",
            "food_items",
            "orders",
            "reviews",
            "drivers",
            "delivery_addresses",
            "inventory",
        ]


def test_only_keys_are_length_limited():
    for table in Base.metadata.sorted_tables:
        for column in table.columns:
            if isinstance(column.type, String) and not isinstance(column.type, Text):
                assert column.primary_key, f"{table.name}.{column.name}"
                assert column.type.length == KEY_LENGTH


async def test_food_item_invisible_until_inventory_committed(file_store):
    async with file_store.write() as tx:
        await tx.food_items.insert(
            "f",
            FoodItem(
                id="f", name="Pizza", description="d", price="1.00",
                inventory=3, created_date=1,
            ),
        )

        async with file_store.read() as view:
            assert await view.food_items.get("f") is None

        await tx.inventory.insert(
            "f", Inventory(food_item_id="f", quantity=3, created_date=1)
        )

        async with file_store.read() as view:
            assert await view.food_items.is_empty()
            assert await view.inventory.is_empty()

    async with file_store.read() as view:
        assert (await view.food_items.get("f")).name == "Pizza"
        assert (await view.inventory.get("f")).quantity == 3


async def test_concurrent_reads_never_see_food_item_without_inventory(file_store, clock):
    service = FoodDeliveryService(
        store=file_store, clock=clock, id_generator=UuidGenerator()
    )
    done = asyncio.Event()
    orphans = []

    async def add_items():
        for i in range(10):
            await service.add_food_item_with_inventory(f"Dish {i}", "d", "2.00", i)
            await asyncio.sleep(0)
        done.set()

    async def watch():
        while not done.is_set():
            async with file_store.read() as view:
                for food_item in await view.food_items.values():
                    if await view.inventory.get(food_item.id) is None:
                        orphans.append(food_item.id)
            await asyncio.sleep(0)

    await asyncio.gather(add_items(), watch())

    assert orphans == []
    assert len(await service.get_inventory()) == 10
