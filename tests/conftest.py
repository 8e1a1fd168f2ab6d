"""
Shared fixtures: an in-memory SQLite store and a delivery service wired to a
deterministic clock.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENV_MODE", "development")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, build_session_factory
from app.services.clock import BaseClock
from app.services.delivery import FoodDeliveryService
from app.services.identifiers import UuidGenerator
from app.store import EntityStore

import app.models  # noqa: F401


class StepClock(BaseClock):
    """Advances by `step` on every reading."""

    def __init__(self, start: int = 1_000, step: int = 10):
        self.current = start
        self.step = step

    def now(self) -> int:
        self.current += self.step
        return self.current


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine) -> EntityStore:
    return EntityStore(build_session_factory(engine))


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def service(store, clock) -> FoodDeliveryService:
    return FoodDeliveryService(store=store, clock=clock, id_generator=UuidGenerator())


@pytest.fixture
async def client_id(service) -> str:
    return await service.add_client("Jane Doe", "350 Fifth Avenue")


@pytest.fixture
async def menu(service) -> dict[str, str]:
    """Two food items priced 10.00 and 5.50, by name."""
    pizza = await service.add_food_item_with_inventory(
        name="Pizza", description="Margherita", price="10.00", initial_inventory=20
    )
    salad = await service.add_food_item_with_inventory(
        name="Salad", description="Caesar", price="5.50", initial_inventory=8
    )
    return {"pizza": pizza, "salad": salad}


@pytest.fixture
async def file_store(tmp_path) -> EntityStore:
    """
    Store on a SQLite file with a regular connection pool, so read and write
    sessions use separate connections and only see committed data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield EntityStore(build_session_factory(engine))
    await engine.dispose()
