"""
Entity Store

Owns the seven entity collections and the rules for touching them:

    - Every collection is an ordered map from a string key to one record,
      with get / insert / remove / values / is_empty.
    - Writes run in a single transaction while holding the store's writer
      lock, so mutating operations execute one at a time and a write that
      spans several collections is committed (or rolled back) as one unit.
    - Reads use their own session and never take the lock; they only see
      committed data.

Usage:
    store = get_entity_store()

    async with store.write() as tx:
        await tx.clients.insert(client.id, client)

    async with store.read() as view:
        clients = await view.clients.values()
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Generic, Optional, Type, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session_maker
from app.models import (
    KEY_LENGTH,
    Client,
    DeliveryAddress,
    Driver,
    FoodItem,
    Inventory,
    Order,
    Review,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class Collection(Generic[RecordT]):
    """
    Ordered key-value view of one entity table, bound to a session.

    Values are returned in key order, which is stable for the lifetime of
    the data.
    """

    def __init__(self, session: AsyncSession, model: Type[RecordT]):
        self.session = session
        self.model = model
        self.key_column = inspect(model).primary_key[0]

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def get(self, key: str) -> Optional[RecordT]:
        return await self.session.get(self.model, key)

    async def insert(self, key: str, record: RecordT) -> Optional[RecordT]:
        """
        Store `record` under `key`.

        Returns a detached copy of the record previously stored under the
        key, or None. When a different object already holds the key, its
        columns are overwritten with the new record's values.
        """
        if len(key) > KEY_LENGTH:
            raise ValueError(
                f"Key for {self.name} exceeds {KEY_LENGTH} characters: {key!r}"
            )
        if getattr(record, self.key_column.key) != key:
            raise ValueError(f"Record key does not match {key!r}")

        stored = await self.get(key)
        previous = None
        if stored is None:
            self.session.add(record)
        else:
            previous = self._stored_copy(stored)
            if stored is not record:
                for column in inspect(self.model).column_attrs:
                    setattr(stored, column.key, getattr(record, column.key))

        await self.session.flush()
        return previous

    def _stored_copy(self, record: RecordT) -> RecordT:
        """
        Transient copy of `record` as it was last flushed.

        Pending in-place changes are undone using the attribute history, so
        callers that mutate a loaded record before inserting it still get
        the old values back.
        """
        state = inspect(record)
        values = {}
        for column in state.mapper.column_attrs:
            history = state.attrs[column.key].history
            if history.deleted:
                values[column.key] = history.deleted[0]
            elif history.added:
                # Changed from NULL
                values[column.key] = None
            else:
                values[column.key] = getattr(record, column.key)
        return self.model(**values)

    async def remove(self, key: str) -> Optional[RecordT]:
        record = await self.get(key)
        if record is None:
            return None

        await self.session.delete(record)
        await self.session.flush()
        return record

    async def values(self) -> list[RecordT]:
        result = await self.session.execute(
            select(self.model).order_by(self.key_column)
        )
        return list(result.scalars().all())

    async def is_empty(self) -> bool:
        result = await self.session.execute(select(self.key_column).limit(1))
        return result.first() is None


class StoreSession:
    """All seven collections bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.clients: Collection[Client] = Collection(session, Client)
        self.food_items: Collection[FoodItem] = Collection(session, FoodItem)
        self.orders: Collection[Order] = Collection(session, Order)
        self.reviews: Collection[Review] = Collection(session, Review)
        self.drivers: Collection[Driver] = Collection(session, Driver)
        self.delivery_addresses: Collection[DeliveryAddress] = Collection(
            session, DeliveryAddress
        )
        self.inventory: Collection[Inventory] = Collection(session, Inventory)

    @property
    def collections(self) -> dict[str, Collection]:
        """Collections by table name, in a fixed order."""
        return {
            c.name: c
            for c in (
                self.clients,
                self.food_items,
                self.orders,
                self.reviews,
                self.drivers,
                self.delivery_addresses,
                self.inventory,
            )
        }


class EntityStore:
    """
    Process-wide entry point to the collections.

    Construct one per process and pass it to whatever needs storage.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[StoreSession]:
        """Open a read-only view. Nothing is committed."""
        async with self._session_factory() as session:
            yield StoreSession(session)

    @asynccontextmanager
    async def write(self) -> AsyncIterator[StoreSession]:
        """
        Open an exclusive, transactional view.

        Commits when the block exits normally. Any exception rolls back every
        change made inside the block and propagates to the caller.
        """
        async with self._write_lock:
            async with self._session_factory() as session:
                async with session.begin():
                    yield StoreSession(session)


@lru_cache()
def get_entity_store() -> EntityStore:
    """Get the process-wide store bound to the configured database."""
    logger.debug("Entity store created")
    return EntityStore(async_session_maker)
