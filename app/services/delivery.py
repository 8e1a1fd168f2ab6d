"""
Food Delivery Service

Every operation the marketplace exposes: per-entity add / list / get /
update / delete, the order pricing and linking workflows, and the one-time
system initialization.

Failures are raised as `NotFoundError` or `ValidationError`. Because each
mutating operation runs inside `EntityStore.write()`, raising rolls back
anything the operation already wrote. The one exception is `place_order`
with an unknown client, which reports the failure inside its normal result.

Usage:
    service = get_delivery_service()

    food_id = await service.add_food_item_with_inventory(
        name="Pizza", description="Margherita", price="10.00",
        initial_inventory=20,
    )
    result = await service.place_order(client_id, [food_id, food_id])
    print(result.msg)  # "Order placed successfully. Total Price: $20.00"
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from app.core.config import get_settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models import (
    Client,
    DeliveryAddress,
    Driver,
    FoodItem,
    Inventory,
    Order,
    Review,
)
from app.services.clock import BaseClock, get_clock
from app.services.identifiers import BaseIdGenerator, get_id_generator
from app.services.pricing import calculate_total_price, format_price
from app.store import Collection, EntityStore, get_entity_store

logger = logging.getLogger(__name__)

ALREADY_INITIALIZED = "Food delivery system has already been initialized"
INVALID_CLIENT = "Invalid client ID"
FOOD_ITEM_FIELDS_REQUIRED = "Please provide valid values for name, description, and price"
ADDRESS_FIELDS_REQUIRED = "Please provide valid values for street, city, and postal code"


@dataclass
class InitResult:
    """
    Outcome of system initialization.

    Attributes:
        initialized: True if this call seeded the default client
        message: Seeded client id, or the "already initialized" notice
        client_id: Id of the seeded client, None when nothing was done
    """
    initialized: bool
    message: str
    client_id: Optional[str] = None


@dataclass
class PlaceOrderResult:
    """
    Outcome of placing an order.

    An unknown client is reported here with `order_id=None` and a zero
    total instead of being raised.
    """
    msg: str
    total_price: Decimal
    order_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.order_id is not None


class FoodDeliveryService:
    """Marketplace operations over an `EntityStore`."""

    def __init__(
        self,
        store: EntityStore,
        clock: BaseClock,
        id_generator: BaseIdGenerator,
        seed_client_name: str = "Default Client",
        seed_client_address: str = "Default Address",
    ):
        self.store = store
        self.clock = clock
        self.id_generator = id_generator
        self.seed_client_name = seed_client_name
        self.seed_client_address = seed_client_address

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    async def _require(collection: Collection, key: str, not_found: str):
        record = await collection.get(key)
        if record is None:
            logger.warning(f"{not_found}: {key}")
            raise NotFoundError(not_found)
        return record

    @staticmethod
    async def _list(collection: Collection, empty: str) -> list:
        records = await collection.values()
        if not records:
            raise NotFoundError(empty)
        return records

    @staticmethod
    async def _delete(collection: Collection, key: str, label: str) -> str:
        if await collection.remove(key) is None:
            logger.warning(f"{label} not found: {key}")
            raise NotFoundError(f"{label} not found")
        logger.info(f"{label} {key} removed")
        return f"{label} with ID: {key} removed successfully"

    @staticmethod
    def _validate_food_fields(name: str, description: str, price: str) -> None:
        if not name or not description or not price:
            raise ValidationError(FOOD_ITEM_FIELDS_REQUIRED)

    @staticmethod
    def _validate_address_fields(street: str, city: str, postal_code: str) -> None:
        if not street or not city or not postal_code:
            raise ValidationError(ADDRESS_FIELDS_REQUIRED)

    # =========================================================================
    # SYSTEM INITIALIZATION
    # =========================================================================

    async def init_food_delivery_system(self) -> InitResult:
        """
        Seed the default client on an empty system.

        Does nothing if any client, food item, order, review or driver
        already exists.
        """
        async with self.store.write() as tx:
            for collection in (tx.clients, tx.food_items, tx.orders, tx.reviews, tx.drivers):
                if not await collection.is_empty():
                    logger.info("Initialization skipped, system already has data")
                    return InitResult(initialized=False, message=ALREADY_INITIALIZED)

            client = Client(
                id=self.id_generator.new_id(),
                name=self.seed_client_name,
                address=self.seed_client_address,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.clients.insert(client.id, client)

        logger.info(f"System initialized with default client {client.id}")
        return InitResult(initialized=True, message=client.id, client_id=client.id)

    # =========================================================================
    # CLIENTS
    # =========================================================================

    async def get_clients(self) -> list[Client]:
        async with self.store.read() as view:
            return await self._list(view.clients, "No clients found")

    async def get_client(self, client_id: str) -> Client:
        async with self.store.read() as view:
            return await self._require(view.clients, client_id, "Client not found")

    async def add_client(self, name: str, address: str) -> str:
        async with self.store.write() as tx:
            client = Client(
                id=self.id_generator.new_id(),
                name=name,
                address=address,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.clients.insert(client.id, client)

        logger.info(f"Client {client.id} added")
        return client.id

    async def update_client(self, client_id: str, name: str, address: str) -> str:
        async with self.store.write() as tx:
            client = await self._require(tx.clients, client_id, "Client not found")
            client.name = name
            client.address = address
            client.updated_at = self.clock.now()
            await tx.clients.insert(client.id, client)

        logger.info(f"Client {client_id} updated")
        return client_id

    async def delete_client(self, client_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.clients, client_id, "Client")

    # =========================================================================
    # FOOD ITEMS & INVENTORY
    # =========================================================================

    async def get_food_items(self) -> list[FoodItem]:
        async with self.store.read() as view:
            return await self._list(view.food_items, "No food items found")

    async def get_food_item(self, food_item_id: str) -> FoodItem:
        async with self.store.read() as view:
            return await self._require(view.food_items, food_item_id, "Food item not found")

    async def add_food_item_with_inventory(
        self,
        name: str,
        description: str,
        price: str,
        initial_inventory: int,
    ) -> str:
        """
        Create a food item and its inventory record in one transaction.

        Both records share the same id; neither is visible without the other.

        Raises:
            ValidationError: name, description or price is empty
        """
        self._validate_food_fields(name, description, price)

        async with self.store.write() as tx:
            now = self.clock.now()
            food_item = FoodItem(
                id=self.id_generator.new_id(),
                name=name,
                description=description,
                price=price,
                inventory=initial_inventory,
                created_date=now,
                updated_at=None,
            )
            await tx.food_items.insert(food_item.id, food_item)

            inventory = Inventory(
                food_item_id=food_item.id,
                quantity=initial_inventory,
                created_date=now,
                updated_at=None,
            )
            await tx.inventory.insert(inventory.food_item_id, inventory)

        logger.info(
            f"Food item {food_item.id} added at {price} "
            f"with {initial_inventory} in stock"
        )
        return food_item.id

    async def update_food_item(
        self,
        food_item_id: str,
        name: str,
        description: str,
        price: str,
    ) -> str:
        """
        Replace name, description and price. Values are stored as given.

        Orders already placed keep the total they were priced at.
        """
        async with self.store.write() as tx:
            food_item = await self._require(tx.food_items, food_item_id, "Food item not found")
            food_item.name = name
            food_item.description = description
            food_item.price = price
            food_item.updated_at = self.clock.now()
            await tx.food_items.insert(food_item.id, food_item)

        logger.info(f"Food item {food_item_id} updated")
        return food_item_id

    async def delete_food_item(self, food_item_id: str) -> str:
        """Remove the food item only. Its inventory record and orders remain."""
        async with self.store.write() as tx:
            return await self._delete(tx.food_items, food_item_id, "Food item")

    async def get_inventory(self) -> list[Inventory]:
        async with self.store.read() as view:
            return await self._list(view.inventory, "No inventory found")

    async def get_inventory_record(self, food_item_id: str) -> Inventory:
        async with self.store.read() as view:
            return await self._require(view.inventory, food_item_id, "Inventory not found")

    async def update_inventory(self, food_item_id: str, quantity: int) -> str:
        async with self.store.write() as tx:
            inventory = await self._require(tx.inventory, food_item_id, "Inventory not found")
            inventory.quantity = quantity
            inventory.updated_at = self.clock.now()
            await tx.inventory.insert(inventory.food_item_id, inventory)

        logger.info(f"Inventory for {food_item_id} set to {quantity}")
        return food_item_id

    async def delete_inventory(self, food_item_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.inventory, food_item_id, "Inventory")

    # =========================================================================
    # DRIVERS
    # =========================================================================

    async def get_drivers(self) -> list[Driver]:
        async with self.store.read() as view:
            return await self._list(view.drivers, "No drivers found")

    async def get_driver(self, driver_id: str) -> Driver:
        async with self.store.read() as view:
            return await self._require(view.drivers, driver_id, "Driver not found")

    async def add_driver(self, name: str, contact: str) -> str:
        async with self.store.write() as tx:
            driver = Driver(
                id=self.id_generator.new_id(),
                name=name,
                contact=contact,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.drivers.insert(driver.id, driver)

        logger.info(f"Driver {driver.id} added")
        return driver.id

    async def update_driver(self, driver_id: str, name: str, contact: str) -> str:
        async with self.store.write() as tx:
            driver = await self._require(tx.drivers, driver_id, "Driver not found")
            driver.name = name
            driver.contact = contact
            driver.updated_at = self.clock.now()
            await tx.drivers.insert(driver.id, driver)

        logger.info(f"Driver {driver_id} updated")
        return driver_id

    async def delete_driver(self, driver_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.drivers, driver_id, "Driver")

    # =========================================================================
    # DELIVERY ADDRESSES
    # =========================================================================

    async def get_delivery_addresses(self, client_id: str) -> list[DeliveryAddress]:
        """All addresses registered for `client_id`, in key order."""
        async with self.store.read() as view:
            addresses = [
                address
                for address in await view.delivery_addresses.values()
                if address.client_id == client_id
            ]
        if not addresses:
            raise NotFoundError("No delivery addresses found for the client")
        return addresses

    async def get_delivery_address(self, address_id: str) -> DeliveryAddress:
        async with self.store.read() as view:
            return await self._require(
                view.delivery_addresses, address_id, "Delivery address not found"
            )

    async def add_delivery_address(
        self,
        client_id: str,
        street: str,
        city: str,
        postal_code: str,
    ) -> str:
        """
        Register an address for a client.

        The client id is stored as given and not checked against the client
        collection.
        """
        self._validate_address_fields(street, city, postal_code)

        async with self.store.write() as tx:
            address = DeliveryAddress(
                id=self.id_generator.new_id(),
                client_id=client_id,
                street=street,
                city=city,
                postal_code=postal_code,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.delivery_addresses.insert(address.id, address)

        logger.info(f"Delivery address {address.id} added for client {client_id}")
        return address.id

    async def update_delivery_address(
        self,
        address_id: str,
        street: str,
        city: str,
        postal_code: str,
    ) -> str:
        async with self.store.write() as tx:
            address = await self._require(
                tx.delivery_addresses, address_id, "Delivery address not found"
            )
            self._validate_address_fields(street, city, postal_code)

            address.street = street
            address.city = city
            address.postal_code = postal_code
            address.updated_at = self.clock.now()
            await tx.delivery_addresses.insert(address.id, address)

        logger.info(f"Delivery address {address_id} updated")
        return address_id

    async def delete_delivery_address(self, address_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.delivery_addresses, address_id, "Delivery address")

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def get_orders(self) -> list[Order]:
        async with self.store.read() as view:
            return await self._list(view.orders, "No orders found")

    async def get_order(self, order_id: str) -> Order:
        async with self.store.read() as view:
            return await self._require(view.orders, order_id, "Order not found")

    async def place_order(self, client_id: str, items: list[str]) -> PlaceOrderResult:
        """
        Price `items` from current food item prices and store the order.

        Items that do not resolve to a food item add nothing to the total.
        An unknown client yields a zero-total result and stores nothing.
        """
        async with self.store.write() as tx:
            client = await tx.clients.get(client_id)
            if client is None:
                logger.warning(f"Order rejected, unknown client {client_id}")
                return PlaceOrderResult(msg=INVALID_CLIENT, total_price=Decimal("0"))

            total = await calculate_total_price(tx.food_items, items)
            order = Order(
                id=self.id_generator.new_id(),
                client_id=client.id,
                driver_id=None,
                items=list(items),
                total_price=format_price(total),
                is_delivered=False,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.orders.insert(order.id, order)

        logger.info(
            f"Order {order.id} placed for client {client_id}: "
            f"{len(order.items)} items, total {order.total_price}"
        )
        return PlaceOrderResult(
            msg=f"Order placed successfully. Total Price: ${order.total_price}",
            total_price=total,
            order_id=order.id,
        )

    async def update_order(self, order_id: str, items: list[str]) -> str:
        """Replace the order's items and re-price them at current prices."""
        async with self.store.write() as tx:
            order = await self._require(tx.orders, order_id, "Order not found")
            total = await calculate_total_price(tx.food_items, items)

            order.items = list(items)
            order.total_price = format_price(total)
            order.updated_at = self.clock.now()
            await tx.orders.insert(order.id, order)

        logger.info(f"Order {order_id} re-priced at {order.total_price}")
        return order_id

    async def assign_driver(self, order_id: str, driver_id: str) -> str:
        """Attach a driver to an order. The driver id is stored as given."""
        async with self.store.write() as tx:
            order = await self._require(tx.orders, order_id, "Order not found")
            order.driver_id = driver_id
            order.updated_at = self.clock.now()
            await tx.orders.insert(order.id, order)

        logger.info(f"Driver {driver_id} assigned to order {order_id}")
        return order_id

    async def mark_order_delivered(self, order_id: str) -> str:
        async with self.store.write() as tx:
            order = await self._require(tx.orders, order_id, "Order not found")
            order.is_delivered = True
            order.updated_at = self.clock.now()
            await tx.orders.insert(order.id, order)

        logger.info(f"Order {order_id} delivered")
        return order_id

    async def delete_order(self, order_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.orders, order_id, "Order")

    # =========================================================================
    # REVIEWS
    # =========================================================================

    async def get_reviews(self) -> list[Review]:
        async with self.store.read() as view:
            return await self._list(view.reviews, "No reviews found")

    async def get_review(self, review_id: str) -> Review:
        async with self.store.read() as view:
            return await self._require(view.reviews, review_id, "Review not found")

    async def add_review(self, order_id: str, rating: int, comment: str) -> str:
        async with self.store.write() as tx:
            review = Review(
                id=self.id_generator.new_id(),
                order_id=order_id,
                rating=rating,
                comment=comment,
                created_date=self.clock.now(),
                updated_at=None,
            )
            await tx.reviews.insert(review.id, review)

        logger.info(f"Review {review.id} added for order {order_id}")
        return review.id

    async def update_review(self, review_id: str, rating: int, comment: str) -> str:
        async with self.store.write() as tx:
            review = await self._require(tx.reviews, review_id, "Review not found")
            review.rating = rating
            review.comment = comment
            review.updated_at = self.clock.now()
            await tx.reviews.insert(review.id, review)

        logger.info(f"Review {review_id} updated")
        return review_id

    async def delete_review(self, review_id: str) -> str:
        async with self.store.write() as tx:
            return await self._delete(tx.reviews, review_id, "Review")

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    async def snapshot(self) -> dict[str, list]:
        """Every record of every collection, by table name."""
        async with self.store.read() as view:
            return {
                name: await collection.values()
                for name, collection in view.collections.items()
            }


@lru_cache()
def get_delivery_service() -> FoodDeliveryService:
    """
    Get the process-wide delivery service.

    Wires the shared entity store, clock and identifier generator together
    with the seed client settings.
    """
    settings = get_settings()
    return FoodDeliveryService(
        store=get_entity_store(),
        clock=get_clock(),
        id_generator=get_id_generator(),
        seed_client_name=settings.seed_client_name,
        seed_client_address=settings.seed_client_address,
    )
