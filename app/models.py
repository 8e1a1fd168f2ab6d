"""
SQLAlchemy Database Models

One table per entity type. Each table is an ordered collection keyed by a
string identifier of at most 44 characters. Keys are the only length-limited
columns; every other text column is unbounded. Timestamps are integer
nanoseconds from the clock service; `updated_at` stays NULL until the first
mutation.

References between tables are plain string columns without foreign keys:
deleting a record never cascades and dangling references are allowed.
"""

from sqlalchemy import JSON, BigInteger, Boolean, Column, Integer, String, Text

from app.database import Base

KEY_LENGTH = 44


class Client(Base):
    """A customer of the marketplace."""
    __tablename__ = "clients"

    id = Column(String(KEY_LENGTH), primary_key=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Client {self.id} - {self.name}>"


class FoodItem(Base):
    """
    A menu entry.

    `price` is decimal text (e.g. "10.00"). `inventory` caches the quantity
    the item was created with; the live count is the Inventory record keyed
    by the same id.
    """
    __tablename__ = "food_items"

    id = Column(String(KEY_LENGTH), primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Text, nullable=False)
    inventory = Column(Integer, nullable=True)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<FoodItem {self.id} - {self.name} - {self.price}>"


class Order(Base):
    """
    A placed order.

    `items` is the ordered list of FoodItem ids as submitted, duplicates
    included. `total_price` is the price snapshot taken when the items were
    last set and is not refreshed when menu prices change.
    """
    __tablename__ = "orders"

    id = Column(String(KEY_LENGTH), primary_key=True)
    client_id = Column(Text, nullable=False, index=True)
    driver_id = Column(Text, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    total_price = Column(Text, nullable=False)
    is_delivered = Column(Boolean, nullable=False, default=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Order {self.id} - {self.client_id} - {self.total_price}>"


class Review(Base):
    """Feedback left for an order."""
    __tablename__ = "reviews"

    id = Column(String(KEY_LENGTH), primary_key=True)
    order_id = Column(Text, nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Review {self.id} - {self.order_id} - {self.rating}>"


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(String(KEY_LENGTH), primary_key=True)
    name = Column(Text, nullable=False)
    contact = Column(Text, nullable=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Driver {self.id} - {self.name}>"


class DeliveryAddress(Base):
    __tablename__ = "delivery_addresses"

    id = Column(String(KEY_LENGTH), primary_key=True)
    client_id = Column(Text, nullable=False, index=True)
    street = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    postal_code = Column(Text, nullable=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<DeliveryAddress {self.id} - {self.client_id} - {self.city}>"


class Inventory(Base):
    """Stock level of one food item, keyed by the item's id."""
    __tablename__ = "inventory"

    food_item_id = Column(String(KEY_LENGTH), primary_key=True)
    quantity = Column(Integer, nullable=False)

    created_date = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Inventory {self.food_item_id} - {self.quantity}>"
