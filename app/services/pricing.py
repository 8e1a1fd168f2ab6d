"""
Order Pricing

Prices are decimal text ("10.00"). Sums are done with `Decimal` so that
"10.00" + "5.50" is exactly "15.50".
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from app.models import FoodItem
from app.store import Collection

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def parse_price(value: Optional[str]) -> Optional[Decimal]:
    """Parse decimal text, returning None for empty or malformed values."""
    if not value:
        return None
    try:
        price = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not price.is_finite():
        return None
    return price


def format_price(total: Decimal) -> str:
    """Render a total as plain decimal text without exponent notation."""
    return f"{total:f}"


async def calculate_total_price(
    food_items: Collection[FoodItem],
    item_ids: Iterable[str],
) -> Decimal:
    """
    Sum the current prices of `item_ids`, in order.

    Ids with no matching food item contribute zero, as do items whose stored
    price cannot be parsed.
    """
    total = ZERO
    for item_id in item_ids:
        food_item = await food_items.get(item_id)
        if food_item is None:
            logger.warning(f"Food item {item_id} not found while pricing, counted as 0")
            continue

        price = parse_price(food_item.price)
        if price is None:
            logger.warning(
                f"Food item {item_id} has unparseable price {food_item.price!r}, counted as 0"
            )
            continue
        total += price

    return total
