"""
                        Services Module

Business logic on top of the entity store.

Services:
    - delivery: Marketplace operations and workflows
    - pricing: Decimal order pricing
    - clock / identifiers: Injected timestamp and id providers
    - exporter: File-locked workbook export of store snapshots
"""

from app.services.delivery import FoodDeliveryService, get_delivery_service

__all__ = ["FoodDeliveryService", "get_delivery_service"]
