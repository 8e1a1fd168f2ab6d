"""
Core module initialization.
Exports configuration, logging utilities and domain errors.
"""

from app.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from app.core.exceptions import FoodDeliveryError, NotFoundError, ValidationError

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "FoodDeliveryError",
    "NotFoundError",
    "ValidationError",
]
