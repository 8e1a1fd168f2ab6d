"""
                Food Delivery Marketplace

Backend for a food-delivery marketplace: clients, food items with
inventory, orders priced from current menu prices, drivers, delivery
addresses and reviews.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
