"""
Services module.

Business logic services extracted from routes.
"""

from geoprice.services.checkout_service import (
    Cart,
    CheckoutService,
    CustomerAddress,
    LineItem,
    OrderLine,
)

__all__ = [
    "Cart",
    "CheckoutService",
    "CustomerAddress",
    "LineItem",
    "OrderLine",
]
