"""
geoprice: country-based pricing.

Resolves a shopper's country from an explicit selection or IP geolocation
and derives the price, currency, shipping destination and CSS to present.
"""

__version__ = "1.0.0"
