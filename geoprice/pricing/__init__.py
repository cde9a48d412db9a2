"""
Pricing module.

Resolves per-country prices, currency codes and CSS overrides from
admin-configured tables.
"""

from geoprice.pricing.currency_map import CurrencyMap
from geoprice.pricing.presentation import OTHERS_KEY, PresentationRules
from geoprice.pricing.pricing_engine import PricingEngine, PricingTables, Product
from geoprice.pricing.pricing_table import (
    ExchangeRateTable,
    PriceOverrideTable,
    PricingTable,
    override_field_name,
)

__all__ = [
    "CurrencyMap",
    "OTHERS_KEY",
    "PresentationRules",
    "PricingEngine",
    "PricingTables",
    "Product",
    "ExchangeRateTable",
    "PriceOverrideTable",
    "PricingTable",
    "override_field_name",
]
