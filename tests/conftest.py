"""
Shared fixtures.
"""

from decimal import Decimal

import pytest

from geoprice.geo.country_resolver import CountryResolver
from geoprice.pricing.pricing_engine import PricingEngine, PricingTables


@pytest.fixture
def tables() -> PricingTables:
    """Tables with rates for US/CA/GB and a CA override on product 42."""
    return PricingTables.from_raw(
        exchange_rates='{"US": 1, "CA": 1.3, "GB": 0.8}',
        price_overrides={"42": {"_price_CA": "10", "_price_GB": "0"}},
        currency_map='{"CA": "CAD", "GB": "GBP"}',
        country_css='{"US": ".header { color: red; }", "others_css": ".header { color: grey; }"}',
    )


@pytest.fixture
def make_engine(tables: PricingTables):
    """Factory for an engine over ``tables`` with a chosen provider."""

    def _make(provider=None) -> PricingEngine:
        return PricingEngine(tables=tables, resolver=CountryResolver(provider), store_currency="USD")

    return _make


@pytest.fixture
def base_price() -> Decimal:
    return Decimal("8")
