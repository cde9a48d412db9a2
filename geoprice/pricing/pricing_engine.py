"""
Pricing engine module.

Answers, for one visitor context, what price, currency, style and shipping
destination to present. Every call re-runs country resolution; the visitor
context only caches the resolved country for the current request.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from babel.numbers import format_currency

from geoprice.geo.country_resolver import CountryResolver
from geoprice.geo.models import VisitorContext
from geoprice.pricing.currency_map import CurrencyMap
from geoprice.pricing.presentation import PresentationRules
from geoprice.pricing.pricing_table import (
    ExchangeRateTable,
    PriceOverrideTable,
    PricingTable,
    to_money,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Product:
    """A catalog product as seen by the pricing core."""

    product_id: str
    base_price: Decimal


@dataclass
class PricingTables:
    """The admin-authored tables, parsed and validated."""

    pricing: PricingTable = field(default_factory=PricingTable)
    currencies: CurrencyMap = field(default_factory=CurrencyMap)
    presentation: PresentationRules = field(default_factory=PresentationRules)

    @classmethod
    def from_raw(
        cls,
        exchange_rates: Any = None,
        price_overrides: Any = None,
        currency_map: Any = None,
        country_css: Any = None,
    ) -> "PricingTables":
        """Parse the raw configuration blobs; malformed ones become empty tables."""
        return cls(
            pricing=PricingTable(
                exchange_rates=ExchangeRateTable.from_json(exchange_rates),
                overrides=PriceOverrideTable.from_product_fields(price_overrides),
            ),
            currencies=CurrencyMap.from_json(currency_map),
            presentation=PresentationRules.from_json(country_css),
        )


class PricingEngine:
    """
    Orchestrates country resolution and the pricing tables.

    Attributes:
        tables: Parsed admin configuration.
        resolver: Country resolver for the visitor context.
        store_currency: Currency used when no country-specific one applies.
        locale: Babel locale used to format prices.
    """

    def __init__(
        self,
        tables: PricingTables,
        resolver: CountryResolver,
        store_currency: str = "USD",
        locale: str = "en_US",
    ) -> None:
        self.tables = tables
        self.resolver = resolver
        self.store_currency = store_currency
        self.locale = locale

    def resolve_country(self, ctx: VisitorContext) -> Optional[str]:
        return self.resolver.resolve(ctx)

    def display_price(self, product: Product, ctx: VisitorContext) -> Decimal:
        """Price to show for a single catalog product."""
        return self.line_item_price(product.product_id, product.base_price, ctx)

    def line_item_price(self, product_id: Any, base_price: Any, ctx: VisitorContext) -> Decimal:
        """
        Price to charge for one cart/order line.

        Args:
            product_id: Catalog product identifier.
            base_price: Catalog price of the product.
            ctx: Visitor context.

        Returns:
            Decimal: The base price if the country is unresolved, otherwise
            the pricing table result.
        """
        country = self.resolve_country(ctx)
        if country is None:
            return to_money(base_price)
        return self.tables.pricing.price_for(product_id, country, base_price)

    def effective_currency(self, ctx: VisitorContext) -> str:
        """Currency code to display; the store currency when nothing maps."""
        country = self.resolve_country(ctx)
        currency = self.tables.currencies.currency_for(country)
        return currency or self.store_currency

    def effective_css(self, ctx: VisitorContext) -> str:
        """CSS override text for the visitor's country."""
        country = self.resolve_country(ctx)
        if country is None:
            return self.tables.presentation.fallback
        return self.tables.presentation.css_for(country)

    def shipping_country(self, ctx: VisitorContext) -> Optional[str]:
        """Country to use as shipping destination, or None to leave it alone."""
        return self.resolve_country(ctx)

    def postcode_label(self, ctx: VisitorContext) -> str:
        return self.tables.presentation.postcode_label(self.resolve_country(ctx))

    def available_countries(self) -> list[str]:
        """Countries offered by the country switcher."""
        return self.tables.pricing.exchange_rates.countries()

    def format_price(self, amount: Decimal, currency: Optional[str] = None) -> str:
        """Format an amount for display, e.g. ``CA$13.00``."""
        return format_currency(amount, currency or self.store_currency, locale=self.locale)

    def price_quote(self, product: Product, ctx: VisitorContext) -> dict[str, Any]:
        """
        Full display information for a product.

        Returns:
            Dict with:
                - product_id: Product identifier
                - country: Resolved country (None if unresolved)
                - base_price: Catalog price
                - price: Price to show
                - currency: Currency code to show
                - formatted: Price formatted for display
        """
        price = self.display_price(product, ctx)
        currency = self.effective_currency(ctx)
        return {
            "product_id": product.product_id,
            "country": self.resolve_country(ctx),
            "base_price": to_money(product.base_price),
            "price": price,
            "currency": currency,
            "formatted": self.format_price(price, currency),
        }
