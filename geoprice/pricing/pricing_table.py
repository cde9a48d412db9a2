"""
Pricing table module.

Holds per-country exchange rates and per-product per-country override
prices, and resolves the price to show for a (product, country) pair.

Formula: P_final = P_override × R   when an override exists
         P_final = P_base           otherwise
Where:
- P_override = admin-set price for the product in that country
- R = country exchange rate (1 if not configured)
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from geoprice.geo.models import normalize_country
from geoprice.pricing.config_parsing import parse_json_object, to_decimal

logger = logging.getLogger(__name__)

# Product fields are named "_price_<COUNTRY>", e.g. "_price_CA"
OVERRIDE_FIELD_PREFIX = "_price_"

ONE = Decimal("1")


def override_field_name(country: str) -> str:
    """Return the product field name holding the override for a country."""
    return f"{OVERRIDE_FIELD_PREFIX}{country}"


def to_money(value: Any) -> Decimal:
    """Convert a catalog amount to Decimal without changing its value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class ExchangeRateTable:
    """
    Country to exchange-rate multiplier.

    Rates must be positive; invalid entries are dropped when parsed.
    Keys keep the admin's configured order (used for the country switcher).
    """

    def __init__(self, rates: Optional[Mapping[str, Decimal]] = None) -> None:
        self._rates: dict[str, Decimal] = {}
        for country, rate in (rates or {}).items():
            code = normalize_country(country)
            if code is None or rate is None or rate <= 0:
                continue
            self._rates[code] = rate

    @classmethod
    def from_json(cls, raw: Any) -> "ExchangeRateTable":
        """Build from the admin JSON blob, e.g. ``{"US": 1, "CA": 1.25}``."""
        data = parse_json_object(raw, "exchange rates")
        rates = {}
        for country, value in data.items():
            rate = to_decimal(value)
            if rate is None or rate <= 0:
                logger.warning(f"Ignoring invalid exchange rate for {country!r}: {value!r}")
                continue
            rates[country] = rate
        return cls(rates)

    def rate_for(self, country: Optional[str]) -> Decimal:
        """Return the multiplier for a country (1 if not configured)."""
        return self._rates.get(normalize_country(country) or "", ONE)

    def countries(self) -> list[str]:
        return list(self._rates)


class PriceOverrideTable:
    """
    (product, country) to admin-set base price.

    Stored per product as ``{"_price_CA": "10", ...}`` fields.
    """

    def __init__(self, overrides: Optional[Mapping[str, Mapping[str, Decimal]]] = None) -> None:
        self._overrides: dict[str, dict[str, Decimal]] = {}
        for product_id, prices in (overrides or {}).items():
            cleaned = {}
            for country, price in prices.items():
                code = normalize_country(country)
                if code is not None and price is not None:
                    cleaned[code] = price
            if cleaned:
                self._overrides[str(product_id)] = cleaned

    @classmethod
    def from_product_fields(cls, raw: Any) -> "PriceOverrideTable":
        """
        Build from ``{product_id: {"_price_<CC>": price}}``.

        Fields without the prefix and blank/non-numeric prices are skipped.
        """
        data = parse_json_object(raw, "price overrides")
        overrides: dict[str, dict[str, Decimal]] = {}
        for product_id, fields in data.items():
            if not isinstance(fields, dict):
                logger.warning(f"Ignoring price overrides for product {product_id!r}: not an object")
                continue
            prices = {}
            for field_name, value in fields.items():
                if not str(field_name).startswith(OVERRIDE_FIELD_PREFIX):
                    continue
                price = to_decimal(value)
                if price is None:
                    continue
                prices[str(field_name)[len(OVERRIDE_FIELD_PREFIX):]] = price
            overrides[str(product_id)] = prices
        return cls(overrides)

    def override_for(self, product_id: Any, country: Optional[str]) -> Optional[Decimal]:
        """
        Return the usable override price, or None.

        Zero and negative prices count as "no override".
        """
        code = normalize_country(country)
        if code is None:
            return None
        price = self._overrides.get(str(product_id), {}).get(code)
        if price is None or price <= 0:
            return None
        return price

    def with_product_prices(
        self,
        product_id: Any,
        submitted: Mapping[str, Any],
        countries: Iterable[str],
    ) -> "PriceOverrideTable":
        """
        Return a copy with a product's submitted country prices applied.

        Only configured countries are read, and blank submissions leave the
        existing value in place.

        Args:
            product_id: Product being edited.
            submitted: Form fields, e.g. ``{"_price_CA": "12.50"}``.
            countries: Countries that may carry an override.
        """
        updated = {pid: dict(prices) for pid, prices in self._overrides.items()}
        product_prices = updated.setdefault(str(product_id), {})

        for country in countries:
            value = submitted.get(override_field_name(country))
            price = to_decimal(value)
            if price is None:
                continue
            product_prices[country] = price

        return PriceOverrideTable(updated)

    def to_product_fields(self) -> dict[str, dict[str, str]]:
        """Serialize back to the ``_price_<CC>`` field convention."""
        return {
            product_id: {override_field_name(country): str(price) for country, price in prices.items()}
            for product_id, prices in self._overrides.items()
        }


class PricingTable:
    """
    Resolves the output price for a (product, country) pair.

    Pure given its inputs; display, cart and order recompute all go
    through ``price_for``.

    Attributes:
        exchange_rates: Country exchange-rate multipliers.
        overrides: Per-product per-country override prices.
    """

    def __init__(
        self,
        exchange_rates: Optional[ExchangeRateTable] = None,
        overrides: Optional[PriceOverrideTable] = None,
    ) -> None:
        self.exchange_rates = exchange_rates or ExchangeRateTable()
        self.overrides = overrides or PriceOverrideTable()

    def price_for(self, product_id: Any, country: Optional[str], base_price: Any) -> Decimal:
        """
        Resolve the price for a product in a country.

        The override is multiplied by the country's exchange rate; the
        catalog base price is passed through with no multiplier.

        Args:
            product_id: Catalog product identifier.
            country: Resolved country code (None = unresolved).
            base_price: Default catalog price.

        Returns:
            Decimal: Price to show/charge.
        """
        override = self.overrides.override_for(product_id, country)
        if override is None:
            return to_money(base_price)

        return override * self.exchange_rates.rate_for(country)
