"""
Country to currency code mapping.
"""

import logging
import re
from typing import Any, Mapping, Optional

from geoprice.geo.models import normalize_country
from geoprice.pricing.config_parsing import parse_json_object

logger = logging.getLogger(__name__)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class CurrencyMap:
    """Maps a country to the currency code to display. Labels only, no conversion."""

    def __init__(self, currencies: Optional[Mapping[str, str]] = None) -> None:
        self._currencies: dict[str, str] = {}
        for country, currency in (currencies or {}).items():
            code = normalize_country(country)
            if code is not None:
                self._currencies[code] = currency

    @classmethod
    def from_json(cls, raw: Any) -> "CurrencyMap":
        """Build from ``{"US": "USD", "CA": "CAD"}``; bad codes are dropped."""
        data = parse_json_object(raw, "currency map")
        currencies = {}
        for country, value in data.items():
            currency = str(value).strip().upper() if isinstance(value, str) else ""
            if not _CURRENCY_CODE.match(currency):
                logger.warning(f"Ignoring invalid currency code for {country!r}: {value!r}")
                continue
            currencies[country] = currency
        return cls(currencies)

    def currency_for(self, country: Optional[str]) -> Optional[str]:
        """Return the country's currency, or None to keep the store default."""
        code = normalize_country(country)
        if code is None:
            return None
        return self._currencies.get(code)

    def to_dict(self) -> dict[str, str]:
        return dict(self._currencies)
