"""
Presentation rules: per-country CSS overrides and address field labels.
"""

import logging
from typing import Any, Mapping, Optional

from geoprice.geo.models import normalize_country
from geoprice.pricing.config_parsing import parse_json_object

logger = logging.getLogger(__name__)

# Distinguished key of the CSS table used when a country has no entry
OTHERS_KEY = "others_css"

POSTCODE_LABELS = {
    "US": "Zipcode",
}
DEFAULT_POSTCODE_LABEL = "Postcode"


class PresentationRules:
    """
    Country to CSS override text, with an ``others_css`` fallback.

    Attributes:
        fallback: CSS used when the country has no (or an empty) entry.
    """

    def __init__(self, css: Optional[Mapping[str, str]] = None, fallback: str = "") -> None:
        self._css: dict[str, str] = {}
        for country, text in (css or {}).items():
            code = normalize_country(country)
            if code is not None:
                self._css[code] = text
        self.fallback = fallback

    @classmethod
    def from_json(cls, raw: Any) -> "PresentationRules":
        """Build from ``{"US": ".header { ... }", "others_css": "..."}``."""
        data = parse_json_object(raw, "country CSS")
        fallback = data.get(OTHERS_KEY)
        if not isinstance(fallback, str):
            fallback = ""

        css = {}
        for country, text in data.items():
            if country == OTHERS_KEY:
                continue
            if not isinstance(text, str):
                logger.warning(f"Ignoring non-text CSS for {country!r}")
                continue
            css[country] = text
        return cls(css, fallback=fallback)

    def css_for(self, country: Optional[str]) -> str:
        """Return the country's CSS, or the fallback. Always a string."""
        code = normalize_country(country)
        text = self._css.get(code) if code else None
        if text:
            return text
        return self.fallback

    def postcode_label(self, country: Optional[str]) -> str:
        """Label for the postcode address field."""
        return POSTCODE_LABELS.get(normalize_country(country) or "", DEFAULT_POSTCODE_LABEL)
