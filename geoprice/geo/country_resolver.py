"""
Country resolver module.

Determines the visitor's country with this precedence:
1. Explicit prior selection (sticky, 30 days)
2. Nothing, if no geolocation provider is configured
3. Geolocation lookup, remembered as the new selection on success
"""

import logging
from typing import Optional

from geoprice.geo.geolocation import GeolocationError, GeolocationProvider
from geoprice.geo.models import VisitorContext, normalize_country

logger = logging.getLogger(__name__)


class CountryResolver:
    """
    Resolves a VisitorContext to a country code.

    Lookup and write-back are separate steps: ``lookup`` reads the cached
    selection, ``remember`` stores a fresh geolocation result, and
    ``resolve`` composes them (cache-aside).

    Attributes:
        provider: Geolocation provider, or None when no credential is set.
    """

    def __init__(self, provider: Optional[GeolocationProvider] = None) -> None:
        self.provider = provider

    @property
    def geolocation_enabled(self) -> bool:
        return self.provider is not None

    def lookup(self, ctx: VisitorContext) -> Optional[str]:
        """Return the visitor's active explicit selection, if any."""
        return ctx.active_selection()

    def remember(self, ctx: VisitorContext, country: str) -> None:
        """Persist a resolved country as the visitor's sticky selection."""
        ctx.remember(country)
        logger.info(f"Remembered country {country} for visitor {ctx.remote_addr or 'unknown'}")

    def resolve(self, ctx: VisitorContext) -> Optional[str]:
        """
        Resolve the visitor's country.

        Never raises: provider failures collapse to None.

        Args:
            ctx: Visitor context for the current request.

        Returns:
            Country code, or None if unresolved.
        """
        if ctx.resolved:
            return ctx.resolved_country

        country = self.lookup(ctx)
        if country is None:
            country = self._geolocate(ctx)
            if country is not None:
                self.remember(ctx, country)

        ctx.resolved_country = country
        ctx.resolved = True
        return country

    def select(self, ctx: VisitorContext, country: Optional[str]) -> Optional[str]:
        """
        Record an explicit country choice made by the visitor.

        Blank or malformed input is ignored.

        Returns:
            The normalized country, or None if nothing was stored.
        """
        code = normalize_country(country)
        if code is None:
            return None
        ctx.remember(code)
        logger.info(f"Visitor selected country {code}")
        return code

    def _geolocate(self, ctx: VisitorContext) -> Optional[str]:
        if self.provider is None:
            return None

        try:
            raw = self.provider.lookup_country(ctx.remote_addr)
        except GeolocationError as e:
            logger.warning(f"Geolocation failed for {ctx.remote_addr or 'unknown'}: {e}")
            return None

        return normalize_country(raw)
