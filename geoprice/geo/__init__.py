"""
Geo module.

Resolves the visitor's country from a sticky selection or IP geolocation.
"""

from geoprice.geo.country_resolver import CountryResolver
from geoprice.geo.geolocation import (
    GeolocationError,
    GeolocationProvider,
    IpinfoProvider,
    build_provider,
)
from geoprice.geo.models import (
    SELECTION_MAX_AGE,
    CountrySelection,
    VisitorContext,
    normalize_country,
)

__all__ = [
    "CountryResolver",
    "GeolocationError",
    "GeolocationProvider",
    "IpinfoProvider",
    "build_provider",
    "SELECTION_MAX_AGE",
    "CountrySelection",
    "VisitorContext",
    "normalize_country",
]
