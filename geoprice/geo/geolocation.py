"""
IP geolocation provider module.

Looks up a visitor's country from their network address via ipinfo.io.
"""

import logging
from typing import Optional

import requests

from geoprice.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)


class GeolocationError(Exception):
    """Raised when a country lookup fails for any reason."""

    pass


class GeolocationProvider:
    """
    Base class for IP to country lookups.

    Implementations return the raw country string or raise GeolocationError.
    """

    def lookup_country(self, ip_address: str) -> str:
        raise NotImplementedError

    def close(self) -> None:
        """Release any connections held by the provider."""
        pass


class IpinfoProvider(GeolocationProvider):
    """
    ipinfo.io country lookup.

    Calls ``GET {endpoint}?token={api_key}`` and expects a bare country code
    body on HTTP 200.

    Attributes:
        api_key: ipinfo.io access token.
        endpoint: URL template with an ``{ip}`` placeholder.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = "https://ipinfo.io/{ip}/country",
        timeout: float = 3.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup_country(self, ip_address: str) -> str:
        """
        Look up the country for an IP address.

        Args:
            ip_address: Visitor's network address.

        Returns:
            str: Raw response body (untrimmed country code).

        Raises:
            GeolocationError: On network error, timeout, non-200 status
                or empty body.
        """
        if not ip_address:
            raise GeolocationError("No visitor address to look up")

        url = self.endpoint.format(ip=ip_address)

        try:
            response = self.session.get(url, params={"token": self.api_key}, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise GeolocationError(f"Geolocation request timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise GeolocationError(f"Geolocation request failed: {e}")

        if response.status_code != 200:
            raise GeolocationError(f"Geolocation provider returned HTTP {response.status_code}")

        body = response.text
        if not body.strip():
            raise GeolocationError("Geolocation provider returned an empty body")

        return body

    def close(self) -> None:
        self.session.close()


def build_provider(config: AppConfig, api_key: Optional[str]) -> Optional[GeolocationProvider]:
    """
    Create the configured provider.

    Returns None when no credential is configured, which disables
    geolocation entirely.
    """
    if not api_key:
        return None

    geo_config = config.geolocation
    return IpinfoProvider(
        api_key=api_key,
        endpoint=geo_config.endpoint,
        timeout=geo_config.timeout_seconds,
    )
