"""
Tests for the ipinfo.io geolocation provider.
"""

from unittest.mock import Mock

import pytest
import requests
import responses

from geoprice.geo.geolocation import GeolocationError, IpinfoProvider, build_provider
from geoprice.utils.config_loader import AppConfig
from tests.fixtures.geo_mocks import IPINFO_URL, mock_ipinfo


class TestIpinfoProvider:
    """Tests for IpinfoProvider."""

    @pytest.fixture
    def provider(self) -> IpinfoProvider:
        return IpinfoProvider(api_key="test-token", timeout=3.0)

    @responses.activate
    def test_returns_raw_body(self, provider: IpinfoProvider) -> None:
        mock_ipinfo("8.8.8.8", body="US\n")

        assert provider.lookup_country("8.8.8.8") == "US\n"

    @responses.activate
    def test_sends_token_as_query_parameter(self, provider: IpinfoProvider) -> None:
        mock_ipinfo("8.8.8.8", body="US")

        provider.lookup_country("8.8.8.8")

        assert len(responses.calls) == 1
        assert "token=test-token" in responses.calls[0].request.url

    @responses.activate
    def test_non_200_is_an_error(self, provider: IpinfoProvider) -> None:
        mock_ipinfo("8.8.8.8", body="Rate limit exceeded", status=429)

        with pytest.raises(GeolocationError, match="HTTP 429"):
            provider.lookup_country("8.8.8.8")

    @responses.activate
    def test_blank_body_is_an_error(self, provider: IpinfoProvider) -> None:
        mock_ipinfo("8.8.8.8", body="\n")

        with pytest.raises(GeolocationError):
            provider.lookup_country("8.8.8.8")

    @responses.activate
    def test_connection_error_is_wrapped(self, provider: IpinfoProvider) -> None:
        responses.add(
            responses.GET,
            IPINFO_URL.format(ip="8.8.8.8"),
            body=requests.exceptions.ConnectionError("refused"),
        )

        with pytest.raises(GeolocationError, match="failed"):
            provider.lookup_country("8.8.8.8")

    def test_timeout_is_bounded_and_wrapped(self) -> None:
        session = Mock(spec=requests.Session)
        session.get.side_effect = requests.exceptions.Timeout()
        provider = IpinfoProvider(api_key="k", timeout=2.5, session=session)

        with pytest.raises(GeolocationError, match="timed out"):
            provider.lookup_country("8.8.8.8")

        assert session.get.call_args.kwargs["timeout"] == 2.5

    def test_empty_address_never_calls_provider(self) -> None:
        session = Mock(spec=requests.Session)
        provider = IpinfoProvider(api_key="k", session=session)

        with pytest.raises(GeolocationError):
            provider.lookup_country("")

        session.get.assert_not_called()


class TestBuildProvider:
    def test_no_key_disables_geolocation(self) -> None:
        assert build_provider(AppConfig(), "") is None
        assert build_provider(AppConfig(), None) is None

    def test_uses_configured_endpoint_and_timeout(self) -> None:
        config = AppConfig()
        config.geolocation.endpoint = "https://geo.example.com/{ip}"
        config.geolocation.timeout_seconds = 1.5

        provider = build_provider(config, "abc")

        assert isinstance(provider, IpinfoProvider)
        assert provider.api_key == "abc"
        assert provider.endpoint == "https://geo.example.com/{ip}"
        assert provider.timeout == 1.5
