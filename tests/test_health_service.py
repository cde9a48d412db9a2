"""
Tests for the health service.
"""

from pathlib import Path

import pytest

from geoprice.services.health_service import (
    ComponentHealth,
    HealthService,
    get_health_service,
    overall_status,
)
from geoprice.storage.settings_store import SettingsStore
from geoprice.utils.config_loader import AppConfig


class TestHealthService:
    @pytest.fixture
    def store(self, tmp_path: Path) -> SettingsStore:
        store = SettingsStore(str(tmp_path / "pricing_settings.json"))
        store.update(exchange_rates='{"US": 1, "CA": 1.3}', currency_map='{"CA": "CAD"}')
        return store

    @pytest.fixture
    def service(self, store: SettingsStore, monkeypatch) -> HealthService:
        monkeypatch.delenv("IPINFO_API_KEY", raising=False)
        return HealthService(config=AppConfig(), store=store)

    def test_without_credential_is_degraded(self, service: HealthService) -> None:
        report = service.report().to_dict()

        assert report["status"] == "degraded"
        assert report["components"]["settings"]["countries"] == ["US", "CA"]
        assert report["components"]["settings"]["currencies"] == 1
        assert report["components"]["geolocation"]["status"] == "degraded"

    def test_env_credential_is_healthy(self, service: HealthService, monkeypatch) -> None:
        monkeypatch.setenv("IPINFO_API_KEY", "token")

        report = service.report()

        assert report.status == "healthy"
        assert report.components["geolocation"].details["source"] == "environment"

    def test_stored_credential(self, service: HealthService, store: SettingsStore) -> None:
        store.set_api_key("token")

        assert service.check_geolocation().details["source"] == "settings"


@pytest.mark.parametrize(
    "statuses,expected",
    [
        (["ok", "ok"], "healthy"),
        (["ok", "degraded"], "degraded"),
        (["degraded", "error"], "unhealthy"),
    ],
)
def test_overall_status(statuses, expected) -> None:
    components = {str(i): ComponentHealth(status=s) for i, s in enumerate(statuses)}
    assert overall_status(components) == expected


def test_health_service_follows_app_config() -> None:
    config = AppConfig()
    config.geolocation.api_key_env = "GEOPRICE_HEALTH_TOKEN"

    service = get_health_service(config)

    assert service.config is config
    assert get_health_service() is service
    assert get_health_service(AppConfig()) is not service
