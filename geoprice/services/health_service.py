"""
Health reporting for the pricing service.

Two components are checked: the pricing settings (can the tables be read,
what do they cover) and geolocation (is a provider credential available).
Geolocation is optional, so a missing credential only degrades the report.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from geoprice import __version__
from geoprice.storage.settings_store import SettingsStore, get_store
from geoprice.utils.config_loader import AppConfig, load_config

logger = logging.getLogger(__name__)

OK = "ok"
DEGRADED = "degraded"
ERROR = "error"


@dataclass
class ComponentHealth:
    """Status of one component plus whatever it wants to report."""

    status: str
    message: str = ""
    latency_ms: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"status": self.status, **self.details}
        if self.message:
            result["message"] = self.message
        if self.latency_ms is not None:
            result["latency_ms"] = round(self.latency_ms, 2)
        return result


@dataclass
class HealthReport:
    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: str
    version: str
    components: Dict[str, ComponentHealth] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "version": self.version,
            "components": {name: comp.to_dict() for name, comp in self.components.items()},
        }


def overall_status(components: Dict[str, ComponentHealth]) -> str:
    statuses = {comp.status for comp in components.values()}
    if ERROR in statuses:
        return "unhealthy"
    if DEGRADED in statuses:
        return "degraded"
    return "healthy"


class HealthService:
    """
    Builds a HealthReport on demand.

    The settings store is looked up on every report so the service follows
    ``configure_store`` calls made after it was created.
    """

    def __init__(self, config: Optional[AppConfig] = None, store: Optional[SettingsStore] = None):
        self.config = config or load_config()
        self._store = store

    @property
    def store(self) -> SettingsStore:
        return self._store or get_store()

    def report(self) -> HealthReport:
        components = {
            "settings": self.check_settings(),
            "geolocation": self.check_geolocation(),
        }
        return HealthReport(
            status=overall_status(components),
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=__version__,
            components=components,
        )

    def check_settings(self) -> ComponentHealth:
        store = self.store
        started = time.perf_counter()
        try:
            tables = store.get_tables()
        except OSError as e:
            logger.error(f"Settings file unreadable at {store.settings_path}: {e}")
            return ComponentHealth(status=ERROR, message=str(e), details={"path": str(store.settings_path)})
        elapsed = (time.perf_counter() - started) * 1000

        countries = tables.pricing.exchange_rates.countries()
        return ComponentHealth(
            status=OK,
            message=f"{len(countries)} countries configured",
            latency_ms=elapsed,
            details={
                "path": str(store.settings_path),
                "countries": countries,
                "currencies": len(tables.currencies.to_dict()),
            },
        )

    def check_geolocation(self) -> ComponentHealth:
        geo = self.config.geolocation
        if os.environ.get(geo.api_key_env):
            source = "environment"
        elif self.store.has_api_key():
            source = "settings"
        else:
            return ComponentHealth(
                status=DEGRADED,
                message="No provider credential; only explicit selections resolve",
            )
        return ComponentHealth(
            status=OK,
            details={"source": source, "timeout_seconds": geo.timeout_seconds},
        )


_health_service: Optional[HealthService] = None


def get_health_service(config: Optional[AppConfig] = None) -> HealthService:
    """Get the health service, rebuilt when a different app config is passed."""
    global _health_service
    if _health_service is None or (config is not None and _health_service.config is not config):
        _health_service = HealthService(config)
    return _health_service
