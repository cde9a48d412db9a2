"""
Settings storage module.

Manages the admin-authored pricing configuration:
- Exchange rates, currency map and country CSS (JSON text as authored)
- Per-product country price overrides
- Geolocation provider credential (encrypted at rest)

Parsed tables are cached process-wide and invalidated on every save.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from geoprice.pricing.pricing_engine import PricingTables
from geoprice.pricing.pricing_table import ExchangeRateTable, PriceOverrideTable
from geoprice.storage.encryption import decrypt, encrypt, is_encrypted

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "data/settings/pricing_settings.json"

DEFAULT_API_KEY_ENV = "IPINFO_API_KEY"


def _as_json_text(value: Any) -> str:
    """Keep admin blobs as text; objects written directly are re-encoded."""
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value
    return json.dumps(value)


@dataclass
class PricingSettings:
    """Pricing configuration stored persistently."""

    exchange_rates: str = "{}"
    currency_map: str = "{}"
    country_css: str = "{}"
    price_overrides: dict[str, dict[str, str]] = field(default_factory=dict)
    # Stored encrypted
    geolocation_api_key: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PricingSettings":
        """Create from dictionary."""
        overrides = data.get("price_overrides", {})
        return cls(
            exchange_rates=_as_json_text(data.get("exchange_rates")),
            currency_map=_as_json_text(data.get("currency_map")),
            country_css=_as_json_text(data.get("country_css")),
            price_overrides=overrides if isinstance(overrides, dict) else {},
            geolocation_api_key=data.get("geolocation_api_key", "") or "",
        )

    def to_tables(self) -> PricingTables:
        """Parse the stored blobs into validated tables."""
        return PricingTables.from_raw(
            exchange_rates=self.exchange_rates,
            price_overrides=self.price_overrides,
            currency_map=self.currency_map,
            country_css=self.country_css,
        )


class SettingsStore:
    """Manages persistent storage of pricing settings."""

    def __init__(self, settings_path: Optional[str] = None) -> None:
        """Initialize the settings store."""
        self.settings_path = Path(settings_path or DEFAULT_SETTINGS_PATH)
        self._settings: Optional[PricingSettings] = None
        self._tables: Optional[PricingTables] = None

    def _ensure_file_exists(self) -> None:
        """Create the settings file with defaults if it doesn't exist."""
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.settings_path.exists():
            self._save(PricingSettings())
            logger.info(f"Created default settings file: {self.settings_path}")

    def _load(self) -> PricingSettings:
        """Load settings from file."""
        self._ensure_file_exists()

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load settings, using defaults: {e}")
            return PricingSettings()

        if not isinstance(data, dict):
            logger.warning("Settings file does not hold a JSON object, using defaults")
            return PricingSettings()

        return PricingSettings.from_dict(data)

    def _save(self, settings: PricingSettings) -> None:
        """Save settings to file and drop cached tables."""
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.settings_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

        self._settings = settings
        self._tables = None
        logger.info("Settings saved")

    def get(self) -> PricingSettings:
        """Get current settings."""
        if self._settings is None:
            self._settings = self._load()
        return self._settings

    def get_tables(self) -> PricingTables:
        """Get the parsed tables (cached until the next save)."""
        if self._tables is None:
            self._tables = self.get().to_tables()
        return self._tables

    def invalidate(self) -> None:
        """Forget cached settings so the next read goes back to disk."""
        self._settings = None
        self._tables = None

    def update(self, **kwargs) -> PricingSettings:
        """
        Update specific settings.

        Changes are applied to a copy; the cached settings only change once
        the file write succeeds.
        """
        editable = {f.name for f in fields(PricingSettings)} - {"geolocation_api_key"}
        changes = {key: value for key, value in kwargs.items() if key in editable}
        settings = replace(self.get(), **changes)

        self._save(settings)
        return settings

    def save_product_prices(self, product_id: Any, submitted: Mapping[str, Any]) -> PricingSettings:
        """
        Save a product's ``_price_<CC>`` fields.

        Only countries present in the exchange-rate table are accepted;
        blank fields keep the previous value.
        """
        settings = self.get()
        countries = ExchangeRateTable.from_json(settings.exchange_rates).countries()
        overrides = PriceOverrideTable.from_product_fields(settings.price_overrides)
        updated = overrides.with_product_prices(product_id, submitted, countries)
        return self.update(price_overrides=updated.to_product_fields())

    def set_api_key(self, api_key: str) -> None:
        """Set the geolocation credential (encrypted at rest)."""
        settings = replace(self.get(), geolocation_api_key=encrypt(api_key.strip()))
        self._save(settings)
        logger.info("Geolocation API key updated (encrypted)")

    def clear_api_key(self) -> None:
        """Clear the geolocation credential."""
        settings = replace(self.get(), geolocation_api_key="")
        self._save(settings)
        logger.info("Geolocation API key cleared")

    def has_api_key(self) -> bool:
        """Check if a credential is stored."""
        return bool(self.get().geolocation_api_key)

    def get_api_key(self) -> str:
        """Get the stored credential (decrypted)."""
        stored_key = self.get().geolocation_api_key
        if not stored_key:
            return ""
        if is_encrypted(stored_key):
            return decrypt(stored_key)
        return stored_key


# Module-level singleton
_store: Optional[SettingsStore] = None


def configure_store(settings_path: Optional[str] = None) -> SettingsStore:
    """Point the singleton store at a settings file."""
    global _store
    _store = SettingsStore(settings_path)
    return _store


def get_store() -> SettingsStore:
    """Get or create the singleton store instance."""
    global _store
    if _store is None:
        _store = SettingsStore()
    return _store


def get_settings() -> PricingSettings:
    """Get current settings (convenience function)."""
    return get_store().get()


def get_tables() -> PricingTables:
    """Get parsed pricing tables (convenience function)."""
    return get_store().get_tables()


def update_settings(**kwargs) -> PricingSettings:
    """Update settings (convenience function)."""
    return get_store().update(**kwargs)


def get_api_key(env_var: str = DEFAULT_API_KEY_ENV) -> str:
    """Get the geolocation credential (convenience function).

    Checks the environment variable first, then the stored key.
    """
    env_key = os.environ.get(env_var, "")
    if env_key:
        return env_key
    return get_store().get_api_key()


def set_api_key(api_key: str) -> None:
    """Set the credential (convenience function)."""
    get_store().set_api_key(api_key)


def clear_api_key() -> None:
    """Clear the credential (convenience function)."""
    get_store().clear_api_key()


def has_api_key(env_var: str = DEFAULT_API_KEY_ENV) -> bool:
    """Check if a credential is available from env or store (convenience function)."""
    return bool(os.environ.get(env_var, "")) or get_store().has_api_key()
