"""
Storage modules for data persistence.
"""

from geoprice.storage.settings_store import (
    PricingSettings,
    SettingsStore,
    clear_api_key,
    configure_store,
    get_api_key,
    get_settings,
    get_store,
    get_tables,
    has_api_key,
    set_api_key,
    update_settings,
)

__all__ = [
    "SettingsStore",
    "PricingSettings",
    "configure_store",
    "get_store",
    "get_settings",
    "get_tables",
    "update_settings",
    "get_api_key",
    "set_api_key",
    "clear_api_key",
    "has_api_key",
]
