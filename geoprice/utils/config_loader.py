"""
Application configuration.

``config/config.yaml`` holds the non-secret settings, one section per
dataclass below; every key is optional. Secrets (the ipinfo.io token, the
encryption secret) come from the environment, optionally via ``.env``.
"""

import logging
from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, TypeVar

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config/config.yaml")

T = TypeVar("T")


@dataclass
class PathsConfig:
    settings_file: str = "data/settings/pricing_settings.json"


@dataclass
class StoreConfig:
    """Store-wide defaults used when no country resolves."""

    default_currency: str = "USD"
    locale: str = "en_US"

    def __post_init__(self) -> None:
        self.default_currency = self.default_currency.strip().upper()


@dataclass
class GeolocationConfig:
    """ipinfo.io lookup. The token itself is read from ``api_key_env``."""

    endpoint: str = "https://ipinfo.io/{ip}/country"
    timeout_seconds: float = 3.0
    api_key_env: str = "IPINFO_API_KEY"


@dataclass
class SelectionConfig:
    cookie_name: str = "selected_country"
    max_age_days: int = 30


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "text"
    log_file: Optional[str] = None


@dataclass
class AppConfig:
    paths: PathsConfig = field(default_factory=PathsConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    geolocation: GeolocationConfig = field(default_factory=GeolocationConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_env(env_file: Path = Path(".env")) -> None:
    """Load ``.env`` into the environment; existing variables are kept."""
    if load_dotenv(env_file):
        logger.debug(f"Environment loaded from {env_file}")


def _section(cls: type[T], raw: Any, name: str) -> T:
    """
    Build one config section from its YAML mapping.

    Values are coerced to the type of the field default, so ``timeout_seconds: 3``
    becomes 3.0. Unknown keys are logged and ignored.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning(f"Config section '{name}' is not a mapping, using defaults")
        return cls()

    known = {f.name: f for f in fields(cls)}
    for key in raw.keys() - known.keys():
        logger.warning(f"Unknown config key '{name}.{key}' ignored")

    values = {}
    for key, f in known.items():
        if key not in raw:
            continue
        value = raw[key]
        if f.default is not MISSING and f.default is not None and value is not None:
            value = type(f.default)(value)
        values[key] = value
    return cls(**values)


def load_config(config_file: Path = DEFAULT_CONFIG_FILE) -> AppConfig:
    """
    Load the YAML configuration.

    A missing or empty file gives the defaults.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If a value cannot be converted to its field's type.
    """
    config_file = Path(config_file)
    if not config_file.exists():
        logger.warning(f"No config file at {config_file}, using defaults")
        return AppConfig()

    raw = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}

    config = AppConfig(
        paths=_section(PathsConfig, raw.get("paths"), "paths"),
        store=_section(StoreConfig, raw.get("store"), "store"),
        geolocation=_section(GeolocationConfig, raw.get("geolocation"), "geolocation"),
        selection=_section(SelectionConfig, raw.get("selection"), "selection"),
        logging=_section(LoggingConfig, raw.get("logging"), "logging"),
    )
    logger.info(f"Configuration loaded from {config_file}")
    return config
