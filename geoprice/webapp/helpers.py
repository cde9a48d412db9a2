"""
Helper utilities for the geoprice web application.

Dependency providers and request helpers shared by routes and middleware.
"""

import logging
import threading
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from geoprice.geo.country_resolver import CountryResolver
from geoprice.geo.geolocation import GeolocationProvider, build_provider
from geoprice.geo.models import VisitorContext
from geoprice.pricing.pricing_engine import PricingEngine
from geoprice.services.checkout_service import CheckoutService
from geoprice.storage.settings_store import get_api_key, get_tables
from geoprice.utils.config_loader import AppConfig, load_config, load_env

logger = logging.getLogger(__name__)


# =============================================================================
# Dependency Injection
# =============================================================================


@lru_cache()
def get_app_config() -> AppConfig:
    """
    Get application config (cached).

    Clear cache with get_app_config.cache_clear() if config changes.
    """
    load_env()
    return load_config()


def get_client_ip(request: Request) -> str:
    """Extract the visitor's address (supports proxies)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return ""


def get_visitor(request: Request) -> VisitorContext:
    """Visitor context built by VisitorContextMiddleware."""
    ctx = getattr(request.state, "visitor", None)
    if ctx is None:
        # Route reached without the middleware (e.g. mounted elsewhere)
        ctx = VisitorContext(remote_addr=get_client_ip(request))
        request.state.visitor = ctx
    return ctx


# Shared provider and the (api_key, endpoint, timeout) it was built for
_provider: Optional[GeolocationProvider] = None
_provider_key: Optional[tuple] = None
_provider_lock = threading.Lock()


def get_provider(config: AppConfig) -> Optional[GeolocationProvider]:
    """
    Get the process-wide geolocation provider.

    One provider (and one HTTP session) serves every request. It is rebuilt,
    and the old session closed, when the credential or endpoint changes.
    """
    global _provider, _provider_key
    geo = config.geolocation
    api_key = get_api_key(geo.api_key_env)
    key = (api_key, geo.endpoint, geo.timeout_seconds)

    with _provider_lock:
        if key != _provider_key:
            if _provider is not None:
                _provider.close()
                logger.info("Geolocation provider replaced")
            _provider = build_provider(config, api_key)
            _provider_key = key
        return _provider


def close_provider() -> None:
    """Close the shared provider's connections (called on shutdown)."""
    global _provider, _provider_key
    with _provider_lock:
        if _provider is not None:
            _provider.close()
        _provider = None
        _provider_key = None


def build_engine(config: AppConfig) -> PricingEngine:
    """Build a pricing engine from the stored tables and shared provider."""
    resolver = CountryResolver(get_provider(config))
    return PricingEngine(
        tables=get_tables(),
        resolver=resolver,
        store_currency=config.store.default_currency,
        locale=config.store.locale,
    )


def get_engine(config: AppConfig = Depends(get_app_config)) -> PricingEngine:
    return build_engine(config)


def get_checkout_service(engine: PricingEngine = Depends(get_engine)) -> CheckoutService:
    return CheckoutService(engine)
