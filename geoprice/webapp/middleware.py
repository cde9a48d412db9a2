"""
FastAPI middleware for visitor country handling.

Builds the per-request VisitorContext from the selection cookie and client
address, and writes the cookie back when a new selection was made.
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from geoprice.geo.models import CountrySelection, VisitorContext
from geoprice.utils.config_loader import AppConfig
from geoprice.webapp.helpers import get_app_config, get_client_ip

logger = logging.getLogger(__name__)

SKIP_PATH_PREFIXES = ("/health", "/static")


class VisitorContextMiddleware(BaseHTTPMiddleware):
    """Attaches ``request.state.visitor`` and persists sticky selections."""

    def __init__(self, app, config_provider: Callable[[], AppConfig] = get_app_config):
        super().__init__(app)
        self.config_provider = config_provider

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with a visitor context."""
        path = request.url.path
        if path.startswith(SKIP_PATH_PREFIXES):
            return await call_next(request)

        selection_config = self.config_provider().selection
        max_age = timedelta(days=selection_config.max_age_days)

        selection = CountrySelection.from_cookie_value(
            request.cookies.get(selection_config.cookie_name),
            max_age=max_age,
        )
        ctx = VisitorContext(remote_addr=get_client_ip(request), selection=selection)
        request.state.visitor = ctx

        response = await call_next(request)

        if ctx.selection_changed and ctx.selection is not None:
            response.set_cookie(
                selection_config.cookie_name,
                ctx.selection.to_cookie_value(),
                max_age=int(max_age.total_seconds()),
                path="/",
                httponly=False,
                samesite="lax",
            )
            logger.debug(f"Persisted country selection {ctx.selection.country}")

        return response
