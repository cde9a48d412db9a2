"""
FastAPI application entry point for geoprice.

Run with:
    uvicorn geoprice.webapp.main:app --reload

Open: http://127.0.0.1:8000
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from geoprice import __version__
from geoprice.services.health_service import get_health_service
from geoprice.storage.settings_store import configure_store
from geoprice.utils.logging_config import setup_logging
from geoprice.webapp.exceptions import AppException
from geoprice.webapp.helpers import close_provider, get_app_config
from geoprice.webapp.middleware import VisitorContextMiddleware
from geoprice.webapp.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    config = get_app_config()

    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.log_file,
    )
    configure_store(config.paths.settings_file)

    logger.info("geoprice web app starting...")
    yield
    close_provider()
    logger.info("geoprice web app shutting down...")


app = FastAPI(
    title="geoprice",
    description="Country-based pricing, currency, shipping destination and styling",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def error_handling_middleware(request: Request, call_next):
    """Time every request and turn unhandled errors into a JSON 500."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {e}")
        response = JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": str(e) if app.debug else "An unexpected error occurred",
                "details": {"path": request.url.path},
            },
        )
    response.headers["X-Process-Time"] = f"{(time.perf_counter() - started) * 1000:.1f}ms"
    return response


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check() -> dict[str, Any]:
    """Detailed health check endpoint for monitoring."""
    report = get_health_service(get_app_config()).report()
    return report.to_dict()


@app.get("/health/simple")
async def simple_health_check() -> dict[str, Any]:
    """Simple health check for load balancers."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.add_middleware(VisitorContextMiddleware)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("geoprice.webapp.main:app", host="127.0.0.1", port=8000, reload=True)
