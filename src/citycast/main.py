"""Application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from citycast import __version__
from citycast.api.dependencies import close_singletons
from citycast.api.routes import api_router, health_router
from citycast.config import get_settings
from citycast.middleware.logging import LoggingMiddleware, configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and release cache connections on shutdown."""
    settings = get_settings()
    logger.info(
        "Starting Citycast",
        version=__version__,
        cache_backend=settings.cache_backend,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    yield
    await close_singletons()
    logger.info("Citycast stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Citycast Weather API",
        description="Cached, normalized Open-Meteo forecasts per city",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router)
    app.include_router(health_router)

    # Prometheus metrics
    app.mount("/metrics", make_asgi_app())

    return app


# Create app instance for ASGI servers
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "citycast.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
