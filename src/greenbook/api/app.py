"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from greenbook.api.errors import greenbook_error_handler
from greenbook.api.routes import health, revenue
from greenbook.core.config import AppSettings
from greenbook.core.exceptions import GreenbookError
from greenbook.core.logging import get_logger, setup_logging
from greenbook.persistence import create_persistence
from greenbook.revenue.engine import RevenueEngine

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings: AppSettings = app.state.settings
    setup_logging(settings.log_level)
    if app.state.engine is None:
        app.state.engine = RevenueEngine(settings=settings, **create_persistence(settings)._asdict())
    logger.info("greenbook started (env=%s, store=%s, lock=%s)",
                settings.environment, settings.store_backend, settings.lock.backend)
    yield


def create_app(settings: AppSettings | None = None, engine: RevenueEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Greenbook Annual Contract Revenue",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.engine = engine
    app.include_router(health.router)
    app.include_router(revenue.router)
    app.add_exception_handler(GreenbookError, greenbook_error_handler)
    return app
