"""
Application lifespan: startup checks and shutdown cleanup.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from rest_api.models import Base
from shared.config.logging import rest_api_logger as logger, setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine
from shared.infrastructure.events import close_redis_pool


def _check_configuration() -> None:
    """Log configuration problems; refuse to start on them in production."""
    errors = settings.validate_production_settings()
    for error in errors:
        logger.error("Configuration error", error=error)
    if errors and settings.environment == "production":
        raise RuntimeError("Invalid production configuration: " + "; ".join(errors))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    _check_configuration()

    Base.metadata.create_all(bind=engine)
    logger.info(
        "REST API started",
        env=settings.environment,
        port=settings.rest_api_port,
        tax_enabled=settings.tax_enabled,
        tax_rates={r.name: str(r.rate) for r in settings.tax_rates},
        session_window_hours=settings.session_window_hours,
        notifications_enabled=settings.notifications_enabled,
    )

    yield

    close_redis_pool()
    logger.info("REST API stopped")
