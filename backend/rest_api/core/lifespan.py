"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from rest_api.models import Base
from rest_api.services.events.outbox_processor import (
    start_outbox_processor,
    stop_outbox_processor,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    # Validate production secrets before startup
    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )
        logger.warning("Running with insecure defaults (acceptable for development only)")

    logger.info("Starting REST API", env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if settings.outbox_processor_enabled:
        await start_outbox_processor()
    else:
        logger.info("Outbox processor disabled")

    yield

    logger.info("Shutting down REST API")

    if settings.outbox_processor_enabled:
        await stop_outbox_processor()
