"""
Application lifespan handler.
Manages startup and shutdown of the database schema, the outbox
processor and the Redis pool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from pos_api.models import Base
from pos_api.services.events.outbox_processor import start_outbox_processor, stop_outbox_processor
from pos_shared.config.logging import api_logger as logger, setup_logging
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import engine
from pos_shared.infrastructure.events import close_redis_pool


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

    logger.info(
        "Starting POS API",
        port=settings.api_port,
        env=settings.environment,
        tax_rate_policy=settings.tax_rate_policy,
    )

    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    if settings.outbox_processor_enabled:
        await start_outbox_processor()
        logger.info("Outbox processor started")

    yield

    logger.info("Shutting down POS API")

    if settings.outbox_processor_enabled:
        await stop_outbox_processor()
        logger.info("Outbox processor stopped")

    await close_redis_pool()
