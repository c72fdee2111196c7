"""
FastAPI Production Application

Main entry point for the CRM Analytics API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from crm_analytics.config import get_settings
from crm_analytics.config.logging import configure_logging
from crm_analytics.database.connection import init_database, close_database
from crm_analytics.serving.api import create_api_app
from crm_analytics.serving.cache import init_redis, close_redis

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    settings = get_settings()

    logger.info("Starting CRM Analytics API", environment=settings.app_env)

    await init_database(create_tables=settings.is_development)

    if settings.analytics.cache_enabled:
        try:
            await init_redis()
        except Exception as e:
            logger.warning("Redis init failed, analytics cache disabled for this process", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()
    await close_redis()


app = create_api_app(lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
