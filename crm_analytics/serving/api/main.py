"""
FastAPI Application Factory

Creates and configures the API application: middleware, routers and the
failure envelope for requests that never reach a handler.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from crm_analytics.config import get_settings
from crm_analytics.serving.api.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from crm_analytics.serving.api.routes import (
    health_router,
    analytics_router,
    customers_router,
    leads_router,
    orders_router,
    campaigns_router,
)

logger = structlog.get_logger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render query validation failures in the API's failure envelope."""
    logger.warning("Request validation failed", errors=exc.errors())
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "error": str(exc.errors())},
    )


def create_api_app(lifespan: Optional[Any] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Startup/shutdown context manager (omitted in tests)

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="CRM Analytics API",
        description="Dashboard growth metrics, analytics charts and CSV exports for the CRM",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    # Added last so it wraps everything and binds the request id first
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(customers_router, prefix="/api/v1/customers", tags=["Customers"])
    app.include_router(leads_router, prefix="/api/v1/leads", tags=["Leads"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(campaigns_router, prefix="/api/v1/campaigns", tags=["Campaigns"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "CRM Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
        }

    return app
