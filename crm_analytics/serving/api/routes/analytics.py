"""
Analytics API Endpoints

Dashboard summary, per-entity charts and CSV export. Every JSON body is
wrapped as ``{"success": true, "data": ...}``; failures are
``{"success": false, "message": ..., "error"?: ...}``.
"""

from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
import structlog

from crm_analytics.analytics import AnalyticsError, AnalyticsService
from crm_analytics.analytics.ranges import DEFAULT_TIME_RANGE
from crm_analytics.config import get_settings
from crm_analytics.serving.api.dependencies import get_analytics_service
from crm_analytics.serving.cache import analytics_cache

router = APIRouter()
logger = structlog.get_logger(__name__)

TimeRangeQuery = Query(DEFAULT_TIME_RANGE, alias="timeRange", description="week, month, quarter or year")


def error_response(context: str, exc: Exception) -> JSONResponse:
    """Translate an exception into the failure envelope, logging it first."""
    if isinstance(exc, AnalyticsError) and exc.status_code < 500:
        logger.warning(context, reason=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    logger.error(context, error=str(exc), error_type=type(exc).__name__, exc_info=exc)
    content = {"success": False, "message": "Server error"}
    if get_settings().analytics.expose_errors:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


async def _respond(
    context: str,
    compute: Callable[[], Awaitable[Any]],
    cache_key: Optional[str] = None,
):
    async def encoded() -> Any:
        return jsonable_encoder(await compute())

    try:
        settings = get_settings().analytics
        if cache_key and settings.cache_enabled:
            data = await analytics_cache.get_or_set(cache_key, encoded, ttl=settings.cache_ttl_seconds)
        else:
            data = await encoded()
    except Exception as e:
        return error_response(context, e)
    return {"success": True, "data": data}


def _cache_key(service: AnalyticsService, name: str, time_range: str) -> str:
    return f"{name}:{time_range}:{service.clock().date().isoformat()}"


@router.get("/dashboard-summary")
async def get_dashboard_summary(
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Growth percentages and 30-day trend charts for the dashboard."""
    logger.info("get_dashboard_summary called")
    return await _respond("Error getting dashboard summary", service.dashboard_summary)


@router.get("/revenue")
async def get_revenue_analytics(
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue per bucket."""
    logger.info("get_revenue_analytics called", time_range=time_range)
    return await _respond(
        "Error getting revenue analytics",
        lambda: service.revenue(time_range),
        _cache_key(service, "revenue", time_range),
    )


@router.get("/customers")
async def get_customer_analytics(
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """New customers per bucket."""
    logger.info("get_customer_analytics called", time_range=time_range)
    return await _respond(
        "Error getting customer analytics",
        lambda: service.customers(time_range),
        _cache_key(service, "customers", time_range),
    )


@router.get("/leads")
async def get_lead_analytics(
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """New leads per bucket with source and status distributions."""
    logger.info("get_lead_analytics called", time_range=time_range)
    return await _respond(
        "Error getting lead analytics",
        lambda: service.leads(time_range),
        _cache_key(service, "leads", time_range),
    )


@router.get("/campaigns")
async def get_campaign_analytics(
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Campaign delivery metrics and type distribution."""
    logger.info("get_campaign_analytics called", time_range=time_range)
    return await _respond(
        "Error getting campaign analytics",
        lambda: service.campaigns(time_range),
        _cache_key(service, "campaigns", time_range),
    )


@router.get("/products")
async def get_product_analytics(
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Product sales from order line items."""
    logger.info("get_product_analytics called", time_range=time_range)
    return await _respond(
        "Error getting product analytics",
        lambda: service.products(time_range),
        _cache_key(service, "products", time_range),
    )


@router.get("/export")
async def export_analytics_data(
    export_type: Optional[str] = Query(None, alias="type", description="customers, leads, orders or campaigns"),
    time_range: str = TimeRangeQuery,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Download one entity's records in the range as CSV."""
    logger.info("export_analytics_data called", type=export_type, time_range=time_range)
    try:
        filename, csv_text = await service.export(export_type, time_range)
    except Exception as e:
        return error_response("Error exporting analytics data", e)

    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
