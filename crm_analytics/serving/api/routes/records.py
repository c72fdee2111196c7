"""
Record API Endpoints

Read-only listing and lookup for customers, leads, orders and campaigns.
One router per entity, built from the same template; filters are the
entity's categorical columns.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import structlog

from crm_analytics.database import EntityType, SqlAnalyticsRepository
from crm_analytics.serving.api.dependencies import get_repository
from crm_analytics.serving.api.routes.analytics import error_response

logger = structlog.get_logger(__name__)


def build_record_router(entity: EntityType, label: str, filters: Dict[str, str]) -> APIRouter:
    """
    Build list/detail routes for one entity.

    Args:
        entity: Entity to serve
        label: Singular display name used in messages ("Customer")
        filters: Query parameter name -> column name
    """
    router = APIRouter()

    @router.get("")
    async def list_records(
        page: int = Query(1, ge=1),
        page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
        status: Optional[str] = None,
        source: Optional[str] = None,
        type: Optional[str] = None,
        payment_status: Optional[str] = Query(None, alias="paymentStatus"),
        repository: SqlAnalyticsRepository = Depends(get_repository),
    ):
        supplied = {"status": status, "source": source, "type": type, "paymentStatus": payment_status}
        column_filters = {
            column: supplied[param] for param, column in filters.items() if supplied.get(param)
        }
        logger.info("list_records called", entity=entity.value, page=page, page_size=page_size, filters=column_filters)

        try:
            records, total = await repository.list_records(entity, page, page_size, column_filters)
        except Exception as e:
            return error_response(f"Error listing {entity.value}", e)

        return {
            "success": True,
            "count": len(records),
            "total": total,
            "page": page,
            "pageSize": page_size,
            "totalPages": (total + page_size - 1) // page_size,
            "data": jsonable_encoder(records),
        }

    @router.get("/{record_id}")
    async def get_record(
        record_id: str,
        repository: SqlAnalyticsRepository = Depends(get_repository),
    ):
        try:
            record = await repository.get_record(entity, record_id)
        except Exception as e:
            return error_response(f"Error getting {label.lower()}", e)

        if record is None:
            return JSONResponse(status_code=404, content={"success": False, "message": f"{label} not found"})
        return {"success": True, "data": jsonable_encoder(record)}

    return router


customers_router = build_record_router(EntityType.CUSTOMERS, "Customer", {"status": "status"})
leads_router = build_record_router(EntityType.LEADS, "Lead", {"source": "source", "status": "status"})
orders_router = build_record_router(
    EntityType.ORDERS, "Order", {"status": "status", "paymentStatus": "payment_status"}
)
campaigns_router = build_record_router(EntityType.CAMPAIGNS, "Campaign", {"type": "type", "status": "status"})
