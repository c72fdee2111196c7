"""
FastAPI Dependencies

Wires the SQL repository and the analytics service into route handlers.
Tests override ``get_repository`` or ``get_analytics_service``.
"""

from fastapi import Depends

from crm_analytics.analytics import AnalyticsService
from crm_analytics.config import get_settings
from crm_analytics.database import SqlAnalyticsRepository, get_session_factory


def get_repository() -> SqlAnalyticsRepository:
    """Repository bound to the application's session factory."""
    return SqlAnalyticsRepository(get_session_factory())


def get_analytics_service(
    repository: SqlAnalyticsRepository = Depends(get_repository),
) -> AnalyticsService:
    """Analytics service using the configured policies and the wall clock."""
    return AnalyticsService(repository, get_settings().analytics)
