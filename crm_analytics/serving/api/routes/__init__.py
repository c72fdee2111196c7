"""
API Routes Module
"""
from .health import router as health_router
from .analytics import router as analytics_router
from .records import customers_router, leads_router, orders_router, campaigns_router

__all__ = [
    "health_router",
    "analytics_router",
    "customers_router",
    "leads_router",
    "orders_router",
    "campaigns_router",
]
