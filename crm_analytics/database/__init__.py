"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_session_factory
from .models import Base, EntityType
from .repository import AnalyticsRepository, SqlAnalyticsRepository, TimeWindow

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_session_factory",
    "Base",
    "EntityType",
    "AnalyticsRepository",
    "SqlAnalyticsRepository",
    "TimeWindow",
]
