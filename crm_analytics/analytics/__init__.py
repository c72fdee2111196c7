"""
Analytics Module

Time range resolution, chart bucketing, growth comparison, CSV export and
the service that assembles them into API payloads.
"""
from .bucketing import BucketSeries, bucket_series
from .errors import AnalyticsError, ExportTypeError, InvalidTimeRangeError
from .export import EXPORT_PROJECTIONS, export_csv, resolve_export_type
from .growth import calculate_growth, growth_windows
from .ranges import BucketInterval, ResolvedRange, resolve_time_range
from .service import AnalyticsService

__all__ = [
    "BucketSeries",
    "bucket_series",
    "AnalyticsError",
    "ExportTypeError",
    "InvalidTimeRangeError",
    "EXPORT_PROJECTIONS",
    "export_csv",
    "resolve_export_type",
    "calculate_growth",
    "growth_windows",
    "BucketInterval",
    "ResolvedRange",
    "resolve_time_range",
    "AnalyticsService",
]
