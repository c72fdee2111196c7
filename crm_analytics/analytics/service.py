"""
Analytics Service

Assembles dashboard and per-entity analytics payloads from repository reads.
Every computation is a pure reduction over the fetched records and the
injected clock; independent reads are issued concurrently and any failure
fails the whole call.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import polars as pl
import structlog

from crm_analytics.analytics.bucketing import BucketSeries, bucket_series
from crm_analytics.analytics.export import export_csv, resolve_export_type
from crm_analytics.analytics.growth import calculate_growth, growth_windows
from crm_analytics.analytics.ranges import (
    DEFAULT_TIME_RANGE,
    Clock,
    ResolvedRange,
    resolve_time_range,
)
from crm_analytics.config import AnalyticsSettings
from crm_analytics.database.models import EntityType
from crm_analytics.database.repository import AnalyticsRepository

logger = structlog.get_logger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_PRODUCT = "Unknown Product"


def _amount(record: Dict[str, Any]) -> float:
    return float(record.get("totalAmount") or 0)


def _rate(numerator: Optional[int], denominator: Optional[int]) -> str:
    rate = (numerator or 0) / denominator * 100 if denominator else 0.0
    return f"{rate:.1f}"


def _distribution(rows: List[Tuple[Optional[str], int]], name: str) -> List[Dict[str, Any]]:
    """Relabel missing values as Unknown, merging the groups that collapse together."""
    counts: Dict[str, int] = {}
    for value, count in rows:
        label = value or UNKNOWN
        counts[label] = counts.get(label, 0) + count
    # Stable sort keeps the repository order among ties
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [{name: label, "count": count} for label, count in ordered]


class AnalyticsService:
    """
    CRM analytics over an ``AnalyticsRepository``.

    Args:
        repository: Query surface for customers, leads, orders and campaigns
        settings: Range/export policies and growth window length
        clock: Returns "now"; defaults to ``datetime.now``
    """

    def __init__(
        self,
        repository: AnalyticsRepository,
        settings: Optional[AnalyticsSettings] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.settings = settings or AnalyticsSettings()
        self.clock = clock or datetime.now

    def resolve(self, time_range: Optional[str]) -> ResolvedRange:
        return resolve_time_range(time_range, self.clock, self.settings.on_unknown_range)

    # =========================================================================
    # CHART SERIES
    # =========================================================================

    async def _revenue_series(self, time_range: Optional[str]) -> BucketSeries:
        resolved = self.resolve(time_range)
        orders = await self.repository.find_in_range(EntityType.ORDERS, resolved.window)
        return bucket_series(resolved, ((o["createdAt"], _amount(o)) for o in orders))

    async def _count_series(self, entity: EntityType, time_range: Optional[str]) -> BucketSeries:
        resolved = self.resolve(time_range)
        records = await self.repository.find_in_range(entity, resolved.window)
        return bucket_series(resolved, ((r["createdAt"], 1) for r in records))

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def dashboard_summary(self) -> Dict[str, Any]:
        """
        Growth of customers, leads, revenue and campaigns over the last
        window versus the one before it, plus 30-day revenue and lead charts.

        The growth windows are fixed and independent of any ``timeRange``.
        """
        windows = growth_windows(self.clock, self.settings.growth_window_days)
        repo = self.repository

        (
            current_customers,
            previous_customers,
            current_leads,
            previous_leads,
            current_orders,
            previous_orders,
            current_campaigns,
            previous_campaigns,
        ) = await asyncio.gather(
            repo.count(EntityType.CUSTOMERS, windows.current),
            repo.count(EntityType.CUSTOMERS, windows.previous),
            repo.count(EntityType.LEADS, windows.current),
            repo.count(EntityType.LEADS, windows.previous),
            repo.find_in_range(EntityType.ORDERS, windows.current),
            repo.find_in_range(EntityType.ORDERS, windows.previous),
            repo.count(EntityType.CAMPAIGNS, windows.current),
            repo.count(EntityType.CAMPAIGNS, windows.previous),
        )

        current_revenue = sum(_amount(o) for o in current_orders)
        previous_revenue = sum(_amount(o) for o in previous_orders)

        revenue_chart, leads_chart = await asyncio.gather(
            self._revenue_series(DEFAULT_TIME_RANGE),
            self._count_series(EntityType.LEADS, DEFAULT_TIME_RANGE),
        )

        summary = {
            "customerGrowth": calculate_growth(current_customers, previous_customers),
            "leadGrowth": calculate_growth(current_leads, previous_leads),
            "revenueGrowth": calculate_growth(current_revenue, previous_revenue),
            "campaignGrowth": calculate_growth(current_campaigns, previous_campaigns),
            "revenueChart": revenue_chart.to_chart(),
            "leadsChart": leads_chart.to_chart(),
        }
        logger.info(
            "Dashboard summary assembled",
            current_revenue=current_revenue,
            previous_revenue=previous_revenue,
            revenue_growth=summary["revenueGrowth"],
        )
        return summary

    # =========================================================================
    # PER-ENTITY ANALYTICS
    # =========================================================================

    async def revenue(self, time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Dict[str, list]:
        return (await self._revenue_series(time_range)).to_chart()

    async def customers(self, time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Dict[str, list]:
        return (await self._count_series(EntityType.CUSTOMERS, time_range)).to_chart()

    async def leads(self, time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Dict[str, Any]:
        """Lead chart for the range plus all-time source and status mixes."""
        series, sources, statuses = await asyncio.gather(
            self._count_series(EntityType.LEADS, time_range),
            self.repository.group_by_field(EntityType.LEADS, "source"),
            self.repository.group_by_field(EntityType.LEADS, "status"),
        )
        return {
            "chartData": series.to_chart(),
            "leadSources": _distribution(sources, "source"),
            "leadStatuses": _distribution(statuses, "status"),
        }

    async def campaigns(self, time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Dict[str, Any]:
        """Per-campaign delivery metrics for the range plus the all-time type mix."""
        resolved = self.resolve(time_range)
        campaigns, types = await asyncio.gather(
            self.repository.find_in_range(EntityType.CAMPAIGNS, resolved.window),
            self.repository.group_by_field(EntityType.CAMPAIGNS, "type"),
        )

        rows = []
        for campaign in campaigns:
            metrics = campaign.get("metrics") or {}
            rows.append({
                "id": campaign["_id"],
                "name": campaign.get("name"),
                "type": campaign.get("type"),
                "status": campaign.get("status"),
                "sent": metrics.get("sent") or 0,
                "delivered": metrics.get("delivered") or 0,
                "opened": metrics.get("opened") or 0,
                "clicked": metrics.get("clicked") or 0,
                "openRate": _rate(metrics.get("opened"), metrics.get("sent")),
                "clickRate": _rate(metrics.get("clicked"), metrics.get("opened")),
                "createdAt": campaign["createdAt"],
            })

        return {
            "campaigns": rows,
            "campaignTypes": _distribution(types, "type"),
        }

    async def products(self, time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Dict[str, Any]:
        """
        Product sales from order line items in the range, best sellers first.

        ``orderCount`` counts line items, so a product listed twice on one
        order counts twice.
        """
        resolved = self.resolve(time_range)
        orders = await self.repository.find_in_range(EntityType.ORDERS, resolved.window)

        lines = [
            {
                "id": str(item.get("product") or UNKNOWN),
                "name": item.get("productName") or UNKNOWN_PRODUCT,
                "quantity": int(item.get("quantity") or 0),
                "price": float(item.get("price") or 0),
            }
            for order in orders
            for item in order.get("items") or []
        ]
        if not lines:
            return {"products": [], "totalProducts": 0, "totalSales": 0}

        df = pl.DataFrame(
            lines,
            schema={"id": pl.Utf8, "name": pl.Utf8, "quantity": pl.Int64, "price": pl.Float64},
        )
        summary = (
            df.with_columns((pl.col("quantity") * pl.col("price")).alias("totalAmount"))
            .group_by("id", maintain_order=True)
            .agg([
                pl.col("name").first(),
                pl.col("quantity").sum(),
                pl.col("totalAmount").sum(),
                pl.col("quantity").count().alias("orderCount"),
            ])
            .sort("totalAmount", descending=True, maintain_order=True)
        )
        products = summary.to_dicts()

        return {
            "products": products,
            "totalProducts": len(products),
            "totalSales": float(summary["totalAmount"].sum()),
        }

    # =========================================================================
    # EXPORT
    # =========================================================================

    async def export(self, export_type: Optional[str], time_range: Optional[str] = DEFAULT_TIME_RANGE) -> Tuple[str, str]:
        """
        CSV for one entity's records in the range.

        Returns:
            ``(filename, csv_text)``
        """
        projection = resolve_export_type(export_type, self.settings.on_unknown_export_type)
        resolved = self.resolve(time_range)
        records = await self.repository.find_in_range(
            projection.entity, resolved.window, exclude=projection.exclude
        )
        logger.info("Exporting records", type=projection.entity.value, rows=len(records))
        return projection.filename, export_csv(projection.fields, records)
