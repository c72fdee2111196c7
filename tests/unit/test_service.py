"""
Unit Tests - Analytics Service
"""

import pytest

from crm_analytics.analytics import AnalyticsService, ExportTypeError, InvalidTimeRangeError
from crm_analytics.config import AnalyticsSettings
from crm_analytics.database.models import EntityType


@pytest.fixture
def service(repository, clock):
    return AnalyticsService(repository, AnalyticsSettings(), clock)


class TestDashboardSummary:
    """Tests for AnalyticsService.dashboard_summary"""

    async def test_growth_per_entity(self, repository, service, days_ago):
        for _ in range(3):
            repository.add(EntityType.CUSTOMERS, createdAt=days_ago(5))
        for _ in range(2):
            repository.add(EntityType.CUSTOMERS, createdAt=days_ago(40))
        repository.add(EntityType.LEADS, createdAt=days_ago(10))
        repository.add(EntityType.ORDERS, createdAt=days_ago(3), totalAmount=150)
        repository.add(EntityType.ORDERS, createdAt=days_ago(45), totalAmount=100)
        repository.add(EntityType.CAMPAIGNS, createdAt=days_ago(50))

        summary = await service.dashboard_summary()

        assert summary["customerGrowth"] == 50
        assert summary["leadGrowth"] == 100
        assert summary["revenueGrowth"] == 50
        assert summary["campaignGrowth"] == -100

    async def test_empty_store(self, service):
        summary = await service.dashboard_summary()

        assert summary["customerGrowth"] == 0
        assert summary["leadGrowth"] == 0
        assert summary["revenueGrowth"] == 0
        assert summary["campaignGrowth"] == 0
        assert len(summary["revenueChart"]["labels"]) == 31
        assert summary["revenueChart"]["data"] == [0] * 31
        assert summary["leadsChart"]["data"] == [0] * 31

    async def test_missing_amounts_count_as_zero(self, repository, service, days_ago):
        repository.add(EntityType.ORDERS, createdAt=days_ago(1), totalAmount=None)
        repository.add(EntityType.ORDERS, createdAt=days_ago(2), totalAmount=80)

        summary = await service.dashboard_summary()

        assert summary["revenueGrowth"] == 100
        assert sum(summary["revenueChart"]["data"]) == 80

    async def test_records_older_than_both_windows_ignored(self, repository, service, days_ago):
        repository.add(EntityType.CUSTOMERS, createdAt=days_ago(90))
        summary = await service.dashboard_summary()
        assert summary["customerGrowth"] == 0

    async def test_idempotent_for_fixed_clock(self, repository, service, days_ago):
        repository.add(EntityType.LEADS, createdAt=days_ago(12))
        repository.add(EntityType.ORDERS, createdAt=days_ago(4), totalAmount=42.5)

        assert await service.dashboard_summary() == await service.dashboard_summary()

    async def test_configured_window_length(self, repository, clock, days_ago):
        repository.add(EntityType.CUSTOMERS, createdAt=days_ago(3))
        repository.add(EntityType.CUSTOMERS, createdAt=days_ago(10))
        service = AnalyticsService(repository, AnalyticsSettings(growth_window_days=7), clock)

        summary = await service.dashboard_summary()

        assert summary["customerGrowth"] == 0

    async def test_any_read_failure_fails_the_call(self, clock, failing_repository):
        service = AnalyticsService(failing_repository, AnalyticsSettings(), clock)
        with pytest.raises(ConnectionError):
            await service.dashboard_summary()


class TestSeries:
    """Tests for the revenue and customer charts"""

    async def test_revenue_week(self, repository, service, days_ago, fixed_now):
        repository.add(EntityType.ORDERS, createdAt=fixed_now.replace(hour=9), totalAmount=200)
        repository.add(EntityType.ORDERS, createdAt=days_ago(3), totalAmount=25.5)

        chart = await service.revenue("week")

        assert chart["labels"][-1] == "Sun"
        assert chart["data"][-1] == 200
        assert sum(chart["data"]) == 225.5

    async def test_customers_unknown_range_is_month(self, repository, service, days_ago):
        repository.add(EntityType.CUSTOMERS, createdAt=days_ago(2))

        assert await service.customers("bogus") == await service.customers("month")

    async def test_unknown_range_rejected_when_configured(self, repository, clock):
        service = AnalyticsService(repository, AnalyticsSettings(on_unknown_range="error"), clock)
        with pytest.raises(InvalidTimeRangeError):
            await service.customers("decade")


class TestLeads:
    """Tests for AnalyticsService.leads"""

    async def test_distributions(self, repository, service, days_ago):
        repository.add(EntityType.LEADS, createdAt=days_ago(1), source="website", status="new")
        repository.add(EntityType.LEADS, createdAt=days_ago(2), source="website", status="won")
        repository.add(EntityType.LEADS, createdAt=days_ago(400), source=None, status="new")

        result = await service.leads("month")

        assert sum(result["chartData"]["data"]) == 2
        assert result["leadSources"] == [
            {"source": "website", "count": 2},
            {"source": "Unknown", "count": 1},
        ]
        assert result["leadStatuses"] == [
            {"status": "new", "count": 2},
            {"status": "won", "count": 1},
        ]

    async def test_missing_and_blank_sources_merge_into_one_group(self, repository, service, days_ago):
        for source in ["website", "website", None, "", "referral"]:
            repository.add(EntityType.LEADS, createdAt=days_ago(1), source=source, status="new")

        result = await service.leads("month")

        assert result["leadSources"] == [
            {"source": "website", "count": 2},
            {"source": "Unknown", "count": 2},
            {"source": "referral", "count": 1},
        ]


class TestCampaigns:
    """Tests for AnalyticsService.campaigns"""

    async def test_rates(self, repository, service, days_ago):
        repository.add(
            EntityType.CAMPAIGNS,
            createdAt=days_ago(3),
            name="Fall Promo",
            type="email",
            status="sent",
            metrics={"sent": 1000, "delivered": 980, "opened": 123, "clicked": 10},
        )

        result = await service.campaigns("month")
        row = result["campaigns"][0]

        assert row["id"] == "campaigns-1"
        assert row["openRate"] == "12.3"
        assert row["clickRate"] == "8.1"
        assert row["delivered"] == 980
        assert result["campaignTypes"] == [{"type": "email", "count": 1}]

    async def test_zero_denominators(self, repository, service, days_ago):
        repository.add(EntityType.CAMPAIGNS, createdAt=days_ago(3), name="Draft", type="sms", metrics=None)

        row = (await service.campaigns("month"))["campaigns"][0]

        assert row["sent"] == 0
        assert row["openRate"] == "0.0"
        assert row["clickRate"] == "0.0"

    async def test_range_filters_rows_not_types(self, repository, service, days_ago):
        repository.add(EntityType.CAMPAIGNS, createdAt=days_ago(200), type="social")

        result = await service.campaigns("week")

        assert result["campaigns"] == []
        assert result["campaignTypes"] == [{"type": "social", "count": 1}]


class TestProducts:
    """Tests for AnalyticsService.products"""

    async def test_aggregates_line_items(self, repository, service, days_ago):
        repository.add(EntityType.ORDERS, createdAt=days_ago(1), items=[
            {"product": "p-1", "productName": "Starter Plan", "quantity": 2, "price": 29.0},
            {"product": "p-2", "productName": "Growth Plan", "quantity": 1, "price": 79.0},
        ])
        repository.add(EntityType.ORDERS, createdAt=days_ago(2), items=[
            {"product": "p-1", "productName": "Starter Plan", "quantity": 3, "price": 29.0},
        ])

        result = await service.products("month")

        assert result["totalProducts"] == 2
        assert result["totalSales"] == 224.0
        first, second = result["products"]
        assert first == {
            "id": "p-1",
            "name": "Starter Plan",
            "quantity": 5,
            "totalAmount": 145.0,
            "orderCount": 2,
        }
        assert second["id"] == "p-2"
        assert second["orderCount"] == 1

    async def test_no_orders(self, service):
        assert await service.products("month") == {"products": [], "totalProducts": 0, "totalSales": 0}

    async def test_missing_product_name(self, repository, service, days_ago):
        repository.add(EntityType.ORDERS, createdAt=days_ago(1), items=[
            {"product": "p-9", "quantity": 1, "price": 5},
        ])

        result = await service.products("month")

        assert result["products"][0]["name"] == "Unknown Product"


class TestExport:
    """Tests for AnalyticsService.export"""

    async def test_customers_export_strips_sensitive_fields(self, repository, service, days_ago):
        repository.add(
            EntityType.CUSTOMERS,
            createdAt=days_ago(2),
            updatedAt=days_ago(2),
            name="Ada Lovelace",
            email="ada@example.com",
            password="hunter2",
        )

        filename, text = await service.export("customers", "month")

        assert filename == "customers_export.csv"
        assert "hunter2" not in text
        assert len(text.splitlines()) == 2

    async def test_export_respects_range(self, repository, service, days_ago):
        repository.add(EntityType.LEADS, createdAt=days_ago(2), name="Recent")
        repository.add(EntityType.LEADS, createdAt=days_ago(100), name="Old")

        _, text = await service.export("leads", "month")

        assert "Recent" in text
        assert "Old" not in text

    async def test_invalid_type(self, service):
        with pytest.raises(ExportTypeError):
            await service.export("widgets", "month")
