"""
Unit Tests - CSV Export
"""
from datetime import datetime

import pytest

from crm_analytics.analytics import (
    EXPORT_PROJECTIONS,
    ExportTypeError,
    export_csv,
    resolve_export_type,
)
from crm_analytics.database.models import EntityType


class TestResolveExportType:
    """Tests for resolve_export_type"""

    @pytest.mark.parametrize("export_type", ["customers", "leads", "orders", "campaigns"])
    def test_known_types(self, export_type):
        projection = resolve_export_type(export_type)

        assert projection.entity == EntityType(export_type)
        assert projection.filename == f"{export_type}_export.csv"
        assert "__v" in projection.exclude

    @pytest.mark.parametrize("export_type", [None, ""])
    def test_missing_type(self, export_type):
        with pytest.raises(ExportTypeError) as exc_info:
            resolve_export_type(export_type)
        assert exc_info.value.message == "Export type is required"
        assert exc_info.value.status_code == 400

    def test_invalid_type(self):
        with pytest.raises(ExportTypeError, match="Invalid export type"):
            resolve_export_type("products")

    def test_invalid_type_falls_back_under_default_policy(self):
        projection = resolve_export_type("products", on_unknown="default")
        assert projection.entity == EntityType.CUSTOMERS

    def test_missing_type_rejected_even_under_default_policy(self):
        with pytest.raises(ExportTypeError):
            resolve_export_type(None, on_unknown="default")

    def test_sensitive_fields_never_projected(self):
        assert "password" in EXPORT_PROJECTIONS["customers"].exclude
        assert "content" in EXPORT_PROJECTIONS["campaigns"].exclude
        for projection in EXPORT_PROJECTIONS.values():
            assert "password" not in projection.fields
            assert "__v" not in projection.fields


class TestExportCsv:
    """Tests for export_csv"""

    def test_customers_header(self):
        fields = EXPORT_PROJECTIONS["customers"].fields
        text = export_csv(fields, [])

        header = text.splitlines()[0]
        assert header == "_id,name,email,phone,company,address,tags,createdAt,updatedAt"
        assert len(header.split(",")) == 9

    def test_extra_fields_are_dropped(self):
        record = {
            "_id": "c-1",
            "name": "Ada",
            "password": "hunter2",
            "__v": 3,
        }
        text = export_csv(EXPORT_PROJECTIONS["customers"].fields, [record])

        assert "hunter2" not in text
        assert text.splitlines()[1].startswith("c-1,Ada,")

    def test_orders_projection(self):
        record = {
            "_id": "o-1",
            "customer": "c-9",
            "status": "delivered",
            "totalAmount": 120.5,
            "paymentStatus": "paid",
            "createdAt": datetime(2026, 10, 1, 9, 30),
            "updatedAt": datetime(2026, 10, 2, 9, 30),
            "items": [{"product": "p-1"}],
        }
        lines = export_csv(EXPORT_PROJECTIONS["orders"].fields, [record]).splitlines()

        assert lines[0] == "_id,customer,status,totalAmount,paymentStatus,createdAt,updatedAt"
        assert lines[1] == "o-1,c-9,delivered,120.5,paid,2026-10-01T09:30:00,2026-10-02T09:30:00"

    def test_values_with_separator_are_quoted(self):
        text = export_csv(["_id", "company"], [{"_id": "c-1", "company": "Acme, Inc."}])
        assert text.splitlines()[1] == 'c-1,"Acme, Inc."'

    def test_missing_values_are_empty(self):
        text = export_csv(["_id", "phone", "company"], [{"_id": "c-1", "company": "Acme"}])
        assert text.splitlines()[1] == "c-1,,Acme"

    def test_nested_values_are_json(self):
        text = export_csv(["_id", "tags"], [{"_id": "c-1", "tags": ["vip"]}])
        assert text.splitlines()[1] == 'c-1,"[""vip""]"'

    def test_row_count(self):
        records = [{"_id": f"c-{i}"} for i in range(5)]
        text = export_csv(["_id"], records)
        assert len(text.splitlines()) == 6
