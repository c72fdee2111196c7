"""
CSV Export

Fixed field projections per exportable entity, serialized through polars.
Fields outside the projection never reach the output; sensitive and internal
fields are additionally stripped at query time via ``exclude``.
"""

from dataclasses import dataclass
from datetime import date, datetime
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

import polars as pl

from crm_analytics.analytics.errors import ExportTypeError
from crm_analytics.database.models import EntityType


@dataclass(frozen=True)
class ExportProjection:
    """Columns, query-time exclusions and download name for one export type"""
    entity: EntityType
    fields: Tuple[str, ...]
    exclude: Tuple[str, ...]

    @property
    def filename(self) -> str:
        return f"{self.entity.value}_export.csv"


EXPORT_PROJECTIONS: Dict[str, ExportProjection] = {
    "customers": ExportProjection(
        entity=EntityType.CUSTOMERS,
        fields=("_id", "name", "email", "phone", "company", "address", "tags", "createdAt", "updatedAt"),
        exclude=("__v", "password"),
    ),
    "leads": ExportProjection(
        entity=EntityType.LEADS,
        fields=("_id", "name", "email", "phone", "company", "source", "status", "value", "createdAt", "updatedAt"),
        exclude=("__v",),
    ),
    "orders": ExportProjection(
        entity=EntityType.ORDERS,
        fields=("_id", "customer", "status", "totalAmount", "paymentStatus", "createdAt", "updatedAt"),
        exclude=("__v",),
    ),
    "campaigns": ExportProjection(
        entity=EntityType.CAMPAIGNS,
        fields=("_id", "name", "type", "status", "scheduledDate", "sentDate", "createdAt", "updatedAt"),
        exclude=("__v", "content"),
    ),
}

DEFAULT_EXPORT_TYPE = "customers"


def resolve_export_type(export_type: Optional[str], on_unknown: str = "error") -> ExportProjection:
    """
    Look up the projection for an export type.

    A missing type is always rejected. An unrecognized one is rejected unless
    ``on_unknown`` is ``"default"``, in which case customers are exported.
    """
    if not export_type:
        raise ExportTypeError("Export type is required")

    projection = EXPORT_PROJECTIONS.get(export_type)
    if projection is None:
        if on_unknown != "default":
            raise ExportTypeError("Invalid export type")
        projection = EXPORT_PROJECTIONS[DEFAULT_EXPORT_TYPE]
    return projection


def _cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"))
    return str(value)


def export_csv(fields: Iterable[str], records: Iterable[Dict[str, Any]]) -> str:
    """
    Render records as CSV with exactly ``fields`` as columns, in order.

    Missing values are empty; nested values are JSON text; values containing
    the separator, a quote or a newline are quoted.
    """
    fields = list(fields)
    columns: Dict[str, List[Optional[str]]] = {name: [] for name in fields}
    for record in records:
        for name in fields:
            columns[name].append(_cell(record.get(name)))

    df = pl.DataFrame(columns, schema={name: pl.Utf8 for name in fields})
    return df.write_csv()
