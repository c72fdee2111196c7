"""
Series Bucketing

Turns timestamped values into a zero-filled chart series for a resolved
range. Buckets are generated by walking the range at its interval; records
are placed by flooring their timestamp onto the same grid and only then
converted to a display label.

Labels are unique within a series. Two buckets that format to the same
label (the first and last day of an 8-day ``week`` walk are both "Sun")
collapse into one slot, kept at the later position.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from crm_analytics.analytics.ranges import (
    BucketInterval,
    ResolvedRange,
    add_months,
    start_of_day,
)

Number = Union[int, float]


@dataclass
class BucketSeries:
    """Index-aligned chart labels and values"""
    labels: List[str] = field(default_factory=list)
    values: List[Number] = field(default_factory=list)

    def to_chart(self) -> Dict[str, list]:
        return {"labels": list(self.labels), "data": list(self.values)}


def _step(start: datetime, interval: BucketInterval, steps: int) -> datetime:
    if interval == BucketInterval.MONTH:
        return add_months(start, steps)
    if interval == BucketInterval.WEEK:
        return start + timedelta(days=7 * steps)
    return start + timedelta(days=steps)


def iter_bucket_starts(resolved: ResolvedRange) -> Iterator[datetime]:
    """Bucket start instants from ``start_date`` while ``<= end_date``."""
    steps = 0
    while True:
        cursor = _step(resolved.start_date, resolved.interval, steps)
        if cursor > resolved.end_date:
            return
        yield cursor
        steps += 1


def bucket_key(resolved: ResolvedRange, timestamp: datetime) -> Optional[datetime]:
    """Floor a timestamp onto the range's bucket grid, or None if outside."""
    if timestamp < resolved.start_date or timestamp > resolved.end_date:
        return None
    if resolved.interval == BucketInterval.MONTH:
        return datetime(timestamp.year, timestamp.month, 1)
    if resolved.interval == BucketInterval.WEEK:
        weeks = (timestamp - resolved.start_date).days // 7
        return resolved.start_date + timedelta(days=7 * weeks)
    return start_of_day(timestamp)


def bucket_series(
    resolved: ResolvedRange,
    records: Iterable[Tuple[datetime, Optional[Number]]],
) -> BucketSeries:
    """
    Sum ``(timestamp, value)`` pairs into the range's buckets.

    Use a value of 1 per record for counts. ``None`` values add nothing;
    records that fall outside the range are dropped.
    """
    slots: Dict[str, Number] = {}
    for start in iter_bucket_starts(resolved):
        label = resolved.format_label(start)
        slots.pop(label, None)
        slots[label] = 0

    for timestamp, value in records:
        key = bucket_key(resolved, timestamp)
        if key is None:
            continue
        label = resolved.format_label(key)
        if label in slots:
            slots[label] += value or 0

    return BucketSeries(labels=list(slots.keys()), values=list(slots.values()))
