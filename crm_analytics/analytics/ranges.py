"""
Time Range Resolution

Maps a symbolic ``timeRange`` (week, month, quarter, year) to a concrete
window, a bucket interval and a display label format:

    week     last 7 days      daily    "Mon"
    month    last 30 days     daily    "Jan 5"
    quarter  last 3 months    weekly   "Jan 5"
    year     last 12 months   monthly  "Jan 2024"

All dates are naive local wall-clock time. "Now" comes from an injectable
clock so results are deterministic under test.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from crm_analytics.analytics.errors import InvalidTimeRangeError
from crm_analytics.database.repository import TimeWindow

Clock = Callable[[], datetime]

DEFAULT_TIME_RANGE = "month"


class BucketInterval(str, Enum):
    """Width of one chart bucket"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class RangePolicy:
    """How far back a range reaches and how it is bucketed"""
    interval: BucketInterval
    label_format: str
    days: int = 0
    months: int = 0


RANGE_POLICIES = {
    "week": RangePolicy(BucketInterval.DAY, "{0:%a}", days=7),
    "month": RangePolicy(BucketInterval.DAY, "{0:%b} {0.day}", days=30),
    "quarter": RangePolicy(BucketInterval.WEEK, "{0:%b} {0.day}", months=3),
    "year": RangePolicy(BucketInterval.MONTH, "{0:%b %Y}", months=12),
}


@dataclass(frozen=True)
class ResolvedRange:
    """Concrete window for a range key"""
    key: str
    start_date: datetime
    end_date: datetime
    interval: BucketInterval
    label_format: str

    def format_label(self, moment: datetime) -> str:
        return self.label_format.format(moment)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start_date, self.end_date)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), datetime.min.time())


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), datetime.max.time())


def resolve_time_range(
    range_key: Optional[str],
    clock: Optional[Clock] = None,
    on_unknown: str = "default",
) -> ResolvedRange:
    """
    Resolve a range key against the current time.

    Args:
        range_key: One of ``week``, ``month``, ``quarter``, ``year``
        clock: Returns "now"; defaults to ``datetime.now``
        on_unknown: ``"default"`` resolves unrecognized keys as ``month``,
            ``"error"`` raises ``InvalidTimeRangeError``

    Returns:
        ResolvedRange with start floored to 00:00 and end raised to the
        last instant of today, so a same-day query covers the whole day
    """
    policy = RANGE_POLICIES.get(range_key or "")
    key = range_key
    if policy is None:
        if on_unknown == "error":
            raise InvalidTimeRangeError(f"Invalid time range: {range_key}")
        key = DEFAULT_TIME_RANGE
        policy = RANGE_POLICIES[DEFAULT_TIME_RANGE]

    now = (clock or datetime.now)()
    if policy.months:
        start = add_months(now, -policy.months)
    else:
        start = now - timedelta(days=policy.days)

    return ResolvedRange(
        key=key,
        start_date=start_of_day(start),
        end_date=end_of_day(now),
        interval=policy.interval,
        label_format=policy.label_format,
    )
