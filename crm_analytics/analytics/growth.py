"""
Growth Calculation

Period-over-period growth as a whole-number percentage, and the fixed
comparison windows used by the dashboard summary.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from crm_analytics.analytics.ranges import Clock
from crm_analytics.database.repository import TimeWindow

Number = Union[int, float, Decimal]


def calculate_growth(current: Number, previous: Number) -> int:
    """
    Signed percentage change from ``previous`` to ``current``.

    A zero baseline yields 100 when there is anything now and 0 otherwise.
    Halves round away from zero.

    >>> calculate_growth(150, 100)
    50
    >>> calculate_growth(5, 0)
    100
    """
    if previous == 0:
        return 100 if current > 0 else 0

    current_d = Decimal(str(current))
    previous_d = Decimal(str(previous))
    ratio = (current_d - previous_d) / previous_d * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class GrowthWindows:
    """Current window and the equal-length window right before it"""
    current: TimeWindow
    previous: TimeWindow


def growth_windows(clock: Optional[Clock] = None, days: int = 30) -> GrowthWindows:
    """
    Windows ending now: ``[now - days, now]`` and ``[now - 2*days, now - days]``.

    They are not aligned to day boundaries and share their boundary instant.
    """
    now = (clock or datetime.now)()
    current_start = now - timedelta(days=days)
    previous_start = now - timedelta(days=2 * days)
    return GrowthWindows(
        current=TimeWindow(current_start, now),
        previous=TimeWindow(previous_start, current_start),
    )
