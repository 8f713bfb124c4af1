"""Trailing-window P&L over daily buckets.

Windows are calendar-based: the point for day ``t`` sums days
``(t - window_days, t]``, so the current day is included and gaps in the
sparse daily series count as zero-P&L days. This differs from summing the
previous ``window_days`` bucket entries, which would exclude the current day
and stretch across gaps. A point is only emitted once history covers the
full window.
"""

from bisect import bisect_right
from dataclasses import dataclass
from decimal import Decimal
from itertools import accumulate

from stoic.aggregation.buckets import Bucket
from stoic.models import DAY_MS, ZERO


@dataclass(frozen=True)
class RollingPoint:
    """Sum of daily P&L over the window ending on ``timestamp_ms``'s day."""

    timestamp_ms: int
    window_pnl_btc: Decimal

    def to_dict(self) -> dict:
        return {"timestamp_ms": self.timestamp_ms, "window_pnl_btc": str(self.window_pnl_btc)}


def rolling_window_pnl(daily: list[Bucket], window_days: int = 30) -> list[RollingPoint]:
    """Compute trailing ``window_days`` P&L for each fully covered day.

    Args:
        daily: Daily buckets sorted by period start.
        window_days: Window length in calendar days (must be positive).

    Returns:
        RollingPoint per daily bucket at least ``window_days - 1`` days after
        the first bucket. Empty when history is shorter than the window.
    """
    if not daily or window_days <= 0:
        return []

    starts = [b.period_start_ms for b in daily]
    prefix = [ZERO, *accumulate(b.sum_btc for b in daily)]
    window_ms = window_days * DAY_MS
    first = starts[0]

    points: list[RollingPoint] = []
    for i, start in enumerate(starts):
        if start - first < window_ms - DAY_MS:
            continue
        # buckets strictly after (start - window) up to and including i
        lo = bisect_right(starts, start - window_ms)
        points.append(RollingPoint(timestamp_ms=start, window_pnl_btc=prefix[i + 1] - prefix[lo]))
    return points
