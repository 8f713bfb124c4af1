"""Time-bucketed BTC sums with cumulative totals.

Buckets are sparse: a period exists only if at least one record falls in it.
Consumers must tolerate gaps between consecutive buckets.

Bucketing rules:
  - day:   floor(t / DAY_MS) * DAY_MS (UTC days)
  - week:  anchor + floor((t - anchor) / WEEK_MS) * WEEK_MS
  - month: calendar (year, month) in the report timezone

Sums are Decimal additions in the default 28-digit context, so cumulative
totals carry no binary floating-point error; inputs that are already
rounded quotients (converted amounts) keep that rounding.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from itertools import accumulate, groupby

from stoic.models import DAY_MS, WEEK_MS, ZERO, NormalizedRecord


class Granularity(str, Enum):
    """Bucket length."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class Bucket:
    """Aggregated BTC amount for one period.

    Attributes:
        granularity: Bucket length.
        period_key: "YYYY-MM-DD" for days and weeks (UTC start date),
            "YYYY-MM" for months.
        period_start_ms: Period start timestamp in milliseconds.
        sum_btc: Sum of record amounts in the period.
        cumulative_btc: Running total through this bucket.
        record_count: Number of contributing records.
    """

    granularity: Granularity
    period_key: str
    period_start_ms: int
    sum_btc: Decimal
    cumulative_btc: Decimal
    record_count: int

    def to_dict(self) -> dict:
        return {
            "granularity": self.granularity.value,
            "period_key": self.period_key,
            "period_start_ms": self.period_start_ms,
            "sum_btc": str(self.sum_btc),
            "cumulative_btc": str(self.cumulative_btc),
            "record_count": self.record_count,
        }


def _utc_date_key(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def day_start(timestamp_ms: int) -> int:
    """Start of the UTC day containing ``timestamp_ms``."""
    return (timestamp_ms // DAY_MS) * DAY_MS


def week_start(timestamp_ms: int, anchor_ms: int) -> int:
    """Start of the 7-day window (aligned to ``anchor_ms``) containing ``timestamp_ms``."""
    return anchor_ms + ((timestamp_ms - anchor_ms) // WEEK_MS) * WEEK_MS


def month_start(timestamp_ms: int, tz: tzinfo = timezone.utc) -> int:
    """Local midnight on the first of the calendar month containing ``timestamp_ms``."""
    local = datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)
    first = datetime(local.year, local.month, 1, tzinfo=tz)
    return int(first.timestamp() * 1000)


def _period_fns(
    granularity: Granularity,
    anchor_ms: int,
    tz: tzinfo,
) -> tuple[Callable[[int], int], Callable[[int], str]]:
    """Return (period start, period key) functions for a granularity."""
    if granularity is Granularity.DAY:
        return day_start, _utc_date_key
    if granularity is Granularity.WEEK:
        return (lambda t: week_start(t, anchor_ms)), _utc_date_key

    def month_key(start_ms: int) -> str:
        return datetime.fromtimestamp(start_ms / 1000, tz=tz).strftime("%Y-%m")

    return (lambda t: month_start(t, tz)), month_key


def aggregate(
    records: Iterable[NormalizedRecord],
    granularity: Granularity,
    *,
    anchor_ms: int | None = None,
    tz: tzinfo = timezone.utc,
) -> list[Bucket]:
    """Fold records into sorted, sparse buckets with cumulative sums.

    Args:
        records: Normalized records (any order). Callers filter categories.
        granularity: Day, week or month.
        anchor_ms: Week alignment. Defaults to the earliest record timestamp.
            Ignored for days and months.
        tz: Timezone for calendar months.

    Returns:
        Buckets sorted by period start. Empty list for empty input.
    """
    items = list(records)
    if not items:
        return []

    if anchor_ms is None:
        anchor_ms = min(r.timestamp_ms for r in items)

    start_of, key_of = _period_fns(granularity, anchor_ms, tz)
    keyed = sorted(((start_of(r.timestamp_ms), r.btc_amount) for r in items), key=lambda kv: kv[0])

    periods: list[tuple[int, Decimal, int]] = []
    for start, group in groupby(keyed, key=lambda kv: kv[0]):
        amounts = [amount for _, amount in group]
        periods.append((start, sum(amounts, ZERO), len(amounts)))

    cumulative = accumulate(total for _, total, _ in periods)
    return [
        Bucket(
            granularity=granularity,
            period_key=key_of(start),
            period_start_ms=start,
            sum_btc=total,
            cumulative_btc=running,
            record_count=count,
        )
        for (start, total, count), running in zip(periods, cumulative)
    ]


def build_daily_buckets(records: Iterable[NormalizedRecord]) -> list[Bucket]:
    return aggregate(records, Granularity.DAY)


def build_weekly_buckets(
    records: Iterable[NormalizedRecord],
    anchor_ms: int | None = None,
) -> list[Bucket]:
    return aggregate(records, Granularity.WEEK, anchor_ms=anchor_ms)


def build_monthly_buckets(
    records: Iterable[NormalizedRecord],
    tz: tzinfo = timezone.utc,
) -> list[Bucket]:
    return aggregate(records, Granularity.MONTH, tz=tz)
