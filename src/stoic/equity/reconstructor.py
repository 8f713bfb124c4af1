"""Equity curve reconstruction from daily P&L and the current balance.

The exchange only tells us the balance *now*. Walking the daily P&L
backwards from it gives the implied starting equity (the baseline); walking
forwards again from the baseline yields a curve whose last point lands
exactly on the current balance.

NOTE: This is an approximation of curve shape. Capital flows and
unrealized P&L between the two ends are not modelled, so intermediate
points are implied equity, not observed account value.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from stoic.aggregation.buckets import Bucket
from stoic.exceptions import EquityReconciliationError
from stoic.logging import get_logger
from stoic.models import DAY_MS, ZERO

logger = get_logger(__name__)

_DEFAULT_TOLERANCE = Decimal("1e-9")


@dataclass(frozen=True)
class EquityPoint:
    """Implied account equity in BTC at a point in time.

    Attributes:
        timestamp_ms: Timestamp in milliseconds.
        equity_btc: Baseline plus cumulative P&L up to this point.
    """

    timestamp_ms: int
    equity_btc: Decimal

    def to_dict(self) -> dict:
        return {"timestamp_ms": self.timestamp_ms, "equity_btc": str(self.equity_btc)}


def baseline_equity(daily: Sequence[Bucket], current_balance: Decimal) -> Decimal:
    """Implied equity before the first day: balance minus all daily P&L."""
    return current_balance - sum((b.sum_btc for b in daily), ZERO)


def reconstruct_equity(
    daily: Sequence[Bucket],
    current_balance: Decimal,
    *,
    tolerance: Decimal = _DEFAULT_TOLERANCE,
    strict: bool = False,
) -> list[EquityPoint]:
    """Rebuild the equity series from daily P&L buckets.

    Produces ``len(daily) + 1`` points: the baseline at the first day's
    start, then the equity at the end of each day. Point ``i`` is therefore
    the start-of-day equity for ``daily[i]``.

    Args:
        daily: Daily P&L buckets sorted by period start.
        current_balance: Authoritative current balance in BTC.
        tolerance: Allowed gap between the last point and the balance.
        strict: Raise EquityReconciliationError on a gap instead of logging.

    Returns:
        Equity points, or an empty list when there is no daily P&L.
    """
    if not daily:
        return []

    equity = baseline_equity(daily, current_balance)
    points = [EquityPoint(timestamp_ms=daily[0].period_start_ms, equity_btc=equity)]
    for bucket in daily:
        equity += bucket.sum_btc
        points.append(EquityPoint(timestamp_ms=bucket.period_start_ms + DAY_MS, equity_btc=equity))

    gap = abs(points[-1].equity_btc - current_balance)
    if gap > tolerance:
        if strict:
            raise EquityReconciliationError(
                f"reconstructed equity {points[-1].equity_btc} differs from balance {current_balance}"
            )
        logger.error(
            "equity_reconciliation_failed",
            final_equity=str(points[-1].equity_btc),
            current_balance=str(current_balance),
            gap=str(gap),
        )

    return points
