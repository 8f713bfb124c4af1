"""Peak-to-trough drawdown over an equity series.

Drawdown is signed: 0 at a new high, negative below the running peak.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from stoic.equity.reconstructor import EquityPoint


@dataclass(frozen=True)
class DrawdownPoint:
    """Equity, running peak and drawdown (equity - peak, always <= 0)."""

    timestamp_ms: int
    equity_btc: Decimal
    peak_btc: Decimal
    drawdown_btc: Decimal

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "equity_btc": str(self.equity_btc),
            "peak_btc": str(self.peak_btc),
            "drawdown_btc": str(self.drawdown_btc),
        }


def drawdown_series(equity: Sequence[EquityPoint]) -> list[DrawdownPoint]:
    """Compute running peak and drawdown for every equity point.

    The peak starts at the first point, so the baseline counts as a high.

    Returns:
        One DrawdownPoint per equity point; empty for empty input.
    """
    points: list[DrawdownPoint] = []
    peak: Decimal | None = None
    for point in equity:
        if peak is None or point.equity_btc > peak:
            peak = point.equity_btc
        points.append(
            DrawdownPoint(
                timestamp_ms=point.timestamp_ms,
                equity_btc=point.equity_btc,
                peak_btc=peak,
                drawdown_btc=point.equity_btc - peak,
            )
        )
    return points


def max_drawdown(points: Sequence[DrawdownPoint]) -> DrawdownPoint | None:
    """Deepest drawdown point (earliest on ties), or None for no points."""
    if not points:
        return None
    deepest = points[0]
    for point in points[1:]:
        if point.drawdown_btc < deepest.drawdown_btc:
            deepest = point
    return deepest
