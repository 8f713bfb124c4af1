"""Tests for the drawdown series."""

from decimal import Decimal

from stoic.equity import EquityPoint, drawdown_series, max_drawdown


def _curve(*values: str) -> list[EquityPoint]:
    return [EquityPoint(timestamp_ms=i, equity_btc=Decimal(v)) for i, v in enumerate(values)]


class TestDrawdownSeries:
    """Running peak and signed drawdown."""

    def test_worked_example(self) -> None:
        points = drawdown_series(_curve("1.0", "1.01", "0.99", "1.02"))
        assert [p.drawdown_btc for p in points] == [
            Decimal("0"),
            Decimal("0"),
            Decimal("-0.02"),
            Decimal("0"),
        ]
        assert [p.peak_btc for p in points] == [
            Decimal("1.0"),
            Decimal("1.01"),
            Decimal("1.01"),
            Decimal("1.02"),
        ]

    def test_drawdown_never_positive(self) -> None:
        points = drawdown_series(_curve("2", "1", "3", "0.5", "0.7", "4", "3.9"))
        assert all(p.drawdown_btc <= 0 for p in points)

    def test_first_point_is_initial_peak(self) -> None:
        """A curve that only falls is in drawdown from its first point."""
        points = drawdown_series(_curve("1", "0.9", "0.8"))
        assert points[-1].drawdown_btc == Decimal("-0.2")

    def test_empty(self) -> None:
        assert drawdown_series([]) == []
        assert max_drawdown([]) is None


class TestMaxDrawdown:
    def test_deepest_point(self) -> None:
        deepest = max_drawdown(drawdown_series(_curve("1", "0.8", "1.2", "0.9", "1.3")))
        assert deepest is not None
        assert deepest.drawdown_btc == Decimal("-0.3")
        assert deepest.peak_btc == Decimal("1.2")

    def test_ties_keep_earliest(self) -> None:
        deepest = max_drawdown(drawdown_series(_curve("1", "0.5", "1", "0.5")))
        assert deepest is not None
        assert deepest.timestamp_ms == 1
