"""Tests for risk analytics: Sharpe, drawdown, win rate, profit factor.

The worked example throughout is daily P&L [+0.01, -0.02, +0.03] BTC on a
starting equity of 1.0, i.e. equity [1.0, 1.01, 0.99, 1.02].
"""

from decimal import Decimal

import pytest

from stoic.analytics import (
    PROFIT_FACTOR_CAP,
    RiskMetrics,
    compute_risk_metrics,
    daily_returns,
    profit_factor,
    sharpe_ratio,
)
from stoic.equity import reconstruct_equity
from stoic.models import DAY_MS


@pytest.fixture
def example_daily(make_daily):
    return make_daily(["0.01", "-0.02", "0.03"])


@pytest.fixture
def example_equity(example_daily):
    return reconstruct_equity(example_daily, Decimal("1.02"))


class TestSharpeRatio:
    """Population std dev, annualized by sqrt(factor)."""

    def test_known_values(self) -> None:
        # mean 0.02, population std 0.01 -> 2
        assert sharpe_ratio([Decimal("0.01"), Decimal("0.03")], annualization_factor=1) == Decimal("2")

    def test_annualization(self) -> None:
        assert sharpe_ratio([Decimal("0.01"), Decimal("0.03")], annualization_factor=4) == Decimal("4")

    def test_fewer_than_two_returns(self) -> None:
        assert sharpe_ratio([]) == Decimal("0")
        assert sharpe_ratio([Decimal("0.05")]) == Decimal("0")

    def test_zero_dispersion(self) -> None:
        assert sharpe_ratio([Decimal("0.01")] * 5) == Decimal("0")

    def test_negative_mean_is_negative(self) -> None:
        assert sharpe_ratio([Decimal("-0.01"), Decimal("-0.03")]) < 0


class TestProfitFactor:
    def test_ratio(self) -> None:
        assert profit_factor([Decimal("0.01"), Decimal("-0.02"), Decimal("0.03")]) == Decimal("2")

    def test_no_losses_is_capped(self) -> None:
        assert profit_factor([Decimal("0.01"), Decimal("0.02")]) == PROFIT_FACTOR_CAP

    def test_custom_cap(self) -> None:
        assert profit_factor([Decimal("1")], cap=Decimal("50")) == Decimal("50")

    def test_no_profit_no_loss(self) -> None:
        assert profit_factor([]) == Decimal("0")
        assert profit_factor([Decimal("0")]) == Decimal("0")

    def test_only_losses(self) -> None:
        assert profit_factor([Decimal("-1")]) == Decimal("0")


class TestDailyReturns:
    def test_returns_on_start_of_day_equity(self, example_equity, example_daily) -> None:
        returns = daily_returns(example_equity, example_daily)
        assert returns[0] == Decimal("0.01")
        assert returns[1] == Decimal("-0.02") / Decimal("1.01")
        assert returns[2] == Decimal("0.03") / Decimal("0.99")

    def test_non_positive_equity_gives_zero_return(self, make_daily) -> None:
        daily = make_daily(["0.5", "0.5"])
        equity = reconstruct_equity(daily, Decimal("1"))  # baseline 0
        assert daily_returns(equity, daily)[0] == Decimal("0")


class TestComputeRiskMetrics:
    """Full snapshot on the worked example and degenerate inputs."""

    def test_worked_example(self, example_equity, example_daily, t0: int) -> None:
        metrics = compute_risk_metrics(example_equity, example_daily)

        assert metrics.sufficient_data is True
        assert metrics.max_drawdown_btc == Decimal("-0.02")
        assert metrics.max_drawdown_pct == Decimal("-0.02") / Decimal("1.01") * 100
        assert metrics.win_rate == Decimal(2) / Decimal(3)
        assert metrics.win_days == 2
        assert metrics.total_days == 3
        assert metrics.profit_factor == Decimal("2")
        assert metrics.sharpe > 0

        assert metrics.best_day is not None
        assert metrics.best_day.pnl_btc == Decimal("0.03")
        assert metrics.best_day.timestamp_ms == t0 + 2 * DAY_MS
        assert metrics.worst_day is not None
        assert metrics.worst_day.pnl_btc == Decimal("-0.02")

    def test_best_day_ties_keep_first(self, make_daily, t0: int) -> None:
        daily = make_daily(["0.1", "0.1", "-0.1"])
        metrics = compute_risk_metrics(reconstruct_equity(daily, Decimal("2")), daily)
        assert metrics.best_day is not None
        assert metrics.best_day.timestamp_ms == t0

    def test_drawdown_non_positive(self, make_daily) -> None:
        daily = make_daily(["0.2", "-0.1", "-0.3", "0.05", "0.4"])
        metrics = compute_risk_metrics(reconstruct_equity(daily, Decimal("3")), daily)
        assert metrics.max_drawdown_btc <= 0
        assert metrics.max_drawdown_pct <= 0

    def test_single_day_is_neutral(self, make_daily) -> None:
        daily = make_daily(["0.1"])
        metrics = compute_risk_metrics(reconstruct_equity(daily, Decimal("1")), daily)
        assert metrics == RiskMetrics.neutral(total_days=1)
        assert metrics.sufficient_data is False

    def test_empty_is_neutral(self) -> None:
        metrics = compute_risk_metrics([], [])
        assert metrics.sharpe == Decimal("0")
        assert metrics.best_day is None
        assert metrics.sufficient_data is False

    def test_misaligned_equity_is_neutral(self, example_equity, example_daily) -> None:
        metrics = compute_risk_metrics(example_equity[:-1], example_daily)
        assert metrics.sufficient_data is False

    def test_to_dict(self, example_equity, example_daily) -> None:
        data = compute_risk_metrics(example_equity, example_daily).to_dict()
        assert data["max_drawdown_btc"] == "-0.02"
        assert data["best_day"]["pnl_btc"] == "0.03"
        assert data["sufficient_data"] is True
