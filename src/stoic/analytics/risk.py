"""Risk analytics over the reconstructed equity curve.

Pure Decimal analytics: daily returns, Sharpe ratio, max drawdown, best and
worst day, win rate and profit factor. Every function degrades to neutral
values instead of raising, so a report always renders.

Inputs line up as produced by ``reconstruct_equity``: ``equity`` has one
more point than ``daily``, and ``equity[i]`` is the start-of-day equity for
``daily[i]``.
"""

from collections.abc import Sequence
from decimal import Decimal

from stoic.aggregation.buckets import Bucket
from stoic.analytics.models import DayExtreme, RiskMetrics
from stoic.equity.drawdown import drawdown_series, max_drawdown
from stoic.equity.reconstructor import EquityPoint
from stoic.logging import get_logger
from stoic.models import ZERO

logger = get_logger(__name__)

#: Profit factor reported when there is profit but not a single losing day.
PROFIT_FACTOR_CAP = Decimal("999")

_HUNDRED = Decimal("100")


def daily_returns(equity: Sequence[EquityPoint], daily: Sequence[Bucket]) -> list[Decimal]:
    """Daily P&L divided by start-of-day equity (0 when that equity is not positive)."""
    returns: list[Decimal] = []
    for start, bucket in zip(equity, daily):
        if start.equity_btc > ZERO:
            returns.append(bucket.sum_btc / start.equity_btc)
        else:
            returns.append(ZERO)
    return returns


def sharpe_ratio(returns: Sequence[Decimal], annualization_factor: int = 365) -> Decimal:
    """Annualized Sharpe ratio of daily returns.

    Sharpe = (mean / population_std_dev) * sqrt(annualization_factor)

    Args:
        returns: Daily returns.
        annualization_factor: Periods per year. Default 365 (crypto trades daily).

    Returns:
        Sharpe ratio, or 0 with fewer than 2 returns or zero dispersion.
    """
    if len(returns) < 2:
        return ZERO

    n = Decimal(len(returns))
    mean = sum(returns, ZERO) / n
    variance = sum(((r - mean) ** 2 for r in returns), ZERO) / n
    std_dev = variance.sqrt()

    if std_dev == ZERO:
        return ZERO

    return (mean / std_dev) * Decimal(annualization_factor).sqrt()


def profit_factor(pnls: Sequence[Decimal], cap: Decimal = PROFIT_FACTOR_CAP) -> Decimal:
    """Gross profit over gross loss.

    Returns:
        The ratio; ``cap`` when there is profit but no loss; 0 when neither.
    """
    gross_profit = sum((p for p in pnls if p > ZERO), ZERO)
    gross_loss = abs(sum((p for p in pnls if p < ZERO), ZERO))

    if gross_loss > ZERO:
        return gross_profit / gross_loss
    if gross_profit > ZERO:
        return cap
    return ZERO


def _day_extremes(
    daily: Sequence[Bucket],
    returns: Sequence[Decimal],
) -> tuple[DayExtreme, DayExtreme]:
    best_idx = 0
    worst_idx = 0
    for i, bucket in enumerate(daily):
        if bucket.sum_btc > daily[best_idx].sum_btc:
            best_idx = i
        if bucket.sum_btc < daily[worst_idx].sum_btc:
            worst_idx = i

    def extreme(i: int) -> DayExtreme:
        return DayExtreme(
            timestamp_ms=daily[i].period_start_ms,
            pnl_btc=daily[i].sum_btc,
            daily_return=returns[i],
        )

    return extreme(best_idx), extreme(worst_idx)


def compute_risk_metrics(
    equity: Sequence[EquityPoint],
    daily: Sequence[Bucket],
    annualization_factor: int = 365,
    profit_factor_cap: Decimal = PROFIT_FACTOR_CAP,
) -> RiskMetrics:
    """Compute the full risk snapshot.

    Args:
        equity: Reconstructed equity, ``len(daily) + 1`` points.
        daily: Daily P&L buckets sorted by period start.
        annualization_factor: Sharpe annualization periods per year.
        profit_factor_cap: Value reported for profit without losses.

    Returns:
        RiskMetrics, or ``RiskMetrics.neutral()`` with fewer than 2 days or
        a misaligned equity series.
    """
    if len(daily) < 2:
        return RiskMetrics.neutral(total_days=len(daily))

    if len(equity) != len(daily) + 1:
        logger.warning(
            "equity_series_misaligned",
            equity_points=len(equity),
            daily_buckets=len(daily),
        )
        return RiskMetrics.neutral(total_days=len(daily))

    returns = daily_returns(equity, daily)
    pnls = [b.sum_btc for b in daily]

    deepest = max_drawdown(drawdown_series(equity))
    max_dd_btc = deepest.drawdown_btc if deepest is not None else ZERO
    if deepest is not None and deepest.peak_btc > ZERO:
        max_dd_pct = max_dd_btc / deepest.peak_btc * _HUNDRED
    else:
        max_dd_pct = ZERO

    best, worst = _day_extremes(daily, returns)
    win_days = sum(1 for p in pnls if p > ZERO)

    return RiskMetrics(
        sharpe=sharpe_ratio(returns, annualization_factor),
        max_drawdown_btc=max_dd_btc,
        max_drawdown_pct=max_dd_pct,
        best_day=best,
        worst_day=worst,
        win_rate=Decimal(win_days) / Decimal(len(pnls)),
        win_days=win_days,
        total_days=len(pnls),
        profit_factor=profit_factor(pnls, profit_factor_cap),
    )
