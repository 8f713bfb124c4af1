"""Analytics data models: risk metrics, trend fit, forecast and assessment.

CRITICAL: All monetary values and ratios use Decimal. Never use float for analytics.

Undefined vs zero: insufficient-data results are all-zero with
``sufficient_data=False``; ROI-style ratios over non-positive capital are None.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from stoic.models import ZERO


def _opt(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


class TrendDirection(str, Enum):
    """Monthly P&L trend classification from the regression slope."""

    IMPROVING = "improving"
    DECLINING = "declining"
    FLAT = "flat"


@dataclass(frozen=True)
class DayExtreme:
    """Best or worst single day: P&L in BTC and its return on start-of-day equity."""

    timestamp_ms: int
    pnl_btc: Decimal
    daily_return: Decimal

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "pnl_btc": str(self.pnl_btc),
            "daily_return": str(self.daily_return),
        }


@dataclass(frozen=True)
class RiskMetrics:
    """Risk snapshot over the daily P&L history.

    Attributes:
        sharpe: Annualized Sharpe ratio of daily returns (risk-free rate 0).
        max_drawdown_btc: Deepest drawdown in BTC (<= 0).
        max_drawdown_pct: That drawdown as percent of the peak at the time (<= 0).
        best_day: Day with the largest P&L.
        worst_day: Day with the smallest P&L.
        win_rate: Fraction of days with positive P&L.
        win_days: Days with positive P&L.
        total_days: Days with any P&L record.
        profit_factor: Gross profit / gross loss, capped when there are no losses.
        sufficient_data: False when fewer than 2 days were available.
    """

    sharpe: Decimal
    max_drawdown_btc: Decimal
    max_drawdown_pct: Decimal
    best_day: DayExtreme | None
    worst_day: DayExtreme | None
    win_rate: Decimal
    win_days: int
    total_days: int
    profit_factor: Decimal
    sufficient_data: bool = True

    @staticmethod
    def neutral(total_days: int = 0) -> "RiskMetrics":
        """All-zero metrics returned when there is too little history."""
        return RiskMetrics(
            sharpe=ZERO,
            max_drawdown_btc=ZERO,
            max_drawdown_pct=ZERO,
            best_day=None,
            worst_day=None,
            win_rate=ZERO,
            win_days=0,
            total_days=total_days,
            profit_factor=ZERO,
            sufficient_data=False,
        )

    def to_dict(self) -> dict:
        return {
            "sharpe": str(self.sharpe),
            "max_drawdown_btc": str(self.max_drawdown_btc),
            "max_drawdown_pct": str(self.max_drawdown_pct),
            "best_day": self.best_day.to_dict() if self.best_day else None,
            "worst_day": self.worst_day.to_dict() if self.worst_day else None,
            "win_rate": str(self.win_rate),
            "win_days": self.win_days,
            "total_days": self.total_days,
            "profit_factor": str(self.profit_factor),
            "sufficient_data": self.sufficient_data,
        }


@dataclass(frozen=True)
class TrendFit:
    """Ordinary least squares fit of values against their index 0..n-1."""

    slope: Decimal = ZERO
    intercept: Decimal = ZERO
    r_squared: Decimal = ZERO

    def predict(self, x: int) -> Decimal:
        return self.intercept + self.slope * Decimal(x)

    def to_dict(self) -> dict:
        return {
            "slope": str(self.slope),
            "intercept": str(self.intercept),
            "r_squared": str(self.r_squared),
        }


@dataclass(frozen=True)
class ForecastModel:
    """Monthly P&L statistics that drive scenario projections.

    Attributes:
        avg_monthly_pnl_btc: Mean monthly P&L.
        std_dev_monthly_pnl_btc: Population standard deviation of monthly P&L.
        trend: Regression of monthly P&L against month index.
        trend_direction: Classification of ``trend.slope``.
        avg_monthly_roi: Mean monthly P&L over net external capital, None if
            capital is not positive.
        monthly_roi_std_dev: Std dev over net external capital, None likewise.
        current_balance_btc: Balance the projections start from.
        monthly_values: Monthly P&L series the model was fitted on.
    """

    avg_monthly_pnl_btc: Decimal
    std_dev_monthly_pnl_btc: Decimal
    trend: TrendFit
    trend_direction: TrendDirection
    avg_monthly_roi: Decimal | None
    monthly_roi_std_dev: Decimal | None
    current_balance_btc: Decimal
    monthly_values: tuple[Decimal, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "avg_monthly_pnl_btc": str(self.avg_monthly_pnl_btc),
            "std_dev_monthly_pnl_btc": str(self.std_dev_monthly_pnl_btc),
            "trend": self.trend.to_dict(),
            "trend_direction": self.trend_direction.value,
            "avg_monthly_roi": _opt(self.avg_monthly_roi),
            "monthly_roi_std_dev": _opt(self.monthly_roi_std_dev),
            "current_balance_btc": str(self.current_balance_btc),
            "monthly_values": [str(v) for v in self.monthly_values],
        }


@dataclass(frozen=True)
class ScenarioProjection:
    """Forward projection of one scenario over ``months`` months.

    Compound figures are the primary projection; linear figures assume the
    same BTC P&L every month without reinvestment.
    """

    name: str
    months: int
    monthly_pnl_btc: Decimal
    monthly_roi: Decimal | None
    linear_final_btc: Decimal
    linear_pnl_btc: Decimal
    compound_final_btc: Decimal | None
    compound_pnl_btc: Decimal | None
    compound_bonus_btc: Decimal | None
    total_roi: Decimal | None
    annualized_roi: Decimal | None
    compound_final_usd: Decimal | None = None
    compound_pnl_usd: Decimal | None = None
    linear_final_usd: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "months": self.months,
            "monthly_pnl_btc": str(self.monthly_pnl_btc),
            "monthly_roi": _opt(self.monthly_roi),
            "linear_final_btc": str(self.linear_final_btc),
            "linear_pnl_btc": str(self.linear_pnl_btc),
            "compound_final_btc": _opt(self.compound_final_btc),
            "compound_pnl_btc": _opt(self.compound_pnl_btc),
            "compound_bonus_btc": _opt(self.compound_bonus_btc),
            "total_roi": _opt(self.total_roi),
            "annualized_roi": _opt(self.annualized_roi),
            "compound_final_usd": _opt(self.compound_final_usd),
            "compound_pnl_usd": _opt(self.compound_pnl_usd),
            "linear_final_usd": _opt(self.linear_final_usd),
        }


@dataclass(frozen=True)
class HealthCheck:
    """One pass/fail check in the performance assessment."""

    name: str
    passed: bool
    value: str
    threshold: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "value": self.value,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class Assessment:
    """Overall verdict with the individual health checks behind it."""

    verdict: str  # strong | neutral | weak | poor | undetermined
    checks: tuple[HealthCheck, ...]

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict,
            "passed_count": self.passed_count,
            "checks": [c.to_dict() for c in self.checks],
        }
