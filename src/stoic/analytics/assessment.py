"""Performance verdict and health checks.

Verdict tiers on ROI over net external capital:
  - strong:       roi >= strong_roi (5%)
  - neutral:      roi >= 0
  - weak:         roi >= weak_roi (-10%)
  - poor:         below that
  - undetermined: ROI undefined (no positive net capital)
"""

from decimal import Decimal

from stoic.analytics.models import (
    Assessment,
    ForecastModel,
    HealthCheck,
    RiskMetrics,
    TrendDirection,
)
from stoic.config import AssessmentSettings
from stoic.models import ZERO


def classify_verdict(roi: Decimal | None, settings: AssessmentSettings) -> str:
    """Map ROI to a verdict tier."""
    if roi is None:
        return "undetermined"
    if roi >= settings.strong_roi:
        return "strong"
    if roi >= ZERO:
        return "neutral"
    if roi >= settings.weak_roi:
        return "weak"
    return "poor"


def assess_performance(
    roi: Decimal | None,
    risk: RiskMetrics,
    forecast: ForecastModel,
    settings: AssessmentSettings | None = None,
) -> Assessment:
    """Build the verdict and the five health checks.

    Args:
        roi: Robot P&L over net external capital, None if undefined.
        risk: Risk snapshot.
        forecast: Forecast model (for trend direction).
        settings: Thresholds. Defaults to AssessmentSettings().

    Returns:
        Assessment with verdict and checks in a fixed order.
    """
    if settings is None:
        settings = AssessmentSettings()

    drawdown_magnitude = abs(risk.max_drawdown_pct)
    checks = (
        HealthCheck(
            name="sharpe",
            passed=risk.sharpe >= settings.min_sharpe,
            value=str(risk.sharpe),
            threshold=f">= {settings.min_sharpe}",
        ),
        HealthCheck(
            name="win_rate",
            passed=risk.win_rate >= settings.min_win_rate,
            value=str(risk.win_rate),
            threshold=f">= {settings.min_win_rate}",
        ),
        HealthCheck(
            name="profit_factor",
            passed=risk.profit_factor >= settings.min_profit_factor,
            value=str(risk.profit_factor),
            threshold=f">= {settings.min_profit_factor}",
        ),
        HealthCheck(
            name="max_drawdown_pct",
            passed=drawdown_magnitude <= settings.max_drawdown_pct,
            value=str(drawdown_magnitude),
            threshold=f"<= {settings.max_drawdown_pct}",
        ),
        HealthCheck(
            name="trend",
            passed=forecast.trend_direction is TrendDirection.IMPROVING,
            value=forecast.trend_direction.value,
            threshold=TrendDirection.IMPROVING.value,
        ),
    )
    return Assessment(verdict=classify_verdict(roi, settings), checks=checks)
