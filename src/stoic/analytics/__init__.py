"""Performance analytics -- risk metrics, trend fitting, forecasts and assessment.

All sub-modules are pure Decimal computations that return neutral values
instead of raising when history is too short.
"""

from stoic.analytics.assessment import assess_performance, classify_verdict
from stoic.analytics.forecast import annualized_roi, build_forecast, project_scenarios
from stoic.analytics.models import (
    Assessment,
    DayExtreme,
    ForecastModel,
    HealthCheck,
    RiskMetrics,
    ScenarioProjection,
    TrendDirection,
    TrendFit,
)
from stoic.analytics.risk import (
    PROFIT_FACTOR_CAP,
    compute_risk_metrics,
    daily_returns,
    profit_factor,
    sharpe_ratio,
)
from stoic.analytics.trend import classify_trend, linear_regression

__all__ = [
    "PROFIT_FACTOR_CAP",
    "Assessment",
    "DayExtreme",
    "ForecastModel",
    "HealthCheck",
    "RiskMetrics",
    "ScenarioProjection",
    "TrendDirection",
    "TrendFit",
    "annualized_roi",
    "assess_performance",
    "build_forecast",
    "classify_trend",
    "classify_verdict",
    "compute_risk_metrics",
    "daily_returns",
    "linear_regression",
    "profit_factor",
    "project_scenarios",
    "sharpe_ratio",
]
