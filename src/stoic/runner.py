"""High-level entry point for a full performance analysis.

run_analysis() wires the pipeline stages together:

    price index -> normalize -> period filter -> day/week/month buckets
    -> capital flows -> equity -> drawdown -> risk -> rolling window
    -> forecast -> scenarios -> assessment

Every stage is pure; the only side effect is structured logging. Short or
empty histories produce a report with neutral values rather than an error.
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from zoneinfo import ZoneInfo

from stoic.aggregation import (
    Bucket,
    RollingPoint,
    build_daily_buckets,
    build_monthly_buckets,
    build_weekly_buckets,
    rolling_window_pnl,
)
from stoic.analytics import (
    Assessment,
    ForecastModel,
    RiskMetrics,
    ScenarioProjection,
    assess_performance,
    build_forecast,
    compute_risk_metrics,
    project_scenarios,
)
from stoic.config import AppSettings
from stoic.equity import (
    DrawdownPoint,
    EquityPoint,
    drawdown_series,
    max_drawdown,
    reconstruct_equity,
)
from stoic.ingest.snapshot import AccountSnapshot
from stoic.ledger import (
    CapitalFlowSummary,
    income_by_category,
    normalize_events,
    pnl_records,
    since,
    summarize_capital_flows,
)
from stoic.logging import get_logger
from stoic.models import DAY_MS
from stoic.pricing import PriceIndex

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Complete output of one analysis run."""

    generated_at_ms: int | None
    period_start_ms: int | None
    btc_price_usd: Decimal | None
    income_by_category: dict[str, Decimal]
    flows: CapitalFlowSummary
    daily: tuple[Bucket, ...]
    weekly: tuple[Bucket, ...]
    monthly: tuple[Bucket, ...]
    equity: tuple[EquityPoint, ...]
    drawdown: tuple[DrawdownPoint, ...]
    max_drawdown: DrawdownPoint | None
    risk: RiskMetrics
    rolling: tuple[RollingPoint, ...]
    forecast: ForecastModel
    scenarios: tuple[ScenarioProjection, ...]
    assessment: Assessment
    unconvertible_count: int

    def to_dict(self) -> dict:
        return {
            "generated_at_ms": self.generated_at_ms,
            "period_start_ms": self.period_start_ms,
            "btc_price_usd": str(self.btc_price_usd) if self.btc_price_usd is not None else None,
            "income_by_category": {k: str(v) for k, v in self.income_by_category.items()},
            "flows": self.flows.to_dict(),
            "daily": [b.to_dict() for b in self.daily],
            "weekly": [b.to_dict() for b in self.weekly],
            "monthly": [b.to_dict() for b in self.monthly],
            "equity": [p.to_dict() for p in self.equity],
            "drawdown": [p.to_dict() for p in self.drawdown],
            "max_drawdown": self.max_drawdown.to_dict() if self.max_drawdown is not None else None,
            "risk": self.risk.to_dict(),
            "rolling": [p.to_dict() for p in self.rolling],
            "forecast": self.forecast.to_dict(),
            "scenarios": [s.to_dict() for s in self.scenarios],
            "assessment": self.assessment.to_dict(),
            "unconvertible_count": self.unconvertible_count,
        }


def analysis_period_start(snapshot: AccountSnapshot, settings: AppSettings) -> int | None:
    """Start of the analysed period.

    An explicit ``since_ms`` wins; otherwise the period is the last
    ``period_days`` days before the snapshot was generated. None when the
    snapshot carries no generation time.
    """
    if settings.analysis.since_ms is not None:
        return settings.analysis.since_ms
    if snapshot.generated_at_ms is None:
        return None
    return snapshot.generated_at_ms - settings.analysis.period_days * DAY_MS


def run_analysis(
    snapshot: AccountSnapshot,
    settings: AppSettings | None = None,
) -> AnalysisReport:
    """Run the full analysis pipeline over a loaded snapshot.

    Capital flows are always totalled over the whole snapshot because ROI is
    measured against all capital ever put in. P&L series are restricted to
    the analysis period.

    Args:
        snapshot: Parsed account snapshot.
        settings: Application settings. Defaults to AppSettings().

    Returns:
        AnalysisReport with every stage's output.
    """
    if settings is None:
        settings = AppSettings()

    start_time = time.monotonic()
    analysis = settings.analysis

    index = PriceIndex(snapshot.price_samples, snapshot.spot_prices, settings.pricing)
    logger.info(
        "price_index_built",
        samples=len(index),
        btc_spot=str(index.btc_spot) if index.btc_spot is not None else None,
    )

    records = normalize_events(snapshot.events, index)
    unconvertible = sum(1 for r in records if not r.convertible)

    period_start = analysis_period_start(snapshot, settings)
    pnl = since(pnl_records(records), period_start)
    logger.info(
        "ledger_normalized",
        events=len(records),
        pnl_records=len(pnl),
        unconvertible=unconvertible,
        period_start_ms=period_start,
    )

    tz = ZoneInfo(analysis.timezone)
    daily = build_daily_buckets(pnl)
    weekly = build_weekly_buckets(pnl, anchor_ms=period_start)
    monthly = build_monthly_buckets(pnl, tz)
    logger.info("buckets_built", daily=len(daily), weekly=len(weekly), monthly=len(monthly))

    flows = summarize_capital_flows(records, snapshot.balance_btc)
    logger.info(
        "capital_flows_summarized",
        net_external_flow_btc=str(flows.net_external_flow_btc),
        robot_pnl_btc=str(flows.robot_pnl_btc),
        roi=str(flows.roi) if flows.roi is not None else None,
    )

    equity = reconstruct_equity(daily, snapshot.balance_btc, tolerance=analysis.equity_tolerance)
    drawdown = drawdown_series(equity)
    deepest = max_drawdown(drawdown)
    risk = compute_risk_metrics(
        equity,
        daily,
        annualization_factor=analysis.sharpe_annualization,
        profit_factor_cap=analysis.profit_factor_cap,
    )
    logger.info(
        "risk_metrics_computed",
        sharpe=str(risk.sharpe),
        max_drawdown_btc=str(risk.max_drawdown_btc),
        win_rate=str(risk.win_rate),
        sufficient_data=risk.sufficient_data,
    )

    rolling = rolling_window_pnl(daily, analysis.rolling_window_days)

    forecast = build_forecast(
        monthly,
        snapshot.balance_btc,
        net_external_flow=flows.net_external_flow_btc,
        flat_threshold=settings.forecast.trend_flat_threshold,
    )
    btc_price_usd = settings.forecast.btc_price_usd or index.btc_spot
    scenarios = project_scenarios(forecast, settings.forecast.months, btc_price_usd)
    logger.info(
        "forecast_built",
        months_observed=len(monthly),
        avg_monthly_pnl_btc=str(forecast.avg_monthly_pnl_btc),
        trend=forecast.trend_direction.value,
    )

    assessment = assess_performance(flows.roi, risk, forecast, settings.assessment)

    logger.info(
        "analysis_complete",
        verdict=assessment.verdict,
        checks_passed=assessment.passed_count,
        elapsed_seconds=round(time.monotonic() - start_time, 3),
    )

    return AnalysisReport(
        generated_at_ms=snapshot.generated_at_ms,
        period_start_ms=period_start,
        btc_price_usd=btc_price_usd,
        income_by_category=income_by_category(snapshot.events, snapshot.other_income),
        flows=flows,
        daily=tuple(daily),
        weekly=tuple(weekly),
        monthly=tuple(monthly),
        equity=tuple(equity),
        drawdown=tuple(drawdown),
        max_drawdown=deepest,
        risk=risk,
        rolling=tuple(rolling),
        forecast=forecast,
        scenarios=tuple(scenarios),
        assessment=assessment,
        unconvertible_count=unconvertible,
    )
