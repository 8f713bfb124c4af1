"""Monthly P&L forecast and forward scenario projections.

Scenarios are the mean monthly P&L shifted by one standard deviation:

    optimistic  = mean + std
    average     = mean
    pessimistic = mean - std

Each scenario is projected two ways over ``months`` months:
  - linear:   balance + months * pnl
  - compound: balance * (1 + pnl / balance) ** months   (primary projection)

and annualized as (1 + total_roi) ** (12 / months) - 1.
"""

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation, Overflow

from stoic.aggregation.buckets import Bucket
from stoic.analytics.models import ForecastModel, ScenarioProjection, TrendFit
from stoic.analytics.trend import classify_trend, linear_regression
from stoic.config import MAX_PROJECTION_MONTHS
from stoic.logging import get_logger
from stoic.models import ZERO

logger = get_logger(__name__)

_ONE = Decimal("1")
_TWELVE = Decimal("12")

SCENARIO_NAMES = ("optimistic", "average", "pessimistic")


def build_forecast(
    monthly: Sequence[Bucket],
    current_balance: Decimal,
    net_external_flow: Decimal | None = None,
    flat_threshold: Decimal = ZERO,
) -> ForecastModel:
    """Fit the forecast model on monthly P&L buckets.

    Args:
        monthly: Monthly P&L buckets sorted by period start.
        current_balance: Current balance in BTC; projections start here.
        net_external_flow: Deposits minus withdrawals in BTC, for ROI
            relative to invested capital. None or non-positive leaves the
            ROI fields undefined (None).
        flat_threshold: Slope band classified as FLAT.

    Returns:
        ForecastModel. Empty input yields zero statistics and a FLAT trend.
    """
    values = tuple(b.sum_btc for b in monthly)

    if values:
        n = Decimal(len(values))
        mean = sum(values, ZERO) / n
        variance = sum(((v - mean) ** 2 for v in values), ZERO) / n
        std_dev = variance.sqrt()
    else:
        mean = ZERO
        std_dev = ZERO

    fit = linear_regression(values) if len(values) >= 2 else TrendFit()

    if net_external_flow is not None and net_external_flow > ZERO:
        avg_roi: Decimal | None = mean / net_external_flow
        roi_std: Decimal | None = std_dev / net_external_flow
    else:
        avg_roi = None
        roi_std = None

    return ForecastModel(
        avg_monthly_pnl_btc=mean,
        std_dev_monthly_pnl_btc=std_dev,
        trend=fit,
        trend_direction=classify_trend(fit.slope, flat_threshold),
        avg_monthly_roi=avg_roi,
        monthly_roi_std_dev=roi_std,
        current_balance_btc=current_balance,
        monthly_values=values,
    )


def annualized_roi(total_roi: Decimal, months: int) -> Decimal | None:
    """Annualize a total ROI earned over ``months`` months.

    Returns:
        (1 + total_roi) ** (12 / months) - 1, or None when the growth factor
        is not positive or months is not positive.
    """
    growth = _ONE + total_roi
    if months <= 0 or growth <= ZERO:
        return None
    try:
        return growth ** (_TWELVE / Decimal(months)) - _ONE
    except (InvalidOperation, Overflow):
        logger.warning("annualized_roi_undefined", total_roi=str(total_roi), months=months)
        return None


def _project(
    name: str,
    monthly_pnl: Decimal,
    balance: Decimal,
    months: int,
    btc_price_usd: Decimal | None,
) -> ScenarioProjection:
    months_d = Decimal(months)
    linear_pnl = months_d * monthly_pnl
    linear_final = balance + linear_pnl

    compound_final: Decimal | None
    total_roi: Decimal | None = None
    annual: Decimal | None = None
    if balance > ZERO:
        monthly_roi: Decimal | None = monthly_pnl / balance
        try:
            compound_final = balance * (_ONE + monthly_roi) ** months
            total_roi = (compound_final - balance) / balance
        except Overflow:
            logger.warning("compound_projection_overflow", scenario=name, monthly_roi=monthly_roi, months=months)
            compound_final = total_roi = None
        if total_roi is not None:
            annual = annualized_roi(total_roi, months)
    else:
        monthly_roi = None
        compound_final = balance

    compound_pnl = compound_final - balance if compound_final is not None else None
    compound_bonus = compound_pnl - linear_pnl if compound_pnl is not None else None

    compound_final_usd: Decimal | None = None
    compound_pnl_usd: Decimal | None = None
    linear_final_usd: Decimal | None = None
    if btc_price_usd is not None and btc_price_usd > ZERO:
        linear_final_usd = linear_final * btc_price_usd
        if compound_final is not None and compound_pnl is not None:
            compound_final_usd = compound_final * btc_price_usd
            compound_pnl_usd = compound_pnl * btc_price_usd

    return ScenarioProjection(
        name=name,
        months=months,
        monthly_pnl_btc=monthly_pnl,
        monthly_roi=monthly_roi,
        linear_final_btc=linear_final,
        linear_pnl_btc=linear_pnl,
        compound_final_btc=compound_final,
        compound_pnl_btc=compound_pnl,
        compound_bonus_btc=compound_bonus,
        total_roi=total_roi,
        annualized_roi=annual,
        compound_final_usd=compound_final_usd,
        compound_pnl_usd=compound_pnl_usd,
        linear_final_usd=linear_final_usd,
    )


def project_scenarios(
    forecast: ForecastModel,
    months: int = 12,
    btc_price_usd: Decimal | None = None,
) -> list[ScenarioProjection]:
    """Project optimistic, average and pessimistic scenarios.

    Args:
        forecast: Fitted forecast model.
        months: Projection horizon, clamped to [1, MAX_PROJECTION_MONTHS].
        btc_price_usd: Optional BTC price for USD valuations.

    Returns:
        Three ScenarioProjections in optimistic, average, pessimistic order.
        With a non-positive balance the ROI fields are None and the compound
        projection stays at the balance. A compound projection that exceeds
        the Decimal range leaves the compound and ROI fields None.
    """
    months = min(max(1, months), MAX_PROJECTION_MONTHS)
    mean = forecast.avg_monthly_pnl_btc
    std = forecast.std_dev_monthly_pnl_btc
    pnls = (mean + std, mean, mean - std)

    return [
        _project(name, pnl, forecast.current_balance_btc, months, btc_price_usd)
        for name, pnl in zip(SCENARIO_NAMES, pnls)
    ]
