"""Monthly P&L trend detection using least-squares regression.

Fits y = intercept + slope * x over x = 0..n-1 and classifies the slope as
IMPROVING, DECLINING or FLAT.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

from stoic.analytics.models import TrendDirection, TrendFit
from stoic.models import ZERO

_ONE = Decimal("1")


def linear_regression(values: Sequence[Decimal]) -> TrendFit:
    """Ordinary least squares fit of ``values`` against their index.

        slope = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)
        intercept = (Sy - slope*Sx) / n
        R^2 = 1 - SS_res / SS_tot

    Graceful degradation: fewer than 2 values gives an all-zero fit; a zero
    denominator gives slope 0; zero total variance gives R^2 = 0.

    Args:
        values: Ordered observations (oldest first).

    Returns:
        TrendFit with slope, intercept and R^2.
    """
    n_int = len(values)
    if n_int < 2:
        return TrendFit()

    n = Decimal(n_int)
    sx = sy = sxx = sxy = ZERO
    for i, y in enumerate(values):
        x = Decimal(i)
        sx += x
        sy += y
        sxx += x * x
        sxy += x * y

    denominator = n * sxx - sx * sx
    slope = (n * sxy - sx * sy) / denominator if denominator != ZERO else ZERO
    intercept = (sy - slope * sx) / n

    mean = sy / n
    ss_res = ZERO
    ss_tot = ZERO
    for i, y in enumerate(values):
        predicted = intercept + slope * Decimal(i)
        ss_res += (y - predicted) ** 2
        ss_tot += (y - mean) ** 2

    r_squared = _ONE - ss_res / ss_tot if ss_tot > ZERO else ZERO
    return TrendFit(slope=slope, intercept=intercept, r_squared=r_squared)


def classify_trend(
    slope: Decimal,
    flat_threshold: Decimal = ZERO,
) -> TrendDirection:
    """Classify a regression slope.

    Args:
        slope: Regression slope (BTC per month).
        flat_threshold: Slopes within +/- this value are FLAT.

    Returns:
        TrendDirection for the slope.
    """
    if slope > flat_threshold:
        return TrendDirection.IMPROVING
    elif slope < -flat_threshold:
        return TrendDirection.DECLINING
    return TrendDirection.FLAT
