"""Temporal aggregation -- sparse day/week/month buckets and trailing windows."""

from stoic.aggregation.buckets import (
    Bucket,
    Granularity,
    aggregate,
    build_daily_buckets,
    build_monthly_buckets,
    build_weekly_buckets,
)
from stoic.aggregation.rolling import RollingPoint, rolling_window_pnl

__all__ = [
    "Bucket",
    "Granularity",
    "RollingPoint",
    "aggregate",
    "build_daily_buckets",
    "build_monthly_buckets",
    "build_weekly_buckets",
    "rolling_window_pnl",
]
