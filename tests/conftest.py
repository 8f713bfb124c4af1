"""Shared test fixtures for the performance analytics pipeline."""

from collections.abc import Callable, Sequence
from decimal import Decimal

import pytest

from stoic.aggregation import Bucket, build_daily_buckets
from stoic.config import (
    AnalysisSettings,
    AppSettings,
    AssessmentSettings,
    ForecastSettings,
    PricingSettings,
)
from stoic.models import DAY_MS, LedgerCategory, NormalizedRecord, PriceSample
from stoic.pricing import PriceIndex

# 2024-01-01T00:00:00Z
T0 = 1_704_067_200_000


@pytest.fixture
def t0() -> int:
    """Midnight UTC on 2024-01-01, in milliseconds."""
    return T0


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (UTC, 12-month projections)."""
    return AppSettings(
        log_level="DEBUG",
        pricing=PricingSettings(),
        analysis=AnalysisSettings(timezone="UTC"),
        forecast=ForecastSettings(months=12),
        assessment=AssessmentSettings(),
    )


@pytest.fixture
def price_index() -> PriceIndex:
    """Five daily BTC candles (50000..54000) plus a spot map with ETH pairs."""
    samples = [
        PriceSample(
            timestamp_ms=T0 + i * DAY_MS,
            open=Decimal(50000 + i * 1000),
            close=Decimal(50000 + i * 1000),
        )
        for i in range(5)
    ]
    spot = {
        "BTCUSDT": Decimal("60000"),
        "ETHUSDT": Decimal("3000"),
        "BNBBTC": Decimal("0.01"),
    }
    return PriceIndex(samples, spot)


@pytest.fixture
def make_records() -> Callable[..., list[NormalizedRecord]]:
    """Factory: one realized-P&L record per amount, one day apart starting at ``start_ms``."""

    def _make(
        amounts: Sequence[str | Decimal],
        start_ms: int = T0,
        step_ms: int = DAY_MS,
        category: LedgerCategory = LedgerCategory.REALIZED_PNL,
    ) -> list[NormalizedRecord]:
        return [
            NormalizedRecord(
                timestamp_ms=start_ms + i * step_ms,
                category=category,
                btc_amount=Decimal(amount),
            )
            for i, amount in enumerate(amounts)
        ]

    return _make


@pytest.fixture
def make_daily(make_records) -> Callable[..., list[Bucket]]:
    """Factory: consecutive daily buckets with the given P&L values."""

    def _make(amounts: Sequence[str | Decimal], start_ms: int = T0) -> list[Bucket]:
        return build_daily_buckets(make_records(amounts, start_ms=start_ms))

    return _make
