"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

#: Longest scenario projection horizon (100 years).
MAX_PROJECTION_MONTHS = 1200


class PricingSettings(BaseSettings):
    """Asset conversion settings for the price index."""

    model_config = SettingsConfigDict(env_prefix="PRICING_")

    base_asset: str = "BTC"  # reporting currency
    quote_asset: str = "USDT"  # cross-rate leg for non-BTC pairs
    stable_assets: list[str] = ["USDT", "USDC", "BUSD", "FDUSD", "DAI"]


class AnalysisSettings(BaseSettings):
    """Aggregation and risk analysis parameters.

    All fields configurable via ANALYSIS_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    period_days: int = 180  # lookback used to anchor weekly buckets
    timezone: str = "UTC"  # month boundaries are calendar months in this zone
    rolling_window_days: int = 30
    sharpe_annualization: int = 365  # crypto trades every calendar day
    profit_factor_cap: Decimal = Decimal("999")  # reported when there are no losing days
    equity_tolerance: Decimal = Decimal("1e-9")
    since_ms: int | None = None  # analysis start; None = whole snapshot


class ForecastSettings(BaseSettings):
    """Scenario forecast parameters."""

    model_config = SettingsConfigDict(env_prefix="FORECAST_")

    months: int = Field(default=12, ge=1, le=MAX_PROJECTION_MONTHS)
    trend_flat_threshold: Decimal = Decimal("0")  # |slope| at or below this is "flat"
    btc_price_usd: Decimal | None = None  # None = use the snapshot spot price


class AssessmentSettings(BaseSettings):
    """Verdict and health-check thresholds for the performance summary."""

    model_config = SettingsConfigDict(env_prefix="ASSESS_")

    strong_roi: Decimal = Decimal("0.05")
    weak_roi: Decimal = Decimal("-0.10")
    min_sharpe: Decimal = Decimal("0.5")
    min_win_rate: Decimal = Decimal("0.45")
    min_profit_factor: Decimal = Decimal("0.8")
    max_drawdown_pct: Decimal = Decimal("15")  # magnitude, percent


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    pricing: PricingSettings = PricingSettings()
    analysis: AnalysisSettings = AnalysisSettings()
    forecast: ForecastSettings = ForecastSettings()
    assessment: AssessmentSettings = AssessmentSettings()
