"""Command-line entry point for the performance analysis.

    stoic-analyze SNAPSHOT [--since YYYY-MM-DD] [--months N] [--btc-price P] [--output PATH]

Logs go to stderr; the JSON report goes to stdout unless --output is given.
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path

import structlog

from stoic.config import MAX_PROJECTION_MONTHS, AppSettings
from stoic.exceptions import StoicError
from stoic.ingest.snapshot import load_snapshot
from stoic.logging import get_logger, setup_logging
from stoic.runner import run_analysis

logger = get_logger(__name__)


def _date_to_ms(value: str) -> int:
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc
    return int(parsed.timestamp() * 1000)


def _positive_decimal(value: str) -> Decimal:
    try:
        result = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid number {value!r}") from exc
    if not result.is_finite() or result <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value!r}")
    return result


def _months(value: str) -> int:
    try:
        result = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer {value!r}") from exc
    if not 1 <= result <= MAX_PROJECTION_MONTHS:
        raise argparse.ArgumentTypeError(f"expected 1 to {MAX_PROJECTION_MONTHS} months, got {value!r}")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stoic-analyze",
        description="Analyse futures account performance from a Binance account snapshot.",
    )
    parser.add_argument("snapshot", type=Path, help="Path to the account snapshot JSON.")
    parser.add_argument(
        "--since",
        type=_date_to_ms,
        default=None,
        help="Analyse P&L from this UTC date (YYYY-MM-DD) instead of the configured period.",
    )
    parser.add_argument("--months", type=_months, default=None, help="Projection horizon in months.")
    parser.add_argument(
        "--btc-price",
        type=_positive_decimal,
        default=None,
        help="BTC price in USD for projections (defaults to the snapshot spot price).",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write the report to a file instead of stdout.")
    return parser


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Return a copy of ``settings`` with command-line overrides applied."""
    analysis = settings.analysis
    if args.since is not None:
        analysis = analysis.model_copy(update={"since_ms": args.since})

    forecast_updates: dict = {}
    if args.months is not None:
        forecast_updates["months"] = args.months
    if args.btc_price is not None:
        forecast_updates["btc_price_usd"] = args.btc_price
    forecast = settings.forecast.model_copy(update=forecast_updates)

    return settings.model_copy(update={"analysis": analysis, "forecast": forecast})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = apply_overrides(AppSettings(), args)
    setup_logging(settings.log_level)

    with structlog.contextvars.bound_contextvars(snapshot=str(args.snapshot)):
        try:
            snapshot = load_snapshot(args.snapshot, settings.pricing)
        except StoicError as exc:
            logger.error("snapshot_load_failed", error=str(exc))
            print(f"error: {exc}", file=sys.stderr)
            return 1

        report = run_analysis(snapshot, settings)

    text = json.dumps(report.to_dict(), indent=2)

    if args.output is None:
        print(text)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("report_written", path=str(args.output))

    return 0


if __name__ == "__main__":
    sys.exit(main())
