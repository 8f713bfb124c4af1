"""Account snapshot loading.

A snapshot is one JSON document captured by the data collector:

    {
      "generated_at": 1717200000000,
      "balance_btc": "1.25",
      "futures_balances": [{"asset": "USDT", "balance": "120.5"}, ...],
      "futures_account": {"totalUnrealizedProfit": "-3.2"},
      "spot_balances": [{"asset": "ETH", "free": "1.5", "locked": "0"}, ...],
      "prices": [{"symbol": "BTCUSDT", "price": "60000"}, ...],
      "klines": [[open_time, open, high, low, close, ...], ...],
      "deposits": [...],
      "withdrawals": [...],
      "transfers_in": [...],
      "transfers_out": [...],
      "income": [...]
    }

The current balance is ``balance_btc`` when given. Otherwise it is valued
from the wallet sections at spot prices: futures BTC, plus futures USDT and
unrealized P&L converted through BTCUSDT, plus every spot balance. One of the
two must be present; list sections default to empty.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from stoic.config import PricingSettings
from stoic.exceptions import SnapshotError
from stoic.ingest.binance import (
    parse_daily_klines,
    parse_deposits,
    parse_futures_balances,
    parse_spot_balances,
    parse_ticker_prices,
    parse_transfers,
    parse_withdrawals,
    split_income,
    to_decimal,
    to_timestamp_ms,
)
from stoic.logging import get_logger
from stoic.models import ZERO, LedgerCategory, LedgerEvent, PriceSample
from stoic.pricing.index import PriceIndex

logger = get_logger(__name__)

_LIST_SECTIONS = (
    "klines",
    "deposits",
    "withdrawals",
    "transfers_in",
    "transfers_out",
    "income",
    "futures_balances",
    "spot_balances",
)
_WALLET_SECTIONS = ("futures_balances", "futures_account", "spot_balances")


@dataclass(frozen=True)
class AccountSnapshot:
    """Everything the analysis needs, parsed into domain models."""

    generated_at_ms: int | None
    balance_btc: Decimal
    spot_prices: dict[str, Decimal]
    price_samples: tuple[PriceSample, ...]
    events: tuple[LedgerEvent, ...]
    # Native totals of futures income types outside trading P&L.
    other_income: dict[str, Decimal] = field(default_factory=dict)

    @property
    def event_count(self) -> int:
        return len(self.events)


def _section(document: dict[str, Any], key: str) -> list[Any]:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"{key}: expected a list, got {type(value).__name__}")
    return value


def value_account_btc(
    futures_balances: Mapping[str, Decimal],
    unrealized_pnl: Decimal,
    spot_balances: Mapping[str, Decimal],
    index: PriceIndex,
) -> Decimal:
    """Total account value in BTC at spot prices.

    Futures BTC counts as is; the futures quote-asset balance plus unrealized
    P&L (both in USDT) converts through the BTC spot price. Other futures
    assets are ignored. Spot balances without a conversion path contribute 0.
    """
    base, quote = index.base_asset, index.quote_asset

    total = futures_balances.get(base, ZERO)
    total += index.convert(quote, futures_balances.get(quote, ZERO) + unrealized_pnl)

    unconvertible: list[str] = []
    for asset, amount in spot_balances.items():
        converted = index.convert_or_none(asset, amount)
        if converted is None:
            unconvertible.append(asset)
            continue
        total += converted

    if unconvertible:
        logger.warning("spot_balances_unvalued", assets=sorted(unconvertible))
    return total


def _balance_from_wallets(
    document: dict[str, Any],
    sections: dict[str, list[Any]],
    spot_prices: dict[str, Decimal],
    pricing: PricingSettings | None,
) -> Decimal:
    account = document.get("futures_account") or {}
    if not isinstance(account, Mapping):
        raise SnapshotError(f"futures_account: expected an object, got {type(account).__name__}")
    unrealized = to_decimal(account.get("totalUnrealizedProfit", "0"), "futures_account.totalUnrealizedProfit")

    balance = value_account_btc(
        parse_futures_balances(sections["futures_balances"]),
        unrealized,
        parse_spot_balances(sections["spot_balances"]),
        PriceIndex((), spot_prices, pricing),
    )
    logger.debug("balance_valued_from_wallets", balance_btc=balance)
    return balance


def parse_snapshot(document: Any, pricing: PricingSettings | None = None) -> AccountSnapshot:
    """Build an AccountSnapshot from an already decoded JSON document.

    Args:
        document: Decoded snapshot JSON.
        pricing: Asset names used when valuing wallet balances.

    Raises:
        SnapshotError: If the document is not an object, neither
            ``balance_btc`` nor any wallet section is present, or any section
            is malformed.
    """
    if not isinstance(document, dict):
        raise SnapshotError(f"snapshot: expected a JSON object, got {type(document).__name__}")
    if "balance_btc" not in document and not any(key in document for key in _WALLET_SECTIONS):
        raise SnapshotError("snapshot: missing field 'balance_btc' and no wallet balances to value")

    sections = {key: _section(document, key) for key in _LIST_SECTIONS}

    raw_prices = document.get("prices") or {}
    if not isinstance(raw_prices, (list, dict)):
        raise SnapshotError(f"prices: expected a list or object, got {type(raw_prices).__name__}")
    spot_prices = parse_ticker_prices(raw_prices)

    income_events, other_income = split_income(sections["income"])
    events = [
        *parse_deposits(sections["deposits"]),
        *parse_withdrawals(sections["withdrawals"]),
        *parse_transfers(sections["transfers_in"], LedgerCategory.TRANSFER_IN),
        *parse_transfers(sections["transfers_out"], LedgerCategory.TRANSFER_OUT),
        *income_events,
    ]
    events.sort(key=lambda e: e.timestamp_ms)

    if "balance_btc" in document:
        balance = to_decimal(document["balance_btc"], "balance_btc")
    else:
        balance = _balance_from_wallets(document, sections, spot_prices, pricing)

    generated_at = document.get("generated_at")
    return AccountSnapshot(
        generated_at_ms=to_timestamp_ms(generated_at, "generated_at") if generated_at is not None else None,
        balance_btc=balance,
        spot_prices=spot_prices,
        price_samples=tuple(parse_daily_klines(sections["klines"])),
        events=tuple(events),
        other_income=other_income,
    )


def load_snapshot(path: str | Path, pricing: PricingSettings | None = None) -> AccountSnapshot:
    """Read and parse a snapshot file.

    Raises:
        SnapshotError: If the file cannot be read, is not valid JSON, or is
            structurally malformed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"cannot read snapshot {path}: {exc}") from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"invalid JSON in {path}: {exc}") from exc

    snapshot = parse_snapshot(document, pricing)
    logger.info(
        "snapshot_loaded",
        path=str(path),
        events=snapshot.event_count,
        price_samples=len(snapshot.price_samples),
        balance_btc=str(snapshot.balance_btc),
    )
    return snapshot
