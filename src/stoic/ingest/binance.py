"""Parsers for Binance REST payloads already retrieved by the data collector.

Payload shapes (one row each):
  - ticker price:  {"symbol": "BTCUSDT", "price": "60000.00"}
  - daily kline:   [open_time, open, high, low, close, volume, close_time, ...]
  - deposit:       {"coin": "BTC", "amount": "0.1", "insertTime": 1599621997000}
  - withdrawal:    {"coin": "USDT", "amount": "50", "applyTime": "2024-10-12 11:12:02"}
  - transfer:      {"asset": "USDT", "amount": "10", "type": "MAIN_UMFUTURE", "timestamp": 1544433328000}
  - futures income {"incomeType": "FUNDING_FEE", "income": "-0.375", "asset": "USDT", "time": 1570608000000}
  - futures balance {"asset": "USDT", "balance": "120.5"}
  - spot balance   {"asset": "ETH", "free": "1.5", "locked": "0.5"}

Numbers are converted with Decimal(str(x)) so float-typed JSON values keep
their printed digits. Malformed rows raise SnapshotError.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from stoic.exceptions import SnapshotError
from stoic.logging import get_logger
from stoic.models import LedgerCategory, LedgerEvent, PriceSample

logger = get_logger(__name__)

#: Universal transfer types between the spot wallet and USD-M futures.
TRANSFER_TYPES: dict[str, LedgerCategory] = {
    "MAIN_UMFUTURE": LedgerCategory.TRANSFER_IN,
    "UMFUTURE_MAIN": LedgerCategory.TRANSFER_OUT,
}

_INCOME_TYPES = {
    "REALIZED_PNL": LedgerCategory.REALIZED_PNL,
    "FUNDING_FEE": LedgerCategory.FUNDING_FEE,
    "COMMISSION": LedgerCategory.COMMISSION,
}

_APPLY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_decimal(value: Any, field: str) -> Decimal:
    """Convert a JSON scalar to Decimal, raising SnapshotError on bad input."""
    if value is None or isinstance(value, bool):
        raise SnapshotError(f"{field}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise SnapshotError(f"{field}: invalid number {value!r}") from exc
    if not result.is_finite():
        raise SnapshotError(f"{field}: non-finite number {value!r}")
    return result


def to_timestamp_ms(value: Any, field: str) -> int:
    """Accept epoch milliseconds (int or numeric string) or "YYYY-MM-DD HH:MM:SS" UTC."""
    if isinstance(value, bool) or value is None:
        raise SnapshotError(f"{field}: expected a timestamp, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SnapshotError(f"{field}: non-finite timestamp {value!r}")
        return int(value)
    if isinstance(value, str):
        if value.isdigit():
            return int(value)
        try:
            parsed = datetime.strptime(value, _APPLY_TIME_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError as exc:
            raise SnapshotError(f"{field}: unrecognised timestamp {value!r}") from exc
        return int(parsed.timestamp() * 1000)
    raise SnapshotError(f"{field}: unsupported timestamp type {type(value).__name__}")


def _as_mapping(row: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(row, Mapping):
        raise SnapshotError(f"{kind}: expected an object, got {type(row).__name__}")
    return row


def _require(row: Mapping[str, Any], key: str, kind: str) -> Any:
    row = _as_mapping(row, kind)
    if key not in row:
        raise SnapshotError(f"{kind}: missing field {key!r}")
    return row[key]


def parse_ticker_prices(payload: Iterable[Mapping[str, Any]] | Mapping[str, Any]) -> dict[str, Decimal]:
    """Parse ticker prices into a symbol -> price map.

    Accepts the list form returned by the ticker endpoint or an already
    flattened {"BTCUSDT": "60000"} mapping.
    """
    if isinstance(payload, Mapping):
        return {str(symbol): to_decimal(price, f"prices.{symbol}") for symbol, price in payload.items()}

    prices: dict[str, Decimal] = {}
    for row in payload:
        symbol = str(_require(row, "symbol", "ticker"))
        prices[symbol] = to_decimal(_require(row, "price", "ticker"), f"ticker.{symbol}")
    return prices


def parse_daily_klines(rows: Iterable[Any]) -> list[PriceSample]:
    """Parse kline arrays (or {"time", "open", "close"} objects) into price samples."""
    samples: list[PriceSample] = []
    for row in rows:
        if isinstance(row, Mapping):
            samples.append(
                PriceSample(
                    timestamp_ms=to_timestamp_ms(_require(row, "time", "kline"), "kline.time"),
                    open=to_decimal(_require(row, "open", "kline"), "kline.open"),
                    close=to_decimal(_require(row, "close", "kline"), "kline.close"),
                )
            )
            continue
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            raise SnapshotError(f"kline: expected an array of at least 5 fields, got {row!r}")
        samples.append(
            PriceSample(
                timestamp_ms=to_timestamp_ms(row[0], "kline.open_time"),
                open=to_decimal(row[1], "kline.open"),
                close=to_decimal(row[4], "kline.close"),
            )
        )
    return samples


def parse_deposits(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEvent]:
    return [
        LedgerEvent(
            timestamp_ms=to_timestamp_ms(_require(row, "insertTime", "deposit"), "deposit.insertTime"),
            category=LedgerCategory.DEPOSIT,
            asset=str(_require(row, "coin", "deposit")).upper(),
            amount=to_decimal(_require(row, "amount", "deposit"), "deposit.amount"),
        )
        for row in rows
    ]


def parse_withdrawals(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEvent]:
    events: list[LedgerEvent] = []
    for row in rows:
        row = _as_mapping(row, "withdrawal")
        raw_time = row.get("completeTime") or _require(row, "applyTime", "withdrawal")
        events.append(
            LedgerEvent(
                timestamp_ms=to_timestamp_ms(raw_time, "withdrawal.time"),
                category=LedgerCategory.WITHDRAWAL,
                asset=str(_require(row, "coin", "withdrawal")).upper(),
                amount=to_decimal(_require(row, "amount", "withdrawal"), "withdrawal.amount"),
            )
        )
    return events


def parse_transfers(
    rows: Iterable[Mapping[str, Any]],
    direction: LedgerCategory | None = None,
) -> list[LedgerEvent]:
    """Parse wallet transfers, taking the direction from the transfer ``type``.

    Args:
        rows: Transfer rows.
        direction: Category used when a row has no known ``type``.

    Raises:
        SnapshotError: If a row's direction cannot be determined.
    """
    events: list[LedgerEvent] = []
    for row in rows:
        row = _as_mapping(row, "transfer")
        category = TRANSFER_TYPES.get(str(row.get("type", "")), direction)
        if category is None:
            raise SnapshotError(f"transfer: unknown type {row.get('type')!r}")
        events.append(
            LedgerEvent(
                timestamp_ms=to_timestamp_ms(_require(row, "timestamp", "transfer"), "transfer.timestamp"),
                category=category,
                asset=str(_require(row, "asset", "transfer")).upper(),
                amount=to_decimal(_require(row, "amount", "transfer"), "transfer.amount"),
            )
        )
    return events


def split_income(rows: Iterable[Mapping[str, Any]]) -> tuple[list[LedgerEvent], dict[str, Decimal]]:
    """Split futures income into P&L events and native totals for every other type.

    Realized P&L, funding and commission become ledger events. Other income
    types (insurance clear, referral kickback, ...) do not count toward
    trading P&L; they are only summed per type in their settlement asset.

    Returns:
        (events, other_totals) where ``other_totals`` maps income type to sum.
    """
    events: list[LedgerEvent] = []
    other: dict[str, Decimal] = {}
    for row in rows:
        income_type = str(_require(row, "incomeType", "income"))
        amount = to_decimal(_require(row, "income", "income"), "income.income")
        category = _INCOME_TYPES.get(income_type)
        if category is None:
            other[income_type] = other.get(income_type, Decimal(0)) + amount
            continue
        events.append(
            LedgerEvent(
                timestamp_ms=to_timestamp_ms(_require(row, "time", "income"), "income.time"),
                category=category,
                asset=str(row.get("asset") or "USDT").upper(),
                amount=amount,
            )
        )

    if other:
        logger.debug("non_pnl_income_types", types=sorted(other))
    return events, other


def parse_income(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEvent]:
    """Parse futures income rows, keeping realized P&L, funding and commission."""
    events, _ = split_income(rows)
    return events


def parse_futures_balances(rows: Iterable[Mapping[str, Any]]) -> dict[str, Decimal]:
    """Parse futures wallet balances ({"asset": "USDT", "balance": "120.5"}) per asset."""
    balances: dict[str, Decimal] = {}
    for row in rows:
        asset = str(_require(row, "asset", "futures_balance")).upper()
        balances[asset] = to_decimal(_require(row, "balance", "futures_balance"), f"futures_balance.{asset}")
    return balances


def parse_spot_balances(rows: Iterable[Mapping[str, Any]]) -> dict[str, Decimal]:
    """Parse spot account balances, summing ``free`` and ``locked`` per asset.

    Zero balances are dropped.
    """
    balances: dict[str, Decimal] = {}
    for row in rows:
        row = _as_mapping(row, "spot_balance")
        asset = str(_require(row, "asset", "spot_balance")).upper()
        free = to_decimal(row.get("free", "0"), f"spot_balance.{asset}.free")
        locked = to_decimal(row.get("locked", "0"), f"spot_balance.{asset}.locked")
        if free or locked:
            balances[asset] = balances.get(asset, Decimal(0)) + free + locked
    return balances
