"""Ingestion boundary -- Binance payload parsers and the snapshot loader."""

from stoic.ingest.binance import (
    TRANSFER_TYPES,
    parse_daily_klines,
    parse_deposits,
    parse_futures_balances,
    parse_income,
    parse_spot_balances,
    parse_ticker_prices,
    parse_transfers,
    parse_withdrawals,
    split_income,
)
from stoic.ingest.snapshot import AccountSnapshot, load_snapshot, parse_snapshot, value_account_btc

__all__ = [
    "TRANSFER_TYPES",
    "AccountSnapshot",
    "load_snapshot",
    "parse_daily_klines",
    "parse_deposits",
    "parse_futures_balances",
    "parse_income",
    "parse_snapshot",
    "parse_spot_balances",
    "parse_ticker_prices",
    "parse_transfers",
    "parse_withdrawals",
    "split_income",
    "value_account_btc",
]
