"""Ledger event normalization to BTC (one record per event).

P&L income (realized P&L, funding, commission) is settled in the quote
currency, so it is valued at the historical BTC price of the event's day,
falling back to the current spot price. Capital flows are valued through
the general spot conversion path of the price index.

Unconvertible events are kept with ``btc_amount == 0`` and
``convertible=False`` so callers can count them.
"""

from collections.abc import Iterable

from stoic.logging import get_logger
from stoic.models import (
    FLOW_CATEGORIES,
    PNL_CATEGORIES,
    ZERO,
    LedgerEvent,
    NormalizedRecord,
)
from stoic.pricing.index import PriceIndex

logger = get_logger(__name__)


def normalize_event(event: LedgerEvent, index: PriceIndex) -> NormalizedRecord:
    """Value a single ledger event in BTC.

    Args:
        event: Raw ledger event in its native asset.
        index: Price index for historical and spot lookups.

    Returns:
        NormalizedRecord with the same timestamp and category.
    """
    if event.category in PNL_CATEGORIES:
        if event.asset.upper() == index.base_asset:
            return NormalizedRecord(event.timestamp_ms, event.category, event.amount)
        if event.amount == ZERO:
            return NormalizedRecord(event.timestamp_ms, event.category, ZERO)
        price = index.historical_btc_price(event.timestamp_ms)
        if price is None:
            return NormalizedRecord(event.timestamp_ms, event.category, ZERO, convertible=False)
        return NormalizedRecord(event.timestamp_ms, event.category, event.amount / price)

    btc = index.convert_or_none(event.asset, event.amount)
    if btc is None:
        return NormalizedRecord(event.timestamp_ms, event.category, ZERO, convertible=False)
    return NormalizedRecord(event.timestamp_ms, event.category, btc)


def normalize_events(
    events: Iterable[LedgerEvent],
    index: PriceIndex,
) -> list[NormalizedRecord]:
    """Normalize events in input order, logging a summary of unconvertible ones."""
    records = [normalize_event(event, index) for event in events]

    unconvertible = [r for r in records if not r.convertible]
    if unconvertible:
        logger.warning(
            "unconvertible_ledger_events",
            count=len(unconvertible),
            categories=sorted({r.category.value for r in unconvertible}),
        )
    return records


def pnl_records(records: Iterable[NormalizedRecord]) -> list[NormalizedRecord]:
    """Records that count toward trading performance."""
    return [r for r in records if r.category in PNL_CATEGORIES]


def flow_records(records: Iterable[NormalizedRecord]) -> list[NormalizedRecord]:
    """Records that move external or internal capital."""
    return [r for r in records if r.category in FLOW_CATEGORIES]


def since(records: Iterable[NormalizedRecord], since_ms: int | None) -> list[NormalizedRecord]:
    """Keep records at or after ``since_ms`` (all records when None)."""
    if since_ms is None:
        return list(records)
    return [r for r in records if r.timestamp_ms >= since_ms]
