"""Ledger layer -- BTC normalization of raw events and capital flow accounting."""

from stoic.ledger.flows import CapitalFlowSummary, income_by_category, summarize_capital_flows
from stoic.ledger.normalizer import (
    flow_records,
    normalize_event,
    normalize_events,
    pnl_records,
    since,
)

__all__ = [
    "CapitalFlowSummary",
    "flow_records",
    "income_by_category",
    "normalize_event",
    "normalize_events",
    "pnl_records",
    "since",
]
