"""Capital flow accounting and income breakdown.

Robot P&L is what the account earned beyond the capital put into it:

    net_external_flow = deposits - withdrawals
    robot_pnl = current_balance - net_external_flow
    roi = robot_pnl / net_external_flow

ROI is None (undefined) when net external capital is zero or negative;
it is not reported as 0.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from stoic.models import (
    PNL_CATEGORIES,
    ZERO,
    LedgerCategory,
    LedgerEvent,
    NormalizedRecord,
)


@dataclass(frozen=True)
class CapitalFlowSummary:
    """BTC-valued totals of capital flows and the resulting robot P&L."""

    total_deposits_btc: Decimal
    total_withdrawals_btc: Decimal
    total_transfers_in_btc: Decimal
    total_transfers_out_btc: Decimal
    deposit_count: int
    withdrawal_count: int
    transfer_in_count: int
    transfer_out_count: int
    unconvertible_count: int
    current_balance_btc: Decimal
    net_external_flow_btc: Decimal
    robot_pnl_btc: Decimal
    roi: Decimal | None

    def to_dict(self) -> dict:
        return {
            "total_deposits_btc": str(self.total_deposits_btc),
            "total_withdrawals_btc": str(self.total_withdrawals_btc),
            "total_transfers_in_btc": str(self.total_transfers_in_btc),
            "total_transfers_out_btc": str(self.total_transfers_out_btc),
            "deposit_count": self.deposit_count,
            "withdrawal_count": self.withdrawal_count,
            "transfer_in_count": self.transfer_in_count,
            "transfer_out_count": self.transfer_out_count,
            "unconvertible_count": self.unconvertible_count,
            "current_balance_btc": str(self.current_balance_btc),
            "net_external_flow_btc": str(self.net_external_flow_btc),
            "robot_pnl_btc": str(self.robot_pnl_btc),
            "roi": str(self.roi) if self.roi is not None else None,
        }


def summarize_capital_flows(
    records: Iterable[NormalizedRecord],
    current_balance: Decimal,
) -> CapitalFlowSummary:
    """Total deposits, withdrawals and transfers and derive robot P&L and ROI.

    Args:
        records: Normalized records; P&L categories are ignored.
        current_balance: Authoritative current account balance in BTC.

    Returns:
        CapitalFlowSummary. Withdrawal and transfer totals are positive
        magnitudes regardless of the sign the exchange reported.
    """
    totals: dict[LedgerCategory, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[LedgerCategory, int] = defaultdict(int)
    unconvertible = 0

    for record in records:
        if record.category in PNL_CATEGORIES:
            continue
        totals[record.category] += abs(record.btc_amount)
        counts[record.category] += 1
        if not record.convertible:
            unconvertible += 1

    deposits = totals[LedgerCategory.DEPOSIT]
    withdrawals = totals[LedgerCategory.WITHDRAWAL]
    net_flow = deposits - withdrawals
    robot_pnl = current_balance - net_flow

    return CapitalFlowSummary(
        total_deposits_btc=deposits,
        total_withdrawals_btc=withdrawals,
        total_transfers_in_btc=totals[LedgerCategory.TRANSFER_IN],
        total_transfers_out_btc=totals[LedgerCategory.TRANSFER_OUT],
        deposit_count=counts[LedgerCategory.DEPOSIT],
        withdrawal_count=counts[LedgerCategory.WITHDRAWAL],
        transfer_in_count=counts[LedgerCategory.TRANSFER_IN],
        transfer_out_count=counts[LedgerCategory.TRANSFER_OUT],
        unconvertible_count=unconvertible,
        current_balance_btc=current_balance,
        net_external_flow_btc=net_flow,
        robot_pnl_btc=robot_pnl,
        roi=robot_pnl / net_flow if net_flow > ZERO else None,
    )


def income_by_category(
    events: Iterable[LedgerEvent],
    other_income: Mapping[str, Decimal] | None = None,
) -> dict[str, Decimal]:
    """Sum native income amounts per income type.

    Mirrors the exchange's own income report: amounts are summed in their
    settlement asset without conversion. P&L categories come from ``events``;
    ``other_income`` adds the pre-summed types that never enter P&L
    (insurance clear, referral kickback, ...).

    Returns:
        Dict mapping income type to summed amount, only for types seen.
    """
    totals: dict[str, Decimal] = {}
    for event in events:
        if event.category not in PNL_CATEGORIES:
            continue
        key = event.category.value
        totals[key] = totals.get(key, ZERO) + event.amount
    for income_type, amount in (other_income or {}).items():
        totals[income_type] = totals.get(income_type, ZERO) + amount
    return totals
