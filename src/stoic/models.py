"""Shared ledger data models for the performance analytics pipeline.

CRITICAL: All monetary values use Decimal. Never use float for prices, amounts, or balances.
Timestamps are Unix milliseconds throughout.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

DAY_MS = 86_400_000
WEEK_MS = 7 * DAY_MS

ZERO = Decimal("0")


class LedgerCategory(str, Enum):
    """Ledger event classification."""

    REALIZED_PNL = "REALIZED_PNL"
    FUNDING_FEE = "FUNDING_FEE"
    COMMISSION = "COMMISSION"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"


#: Categories that make up trading performance (robot P&L).
PNL_CATEGORIES = frozenset(
    {
        LedgerCategory.REALIZED_PNL,
        LedgerCategory.FUNDING_FEE,
        LedgerCategory.COMMISSION,
    }
)

#: Categories that move capital in or out of the account.
FLOW_CATEGORIES = frozenset(
    {
        LedgerCategory.DEPOSIT,
        LedgerCategory.WITHDRAWAL,
        LedgerCategory.TRANSFER_IN,
        LedgerCategory.TRANSFER_OUT,
    }
)


@dataclass(frozen=True)
class PriceSample:
    """A single daily BTC price candle (open and close only)."""

    timestamp_ms: int
    open: Decimal
    close: Decimal


@dataclass(frozen=True)
class LedgerEvent:
    """A raw ledger event in its native asset.

    Amounts are signed as the exchange reports them: commissions and paid
    funding are negative, withdrawals and transfers carry positive amounts
    and are signed by their category.
    """

    timestamp_ms: int
    category: LedgerCategory
    asset: str
    amount: Decimal


@dataclass(frozen=True)
class NormalizedRecord:
    """A ledger event valued in BTC.

    ``convertible`` is False when no rate existed for the asset; such records
    carry ``btc_amount == 0`` and are counted rather than dropped.
    """

    timestamp_ms: int
    category: LedgerCategory
    btc_amount: Decimal
    convertible: bool = True

    @property
    def is_pnl(self) -> bool:
        return self.category in PNL_CATEGORIES

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "category": self.category.value,
            "btc_amount": str(self.btc_amount),
            "convertible": self.convertible,
        }
