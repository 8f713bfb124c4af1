"""Equity layer -- reconstructed equity curve and drawdown series."""

from stoic.equity.drawdown import DrawdownPoint, drawdown_series, max_drawdown
from stoic.equity.reconstructor import EquityPoint, baseline_equity, reconstruct_equity

__all__ = [
    "DrawdownPoint",
    "EquityPoint",
    "baseline_equity",
    "drawdown_series",
    "max_drawdown",
    "reconstruct_equity",
]
