"""Custom exceptions for the performance analytics pipeline.

The analytics core degrades to neutral values instead of raising; these
exceptions belong to the ingestion boundary and to opt-in strict checks.
"""


class StoicError(Exception):
    """Base exception for all analytics errors."""


class SnapshotError(StoicError):
    """Raised when an account snapshot is missing fields or malformed."""


class EquityReconciliationError(StoicError):
    """Raised in strict mode when the rebuilt equity curve misses the known balance."""
