"""Services built on top of the projection engine."""

from .reconciliation_service import (
    ReconciliationEngine,
    ReconciliationResult,
    TrackingOrderError,
    YearSummary,
)

__all__ = [
    "ReconciliationEngine",
    "ReconciliationResult",
    "TrackingOrderError",
    "YearSummary",
]
