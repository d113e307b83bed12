"""Multi-chain wallet balance aggregation."""

from __future__ import annotations

from .models import BalanceRecord, FetchOutcome, SourceDescriptor, SourceKind
from .pipeline.aggregate import (
    AggregationResult,
    BalanceAggregator,
    aggregate_balances,
)
from .registry import SourceRegistry, build_registry
from .report.coverage import CoverageReport
from .settings import ScanSettings

__all__ = [
    "AggregationResult",
    "BalanceAggregator",
    "BalanceRecord",
    "CoverageReport",
    "FetchOutcome",
    "ScanSettings",
    "SourceDescriptor",
    "SourceKind",
    "SourceRegistry",
    "aggregate_balances",
    "build_registry",
]
