from __future__ import annotations

from .coverage import (
    CoverageReport,
    SourceCoverage,
    build_coverage_report,
    log_coverage,
)
from .formatter import print_result, render_json

__all__ = [
    "CoverageReport",
    "SourceCoverage",
    "build_coverage_report",
    "log_coverage",
    "print_result",
    "render_json",
]
