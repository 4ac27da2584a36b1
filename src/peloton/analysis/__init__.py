"""Analysis helpers built on normalized Peloton tables."""

from peloton.analysis.performance import (
    extract_max_named,
    extract_named,
    summarize_performance,
    zone_ratio,
)

__all__ = [
    "extract_named",
    "extract_max_named",
    "zone_ratio",
    "summarize_performance",
]
