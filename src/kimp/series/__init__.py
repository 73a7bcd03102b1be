"""Time-series merge and signal engine.

Provides date-keyed series models, the merge/back-fill engine, premium
computation, technical indicators and the adaptive threshold engine.
"""

from kimp.series.merge import backfill_series, merge_series, slice_since, sort_descending
from kimp.series.models import (
    CompositeSignal,
    StrategyRecord,
    ThresholdRecord,
    TimeSeries,
    normalize_series,
    normalize_value,
)
from kimp.series.premium import compute_premium
from kimp.series.thresholds import compute_thresholds

__all__ = [
    "CompositeSignal",
    "StrategyRecord",
    "ThresholdRecord",
    "TimeSeries",
    "backfill_series",
    "compute_premium",
    "compute_thresholds",
    "merge_series",
    "normalize_series",
    "normalize_value",
    "slice_since",
    "sort_descending",
]
