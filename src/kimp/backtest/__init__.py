"""Threshold back-test engine and parameter sweep."""

from kimp.backtest.engine import run_backtest
from kimp.backtest.models import BacktestMetrics, SweepEntry, SweepResult
from kimp.backtest.sweep import DEFAULT_PARAM_GRID, ParameterSweep, score_metrics

__all__ = [
    "BacktestMetrics",
    "DEFAULT_PARAM_GRID",
    "ParameterSweep",
    "SweepEntry",
    "SweepResult",
    "run_backtest",
    "score_metrics",
]
