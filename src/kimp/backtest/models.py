"""Data models for threshold back-tests and parameter sweeps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BacktestMetrics:
    """Outcome of replaying the threshold band over stored history.

    Percentages are in percent units (12.5 == 12.5%).
    """

    total_return: float
    trades: int  # buys + sells
    closed_trades: int  # completed buy -> sell round trips
    win_rate: float  # % of closed trades sold above their cost
    max_drawdown: float
    final_equity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalReturn": self.total_return,
            "trades": self.trades,
            "closedTrades": self.closed_trades,
            "winRate": self.win_rate,
            "maxDrawdown": self.max_drawdown,
            "finalEquity": self.final_equity,
        }


@dataclass
class SweepEntry:
    """One parameter combination and its back-test outcome."""

    params: dict[str, Any]
    metrics: BacktestMetrics
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"params": self.params, "result": self.metrics.to_dict(), "score": self.score}


@dataclass
class SweepResult:
    """Grid search outcome: the best combination plus the top entries by return."""

    best: SweepEntry | None
    top_results: list[SweepEntry] = field(default_factory=list)
    total_combinations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "bestParams": self.best.params if self.best else None,
            "bestResult": self.best.metrics.to_dict() if self.best else None,
            "topResults": [entry.to_dict() for entry in self.top_results],
            "totalCombinations": self.total_combinations,
        }
