"""Parameter sweep engine for grid search over threshold configurations.

Generates combinations of parameter values via itertools.product (capped at
``max_combinations``), back-tests each one, and ranks them by

    score = total_return - 0.5 * max_drawdown + 0.1 * trades
"""

from collections.abc import Callable, Mapping
from itertools import islice, product
from typing import Any

from kimp.backtest.engine import run_backtest
from kimp.backtest.models import SweepEntry, SweepResult
from kimp.config import ThresholdSettings
from kimp.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PARAM_GRID: dict[str, list[float]] = {
    "buy_trend_coefficient": [0.05, 0.1, 0.2, 0.3, 0.5, 0.8, 1.0, 1.5, 2.0],
    "sell_trend_coefficient": [0.05, 0.1, 0.2, 0.3, 0.5, 0.8, 1.0, 1.5, 2.0],
    "weight_macd": [0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
    "weight_rsi": [0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
    "weight_band": [0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
    "weight_ma": [0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
    "adjustment_factor": [0.02, 0.05, 0.08, 0.1, 0.15, 0.2, 0.25, 0.3],
}


def score_metrics(total_return: float, max_drawdown: float, trades: int) -> float:
    """Ranking score rewarding return and activity, penalizing drawdown."""
    return total_return - max_drawdown * 0.5 + trades * 0.1


class ParameterSweep:
    """Grid search over ThresholdSettings fields.

    Args:
        prices: Domestic price history.
        premium: Premium history.
        base_settings: Settings every combination starts from.
        initial_capital: Starting cash per back-test.
    """

    def __init__(
        self,
        prices: Mapping[str, float],
        premium: Mapping[str, float],
        base_settings: ThresholdSettings | None = None,
        initial_capital: float = 10000.0,
    ) -> None:
        self._prices = prices
        self._premium = premium
        self._base = base_settings or ThresholdSettings()
        self._initial_capital = initial_capital

    def run(
        self,
        param_grid: Mapping[str, list[Any]] | None = None,
        max_combinations: int = 500,
        top_n: int = 10,
        progress_callback: Callable | None = None,
    ) -> SweepResult:
        """Back-test up to ``max_combinations`` parameter combinations.

        Raises:
            ValueError: If a param_grid key is not a ThresholdSettings field.
        """
        grid = dict(param_grid or DEFAULT_PARAM_GRID)
        for key in grid:
            if key not in ThresholdSettings.model_fields:
                raise ValueError(f"Invalid parameter '{key}': not a ThresholdSettings field")

        keys = list(grid)
        combinations = list(islice(product(*grid.values()), max_combinations))
        total = len(combinations)
        logger.info("sweep_starting", parameters=keys, total_combinations=total)

        entries: list[SweepEntry] = []
        best: SweepEntry | None = None

        for idx, combo in enumerate(combinations):
            params = dict(zip(keys, combo))
            settings = self._base.model_copy(update=params)
            metrics = run_backtest(self._prices, self._premium, settings, self._initial_capital)
            entry = SweepEntry(
                params=params,
                metrics=metrics,
                score=score_metrics(metrics.total_return, metrics.max_drawdown, metrics.trades),
            )
            entries.append(entry)
            if best is None or entry.score > best.score:
                best = entry

            if progress_callback is not None:
                progress_callback(idx + 1, total, params, metrics)

        entries.sort(key=lambda e: e.metrics.total_return, reverse=True)

        logger.info(
            "sweep_complete",
            total_combinations=total,
            best_score=best.score if best else None,
            best_params=best.params if best else None,
        )
        return SweepResult(best=best, top_results=entries[:top_n], total_combinations=total)
