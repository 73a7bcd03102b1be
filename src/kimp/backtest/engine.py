"""Threshold back-test.

Replays compute_thresholds over stored price and premium history with a
single all-in/all-out position: buy the domestic asset when the premium is
at or below the day's buy threshold, sell when it is at or above the sell
threshold. Thresholds for a date use the premium up to and including that
date, as the live pass does.
"""

from collections.abc import Mapping

from kimp.backtest.models import BacktestMetrics
from kimp.config import ThresholdSettings
from kimp.series.thresholds import compute_thresholds


def run_backtest(
    prices: Mapping[str, float],
    premium: Mapping[str, float],
    settings: ThresholdSettings,
    initial_capital: float = 10000.0,
) -> BacktestMetrics:
    """Back-test one threshold configuration.

    Args:
        prices: Domestic price per date (the traded asset).
        premium: Premium (%) per date.
        settings: Threshold engine parameters under test.
        initial_capital: Starting cash.

    Returns:
        BacktestMetrics. A history too short for any threshold yields zero
        trades and zero return.
    """
    common = {key: premium[key] for key in premium if key in prices and prices[key] > 0}
    thresholds = compute_thresholds(common, settings)

    cash = initial_capital
    position = 0.0
    entry_cost = 0.0
    trades = 0
    closed = 0
    wins = 0
    peak = initial_capital
    max_drawdown = 0.0
    last_price = 0.0

    for date_key, band in thresholds.items():
        price = prices[date_key]
        value = common[date_key]
        last_price = price

        if position == 0 and value <= band.buy_threshold:
            position = cash / price
            entry_cost = cash
            cash = 0.0
            trades += 1
        elif position > 0 and value >= band.sell_threshold:
            proceeds = position * price
            if proceeds > entry_cost:
                wins += 1
            cash = proceeds
            position = 0.0
            trades += 1
            closed += 1

        equity = cash + position * price
        peak = max(peak, equity)
        if peak > 0:
            max_drawdown = max(max_drawdown, (peak - equity) / peak)

    final_equity = cash + position * last_price
    return BacktestMetrics(
        total_return=(final_equity - initial_capital) / initial_capital * 100,
        trades=trades,
        closed_trades=closed,
        win_rate=wins / closed * 100 if closed else 0.0,
        max_drawdown=max_drawdown * 100,
        final_equity=final_equity,
    )
