"""Technical indicators over a premium history (oldest first).

Each ``*_signal`` function reduces an indicator to a direction:
+1 bullish, -1 bearish, 0 neutral. A bullish composite pushes the buy
threshold down and the sell threshold up.
"""

from __future__ import annotations

from statistics import fmean, pstdev
from typing import TYPE_CHECKING

from kimp.series.models import CompositeSignal

if TYPE_CHECKING:
    from kimp.config import ThresholdSettings


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def compute_ema(values: list[float], span: int) -> list[float]:
    """Compute Exponential Moving Average over a list of values.

    Uses the standard recursive formula:
        alpha = 2 / (span + 1)
        EMA_t = alpha * value_t + (1 - alpha) * EMA_{t-1}

    First EMA value = first input value (standard initialization).

    Args:
        values: Ordered list of values (oldest first).
        span: Number of periods for EMA smoothing.

    Returns:
        List of EMA values, same length as input. Empty list if input is empty.
    """
    if not values:
        return []

    alpha = 2 / (span + 1)
    ema = [values[0]]
    for v in values[1:]:
        ema.append(alpha * v + (1 - alpha) * ema[-1])
    return ema


def compute_macd_signal(values: list[float], fast: int, slow: int, signal: int) -> int:
    """Direction of the MACD line relative to its signal line.

    Returns 0 when there are fewer than ``slow`` values.
    """
    if len(values) < slow:
        return 0
    fast_ema = compute_ema(values, fast)
    slow_ema = compute_ema(values, slow)
    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_line = compute_ema(macd_line, signal)
    return _sign(macd_line[-1] - signal_line[-1])


def compute_rsi(values: list[float], period: int) -> float:
    """Relative strength index from simple average gain/loss.

    Uses the last ``period`` changes. A flat window is neutral (50) and a
    window with gains but no losses is 100.
    """
    window = values[-(period + 1):]
    if len(window) < 2:
        return 50.0

    gains = 0.0
    losses = 0.0
    for prev, curr in zip(window, window[1:]):
        change = curr - prev
        if change > 0:
            gains += change
        else:
            losses -= change

    changes = len(window) - 1
    avg_gain = gains / changes
    avg_loss = losses / changes
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def compute_rsi_signal(
    values: list[float], period: int, oversold: float, overbought: float
) -> int:
    """Oversold is bullish (+1), overbought is bearish (-1)."""
    rsi = compute_rsi(values, period)
    if rsi < oversold:
        return 1
    if rsi > overbought:
        return -1
    return 0


def compute_band(values: list[float], period: int, k: float) -> tuple[float, float, float]:
    """Rolling mean +/- k * population stddev over the last ``period`` values.

    Returns:
        (mean, lower, upper). All zero for an empty input.
    """
    window = values[-period:]
    if not window:
        return 0.0, 0.0, 0.0
    mean = fmean(window)
    std = pstdev(window) if len(window) > 1 else 0.0
    return mean, mean - k * std, mean + k * std


def compute_band_signal(values: list[float], period: int, k: float) -> int:
    """Breakout below the band is bullish (+1), above is bearish (-1)."""
    if not values:
        return 0
    _, lower, upper = compute_band(values, period, k)
    current = values[-1]
    if current < lower:
        return 1
    if current > upper:
        return -1
    return 0


def compute_ma_cross_signal(values: list[float], short: int, long: int) -> int:
    """Short moving average above the long one is bullish.

    Returns 0 when there are fewer than ``long`` values.
    """
    if len(values) < long:
        return 0
    return _sign(fmean(values[-short:]) - fmean(values[-long:]))


def compute_composite_signal(history: list[float], settings: ThresholdSettings) -> CompositeSignal:
    """Combine the four directional signals over the trailing history.

    Only the last ``overlay_min_history`` values are used. The volatility
    factor is the band width relative to ``volatility_reference``, clamped
    to [volatility_min, volatility_max].
    """
    recent = history[-settings.overlay_min_history:]

    macd = compute_macd_signal(
        recent, settings.macd_fast, settings.macd_slow, settings.macd_signal
    )
    rsi = compute_rsi_signal(
        recent, settings.rsi_period, settings.rsi_oversold, settings.rsi_overbought
    )
    band = compute_band_signal(recent, settings.band_period, settings.band_k)
    ma_cross = compute_ma_cross_signal(recent, settings.ma_short, settings.ma_long)

    total = (
        settings.weight_macd * macd
        + settings.weight_rsi * rsi
        + settings.weight_band * band
        + settings.weight_ma * ma_cross
    )

    _, lower, upper = compute_band(recent, settings.band_period, settings.band_k)
    if settings.volatility_reference > 0:
        volatility_factor = (upper - lower) / settings.volatility_reference
    else:
        volatility_factor = 1.0
    volatility_factor = min(max(volatility_factor, settings.volatility_min), settings.volatility_max)

    return CompositeSignal(
        macd=macd,
        rsi=rsi,
        band=band,
        ma_cross=ma_cross,
        total=total,
        volatility_factor=volatility_factor,
    )
