"""Signal/threshold engine.

Walks the premium series oldest first and emits one ThresholdRecord per
date once a full moving-average window is available:

1. MA over the last ``window_size`` entries (valid values only).
2. Trend = current MA - MA of the preceding window (0 until it is full).
3. Base band nudged by trend: buy down / sell up as the trend rises.
4. Composite technical overlay once ``overlay_min_history`` valid values
   exist; a bullish composite pushes buy down and sell up, scaled by the
   band-width volatility factor.
5. Loose bounds [base * min_factor, base * max_factor].
6. Rate-of-change clamp against the prior date's value of the same
   threshold: |t(d) - t(d-1)| <= max_change_rate * |t(d-1)|.

The engine does not force buy < sell. An inverted band is logged and kept.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping

from kimp.config import ThresholdSettings
from kimp.logging import get_logger
from kimp.series.indicators import compute_composite_signal
from kimp.series.models import ThresholdRecord

logger = get_logger(__name__)


class _RollingWindow:
    """Fixed-size trailing window tracking the sum and count of valid values.

    ``push`` returns the entry evicted from the window (or None when the
    window was not full yet) so windows can be chained back to back.
    """

    def __init__(self, size: int) -> None:
        self._size = size
        self._entries: deque[float | None] = deque()
        self._sum = 0.0
        self._valid = 0

    def push(self, value: float | None) -> tuple[bool, float | None]:
        self._entries.append(value)
        if value is not None:
            self._sum += value
            self._valid += 1

        if len(self._entries) <= self._size:
            return False, None

        evicted = self._entries.popleft()
        if evicted is not None:
            self._sum -= evicted
            self._valid -= 1
        return True, evicted

    @property
    def full(self) -> bool:
        return len(self._entries) == self._size

    @property
    def average(self) -> float:
        # 0 for an all-missing window
        if self._valid == 0:
            return 0.0
        return self._sum / self._valid


def _bound(value: float, base: float, settings: ThresholdSettings) -> float:
    low, high = sorted((base * settings.min_factor, base * settings.max_factor))
    return min(max(value, low), high)


def _clamp_change(value: float, previous: float | None, max_change_rate: float) -> float:
    if previous is None:
        return value
    max_delta = abs(previous) * max_change_rate
    return min(max(value, previous - max_delta), previous + max_delta)


def compute_thresholds(
    premium: Mapping[str, float | None],
    settings: ThresholdSettings | None = None,
) -> dict[str, ThresholdRecord]:
    """Compute the per-date adaptive threshold band for a premium series.

    Args:
        premium: Premium (%) per date. None marks a date with no valid value;
            it occupies a window slot but does not count towards averages.
        settings: Engine parameters. Defaults to ThresholdSettings().

    Returns:
        Mapping date -> ThresholdRecord, oldest first. Empty when the series
        has fewer than ``window_size`` dates.
    """
    settings = settings or ThresholdSettings()
    window_size = settings.window_size

    dates = sorted(premium)
    if len(dates) < window_size:
        logger.debug("thresholds_insufficient_data", dates=len(dates), window_size=window_size)
        return {}

    current_window = _RollingWindow(window_size)
    previous_window = _RollingWindow(window_size)
    history: list[float] = []
    result: dict[str, ThresholdRecord] = {}
    prev_record: ThresholdRecord | None = None
    inverted: list[str] = []

    for date_key in dates:
        value = premium[date_key]
        if value is not None:
            history.append(value)

        evicted_any, evicted = current_window.push(value)
        if evicted_any:
            previous_window.push(evicted)

        if not current_window.full:
            continue

        moving_average = current_window.average
        trend = moving_average - previous_window.average if previous_window.full else 0.0

        buy = settings.base_buy - trend * settings.buy_trend_coefficient
        sell = settings.base_sell + trend * settings.sell_trend_coefficient

        if len(history) >= settings.overlay_min_history:
            signal = compute_composite_signal(history, settings)
            adjustment = signal.total * settings.adjustment_factor * signal.volatility_factor
            buy -= adjustment
            sell += adjustment

        buy = _bound(buy, settings.base_buy, settings)
        sell = _bound(sell, settings.base_sell, settings)

        if prev_record is not None:
            buy = _clamp_change(buy, prev_record.buy_threshold, settings.max_change_rate)
            sell = _clamp_change(sell, prev_record.sell_threshold, settings.max_change_rate)

        if buy >= sell:
            inverted.append(date_key)

        record = ThresholdRecord(
            buy_threshold=buy,
            sell_threshold=sell,
            trend=trend,
            moving_average5=moving_average,
        )
        result[date_key] = record
        prev_record = record

    if inverted:
        logger.warning("threshold_band_inverted", dates=inverted)

    logger.info(
        "thresholds_computed",
        dates=len(dates),
        records=len(result),
        first=next(iter(result), None),
        last=next(reversed(result), None) if result else None,
    )
    return result
