"""Tests for the technical indicators feeding the threshold overlay."""

import pytest

from kimp.config import ThresholdSettings
from kimp.series.indicators import (
    compute_band,
    compute_band_signal,
    compute_composite_signal,
    compute_ema,
    compute_ma_cross_signal,
    compute_macd_signal,
    compute_rsi,
    compute_rsi_signal,
)


class TestComputeEma:
    """Tests for compute_ema."""

    def test_known_values(self) -> None:
        """Span 3 gives alpha 0.5."""
        result = compute_ema([1.0, 2.0, 3.0, 4.0, 5.0], span=3)
        assert result == pytest.approx([1.0, 1.5, 2.25, 3.125, 4.0625])

    def test_empty_input(self) -> None:
        assert compute_ema([], span=3) == []

    def test_constant_series(self) -> None:
        assert compute_ema([2.0] * 5, span=4) == pytest.approx([2.0] * 5)


class TestMacdSignal:
    """Tests for compute_macd_signal."""

    def test_rising_series_bullish(self) -> None:
        values = [float(v) for v in range(1, 31)]
        assert compute_macd_signal(values, fast=6, slow=13, signal=4) == 1

    def test_falling_series_bearish(self) -> None:
        values = [float(v) for v in range(30, 0, -1)]
        assert compute_macd_signal(values, fast=6, slow=13, signal=4) == -1

    def test_insufficient_history_neutral(self) -> None:
        values = [float(v) for v in range(12)]
        assert compute_macd_signal(values, fast=6, slow=13, signal=4) == 0

    def test_flat_series_neutral(self) -> None:
        assert compute_macd_signal([1.0] * 20, fast=6, slow=13, signal=4) == 0


class TestRsi:
    """Tests for compute_rsi and compute_rsi_signal."""

    def test_flat_window_is_neutral(self) -> None:
        assert compute_rsi([1.0] * 20, period=14) == 50.0

    def test_only_gains(self) -> None:
        assert compute_rsi([float(v) for v in range(20)], period=14) == 100.0

    def test_only_losses(self) -> None:
        assert compute_rsi([float(v) for v in range(20, 0, -1)], period=14) == pytest.approx(0.0)

    def test_balanced_changes(self) -> None:
        """Equal average gain and loss gives 50."""
        assert compute_rsi([1.0, 2.0] * 8, period=14) == pytest.approx(50.0)

    def test_single_value_neutral(self) -> None:
        assert compute_rsi([1.0], period=14) == 50.0

    def test_uses_only_trailing_period(self) -> None:
        """Old losses outside the window do not count."""
        values = [float(v) for v in range(40, 20, -1)] + [float(v) for v in range(20, 36)]
        assert compute_rsi(values, period=14) == 100.0

    def test_oversold_bullish(self) -> None:
        values = [float(v) for v in range(20, 0, -1)]
        assert compute_rsi_signal(values, 14, oversold=30, overbought=70) == 1

    def test_overbought_bearish(self) -> None:
        values = [float(v) for v in range(20)]
        assert compute_rsi_signal(values, 14, oversold=30, overbought=70) == -1

    def test_neutral_zone(self) -> None:
        assert compute_rsi_signal([1.0, 2.0] * 8, 14, oversold=30, overbought=70) == 0


class TestBand:
    """Tests for compute_band and compute_band_signal."""

    def test_band_values(self) -> None:
        mean, lower, upper = compute_band([1.0, 2.0, 3.0], period=3, k=2.0)
        std = (2 / 3) ** 0.5
        assert mean == pytest.approx(2.0)
        assert lower == pytest.approx(2.0 - 2 * std)
        assert upper == pytest.approx(2.0 + 2 * std)

    def test_band_uses_trailing_period(self) -> None:
        mean, _, _ = compute_band([100.0, 1.0, 1.0], period=2, k=2.0)
        assert mean == pytest.approx(1.0)

    def test_empty_band(self) -> None:
        assert compute_band([], period=20, k=2.0) == (0.0, 0.0, 0.0)

    def test_breakout_below_bullish(self) -> None:
        values = [1.0] * 19 + [-5.0]
        assert compute_band_signal(values, period=20, k=2.0) == 1

    def test_breakout_above_bearish(self) -> None:
        values = [1.0] * 19 + [7.0]
        assert compute_band_signal(values, period=20, k=2.0) == -1

    def test_inside_band_neutral(self) -> None:
        values = [1.0, 1.1] * 10
        assert compute_band_signal(values, period=20, k=2.0) == 0


class TestMaCross:
    """Tests for compute_ma_cross_signal."""

    def test_short_above_long_bullish(self) -> None:
        values = [float(v) for v in range(1, 21)]
        assert compute_ma_cross_signal(values, short=5, long=20) == 1

    def test_short_below_long_bearish(self) -> None:
        values = [float(v) for v in range(20, 0, -1)]
        assert compute_ma_cross_signal(values, short=5, long=20) == -1

    def test_equal_averages_neutral(self) -> None:
        assert compute_ma_cross_signal([1.0] * 20, short=5, long=20) == 0

    def test_insufficient_history_neutral(self) -> None:
        values = [float(v) for v in range(1, 20)]
        assert compute_ma_cross_signal(values, short=5, long=20) == 0


class TestCompositeSignal:
    """Tests for compute_composite_signal."""

    def test_flat_history_is_neutral(self) -> None:
        """All components neutral; zero band width clamps to the minimum factor."""
        signal = compute_composite_signal([1.0] * 20, ThresholdSettings())

        assert signal.total == 0
        assert (signal.macd, signal.rsi, signal.band, signal.ma_cross) == (0, 0, 0, 0)
        assert signal.volatility_factor == pytest.approx(0.5)

    def test_falling_history_weighted_total(self) -> None:
        """MACD and MA bearish, RSI oversold bullish, band neutral."""
        settings = ThresholdSettings()
        signal = compute_composite_signal([float(v) for v in range(20, 0, -1)], settings)

        assert signal.macd == -1
        assert signal.rsi == 1
        assert signal.band == 0
        assert signal.ma_cross == -1
        assert signal.total == pytest.approx(-0.3 + 0.25 - 0.2)
        assert signal.volatility_factor == pytest.approx(settings.volatility_max)

    def test_only_trailing_window_used(self) -> None:
        """Values older than overlay_min_history do not affect the result."""
        settings = ThresholdSettings()
        tail = [1.0, 1.1] * 10

        assert compute_composite_signal([50.0] * 30 + tail, settings) == compute_composite_signal(
            tail, settings
        )
