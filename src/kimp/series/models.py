"""Data models for date-keyed series, threshold records and strategy records.

TimeSeries values are plain floats keyed by ISO date strings. Persistence
order is descending (most recent first); windowed computation walks the
keys ascending.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

#: Date key (YYYY-MM-DD, canonical zone) -> numeric value.
TimeSeries = dict[str, float]


def normalize_value(raw: Any) -> float | None:
    """Map a heterogeneous upstream or legacy value into a float.

    Accepts raw numbers, numeric strings (thousands separators allowed) and
    candle-like dicts carrying ``close``, ``price`` or ``trade_price``.
    Returns None for anything unusable; callers drop those dates.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.replace(",", "").strip())
        except ValueError:
            return None
    if isinstance(raw, Mapping):
        for key in ("close", "price", "trade_price"):
            if raw.get(key) is not None:
                return normalize_value(raw[key])
    return None


def normalize_series(raw: Mapping[str, Any]) -> TimeSeries:
    """Normalize every value of a date-keyed mapping, dropping unusable ones."""
    series: TimeSeries = {}
    for date_key, value in raw.items():
        normalized = normalize_value(value)
        if normalized is not None:
            series[date_key] = normalized
    return series


@dataclass
class ThresholdRecord:
    """Adaptive buy/sell band for a single date."""

    buy_threshold: float
    sell_threshold: float
    trend: float
    moving_average5: float

    def to_dict(self) -> dict[str, float]:
        return {
            "buyThreshold": self.buy_threshold,
            "sellThreshold": self.sell_threshold,
            "trend": self.trend,
            "movingAverage5": self.moving_average5,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ThresholdRecord:
        return cls(
            buy_threshold=float(data["buyThreshold"]),
            sell_threshold=float(data["sellThreshold"]),
            trend=float(data.get("trend", 0.0)),
            moving_average5=float(data.get("movingAverage5", 0.0)),
        )


#: Keys of StrategyRecord that are modelled as fields; everything else the
#: LLM returns is preserved in ``extra``.
_STRATEGY_FIELDS = ("analysis_date", "buy_price", "sell_price", "expected_return", "summary")


@dataclass
class StrategyRecord:
    """One day's LLM trading recommendation.

    Persisted with snake_case keys inside a JSON array ordered most recent
    first. Numeric fields are None when the LLM omitted them or when the
    reply could not be parsed.
    """

    analysis_date: str | None
    buy_price: float | None = None
    sell_price: float | None = None
    expected_return: float | None = None
    summary: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "analysis_date": self.analysis_date,
                "buy_price": self.buy_price,
                "sell_price": self.sell_price,
                "expected_return": self.expected_return,
                "summary": self.summary,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StrategyRecord:
        analysis_date = data.get("analysis_date")
        summary = data.get("summary")
        return cls(
            analysis_date=str(analysis_date) if analysis_date else None,
            buy_price=normalize_value(data.get("buy_price")),
            sell_price=normalize_value(data.get("sell_price")),
            expected_return=normalize_value(data.get("expected_return")),
            summary=str(summary) if summary is not None else "",
            extra={k: v for k, v in data.items() if k not in _STRATEGY_FIELDS},
        )


@dataclass
class CompositeSignal:
    """Technical overlay breakdown over the trailing premium history.

    Each directional component is +1 (bullish), -1 (bearish) or 0.
    ``total`` is their weighted sum; ``volatility_factor`` scales the
    resulting threshold shift by the band width.
    """

    macd: int
    rsi: int
    band: int
    ma_cross: int
    total: float
    volatility_factor: float
