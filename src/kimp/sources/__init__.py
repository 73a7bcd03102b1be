"""Upstream daily series sources (exchange candles, FX rate page)."""

from kimp.sources.base import SeriesSource
from kimp.sources.exchange import ExchangeCandleSource
from kimp.sources.fx import NaverRateSource, parse_rate_page

__all__ = [
    "ExchangeCandleSource",
    "NaverRateSource",
    "SeriesSource",
    "parse_rate_page",
]
