"""Tests for ExchangeCandleSource with a mocked ccxt exchange."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import ccxt.async_support
import pytest

from kimp.dates import canonical_today, days_ago
from kimp.exceptions import UpstreamFetchError
from kimp.sources.exchange import ExchangeCandleSource

TZ = "Asia/Seoul"


def _candle(day: str, close: float) -> list[float]:
    """Daily candle opening at 00:00 UTC on ``day``."""
    ts = int(datetime.fromisoformat(day).replace(tzinfo=timezone.utc).timestamp() * 1000)
    return [ts, close - 1, close + 1, close - 2, close, 10.0]


def _source(exchange: AsyncMock) -> ExchangeCandleSource:
    return ExchangeCandleSource("upbit", "BTC/KRW", TZ, exchange=exchange)


class TestFetch:
    """Tests for ExchangeCandleSource.fetch."""

    @pytest.mark.asyncio
    async def test_maps_candles_to_closes(self) -> None:
        exchange = AsyncMock()
        exchange.fetch_ohlcv.return_value = [
            _candle("2024-01-01", 95000000.0),
            _candle("2024-01-02", 96000000.0),
        ]

        series = await _source(exchange).fetch(30)

        assert series == {"2024-01-01": 95000000.0, "2024-01-02": 96000000.0}
        args, kwargs = exchange.fetch_ohlcv.call_args
        assert args == ("BTC/KRW", "1d")
        assert kwargs["limit"] == 200

    @pytest.mark.asyncio
    async def test_paginates_full_pages(self) -> None:
        start = date.fromisoformat(days_ago(canonical_today(TZ), 400))
        first_page = [
            _candle((start + timedelta(days=i)).isoformat(), 100.0 + i) for i in range(200)
        ]
        last_day = (start + timedelta(days=200)).isoformat()
        second_page = [_candle(last_day, 500.0)]
        exchange = AsyncMock()
        exchange.fetch_ohlcv.side_effect = [first_page, second_page]

        series = await _source(exchange).fetch(400)

        assert exchange.fetch_ohlcv.await_count == 2
        assert len(series) == 201
        assert series[last_day] == 500.0
        second_since = exchange.fetch_ohlcv.call_args_list[1].kwargs["since"]
        assert second_since == first_page[-1][0] + 1

    @pytest.mark.asyncio
    async def test_empty_response(self) -> None:
        exchange = AsyncMock()
        exchange.fetch_ohlcv.return_value = []
        assert await _source(exchange).fetch(30) == {}

    @pytest.mark.asyncio
    async def test_network_error_raises_upstream_error(self) -> None:
        exchange = AsyncMock()
        exchange.fetch_ohlcv.side_effect = ccxt.async_support.NetworkError("timeout")

        with pytest.raises(UpstreamFetchError):
            await _source(exchange).fetch(30)


class TestLastPrice:
    """Tests for ExchangeCandleSource.fetch_last_price."""

    @pytest.mark.asyncio
    async def test_returns_last(self) -> None:
        exchange = AsyncMock()
        exchange.fetch_ticker.return_value = {"symbol": "BTC/KRW", "last": 97000000}
        assert await _source(exchange).fetch_last_price() == 97000000.0

    @pytest.mark.asyncio
    async def test_missing_last_raises(self) -> None:
        exchange = AsyncMock()
        exchange.fetch_ticker.return_value = {"symbol": "BTC/KRW", "last": None}
        with pytest.raises(UpstreamFetchError):
            await _source(exchange).fetch_last_price()


@pytest.mark.asyncio
async def test_close_closes_exchange() -> None:
    exchange = AsyncMock()
    await _source(exchange).close()
    exchange.close.assert_awaited_once()
