"""Daily exchange prices via ccxt async.

Wraps a ccxt.async_support exchange (Upbit for the domestic leg, Bybit for
the international leg by default) and maps daily OHLCV candles to a
date -> close series in the canonical timezone.

Daily candles open at 00:00 UTC on both default venues; with the canonical
zone east of UTC that instant still falls on the same calendar date.
"""

import ccxt.async_support

from kimp.dates import canonical_today, date_key_from_ms, days_ago, start_of_day_ms
from kimp.exceptions import UpstreamFetchError
from kimp.logging import get_logger
from kimp.series.models import TimeSeries, normalize_value
from kimp.sources.base import SeriesSource

logger = get_logger(__name__)

#: Largest page Upbit serves for candles; Bybit allows more.
_PAGE_LIMIT = 200


class ExchangeCandleSource(SeriesSource):
    """Daily close prices for one symbol on one exchange.

    Args:
        exchange_id: ccxt exchange id (e.g. "upbit", "bybit").
        symbol: ccxt unified spot symbol (e.g. "BTC/KRW").
        tz: Canonical timezone for date keys.
        exchange: Optional pre-built ccxt exchange (tests inject a mock).
    """

    def __init__(
        self,
        exchange_id: str,
        symbol: str,
        tz: str,
        exchange: ccxt.async_support.Exchange | None = None,
    ) -> None:
        self.name = f"{exchange_id}:{symbol}"
        self._symbol = symbol
        self._tz = tz
        if exchange is None:
            exchange_class = getattr(ccxt.async_support, exchange_id)
            exchange = exchange_class(
                {
                    "enableRateLimit": True,
                    "options": {"defaultType": "spot"},
                }
            )
        self._exchange = exchange

    async def fetch(self, lookback_days: int) -> TimeSeries:
        """Fetch daily closes from ``today - lookback_days`` onward, paginating forward."""
        since_key = days_ago(canonical_today(self._tz), lookback_days)
        cursor = start_of_day_ms(since_key, self._tz)
        series: TimeSeries = {}

        while True:
            try:
                batch = await self._exchange.fetch_ohlcv(
                    self._symbol, "1d", since=cursor, limit=_PAGE_LIMIT
                )
            except ccxt.async_support.BaseError as e:
                logger.error("candle_fetch_failed", source=self.name, error=str(e))
                raise UpstreamFetchError(f"{self.name} candle fetch failed: {e}") from e

            if not batch:
                break

            # Later candles for the same date win
            for candle in sorted(batch, key=lambda c: c[0]):
                close = normalize_value(candle[4])
                if close is not None:
                    series[date_key_from_ms(candle[0], self._tz)] = close

            last_ts = max(c[0] for c in batch)
            if len(batch) < _PAGE_LIMIT or last_ts < cursor:
                break
            cursor = last_ts + 1

        logger.info("candles_fetched", source=self.name, dates=len(series), since=since_key)
        return series

    async def fetch_last_price(self) -> float:
        """Current last traded price, used by the monitoring check."""
        try:
            ticker = await self._exchange.fetch_ticker(self._symbol)
        except ccxt.async_support.BaseError as e:
            raise UpstreamFetchError(f"{self.name} ticker fetch failed: {e}") from e

        price = normalize_value(ticker.get("last"))
        if price is None or price <= 0:
            raise UpstreamFetchError(f"{self.name} ticker has no last price")
        return price

    async def close(self) -> None:
        """Clean up ccxt async resources. Must be called to avoid resource leaks."""
        await self._exchange.close()
