"""USD/KRW daily conversion rate scraped from the Naver FX daily quote table."""

import httpx
from bs4 import BeautifulSoup

from kimp.dates import canonical_today, days_ago
from kimp.exceptions import UpstreamFetchError
from kimp.logging import get_logger
from kimp.series.models import TimeSeries, normalize_value
from kimp.sources.base import SeriesSource

logger = get_logger(__name__)


def parse_rate_page(html: str) -> list[tuple[str, float]]:
    """Extract (date key, rate) rows from one quote table page.

    Dates come as ``YYYY.MM.DD`` and rates with thousands separators.
    Rows that do not parse are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    rows: list[tuple[str, float]] = []
    for tr in soup.select("table.tbl_exchange tbody tr"):
        cells = tr.find_all("td")
        if len(cells) < 2:
            continue
        date_key = cells[0].get_text(strip=True).replace(".", "-")
        rate = normalize_value(cells[1].get_text(strip=True))
        if len(date_key) == 10 and rate is not None:
            rows.append((date_key, rate))
    return rows


class NaverRateSource(SeriesSource):
    """Pages through the daily quote table newest first until the lookback boundary.

    Args:
        url: Quote table URL without the ``page`` parameter.
        tz: Canonical timezone for "today".
        max_pages: Hard stop on pagination.
        client: Optional httpx client (tests inject a MockTransport client).
    """

    name = "naver:USDKRW"

    def __init__(
        self,
        url: str,
        tz: str,
        max_pages: int = 100,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._tz = tz
        self._max_pages = max_pages
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"User-Agent": "Mozilla/5.0"}
        )

    async def _fetch_page(self, page: int) -> str:
        try:
            response = await self._client.get(self._url, params={"page": page})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("rate_page_fetch_failed", page=page, error=str(e))
            raise UpstreamFetchError(f"Rate page {page} fetch failed: {e}") from e
        return response.text

    async def fetch(self, lookback_days: int) -> TimeSeries:
        since_key = days_ago(canonical_today(self._tz), lookback_days)
        series: TimeSeries = {}

        for page in range(1, self._max_pages + 1):
            rows = parse_rate_page(await self._fetch_page(page))
            if not rows:
                break

            done = False
            for date_key, rate in rows:
                if date_key < since_key:
                    done = True
                    break
                series.setdefault(date_key, rate)
            if done:
                break

        logger.info("rates_fetched", source=self.name, dates=len(series), since=since_key)
        return series

    async def close(self) -> None:
        await self._client.aclose()
