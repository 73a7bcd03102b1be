"""Shared test fixtures for the premium tracker."""

from unittest.mock import AsyncMock

import pytest

from kimp.config import AppSettings, StoreSettings, ThresholdSettings
from kimp.dates import canonical_today, days_ago
from kimp.store.blob import MemoryBlobStore
from kimp.store.series_store import SeriesStore
from kimp.strategy.llm import LLMClient

TZ = "Asia/Seoul"


class FakeLLM(LLMClient):
    """Returns a canned reply and records every prompt it receives."""

    def __init__(self, reply: str = "{}") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def recent_dates(n: int) -> list[str]:
    """The last ``n`` canonical date keys ending today, oldest first."""
    today = canonical_today(TZ)
    return [days_ago(today, offset) for offset in range(n - 1, -1, -1)]


def make_source(series: dict[str, float] | None = None, name: str = "fake") -> AsyncMock:
    """AsyncMock standing in for a SeriesSource."""
    source = AsyncMock()
    source.name = name
    source.fetch.return_value = dict(series or {})
    return source


@pytest.fixture
def settings() -> AppSettings:
    """AppSettings with an in-memory store and the canonical test zone."""
    return AppSettings(
        log_level="DEBUG",
        timezone=TZ,
        store=StoreSettings(backend="memory"),
        threshold=ThresholdSettings(),
    )


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def series_store(blob_store: MemoryBlobStore) -> SeriesStore:
    return SeriesStore(blob_store)
