"""Typed JSON read/write layer over a BlobStore.

Series are stored as date-keyed JSON objects ordered most recent first,
thresholds as date-keyed objects of ThresholdRecord, strategy history as a
JSON array ordered most recent first. A missing object reads as empty.

Values are normalized on read, so legacy objects holding candle dicts
({"close": ...}) or numeric strings load as plain float series.
"""

import json
from collections.abc import Mapping
from typing import Any

from kimp.exceptions import StoreReadError
from kimp.logging import get_logger
from kimp.series.merge import sort_descending
from kimp.series.models import StrategyRecord, ThresholdRecord, TimeSeries, normalize_series
from kimp.store.blob import BlobStore

logger = get_logger(__name__)


def _dumps(payload: Any) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


class SeriesStore:
    """Whole-object persistence for series, thresholds and strategy history.

    Usage:
        store = SeriesStore(create_blob_store(settings.store))
        rates = await store.load_series("rate-history.json")
        await store.save_series("rate-history.json", merge_series(rates, fetched))
    """

    def __init__(self, blob_store: BlobStore) -> None:
        self._blob = blob_store

    async def _load_json(self, key: str) -> Any:
        data = await self._blob.get(key)
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            raise StoreReadError(f"Object {key} is not valid JSON") from e

    # ──────────────────────────────────────────────
    # Series
    # ──────────────────────────────────────────────

    async def load_series(self, key: str) -> TimeSeries:
        """Load a date-keyed series; empty when the object does not exist."""
        payload = await self._load_json(key)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise StoreReadError(f"Object {key} is not a date-keyed series")
        series = normalize_series(payload)
        if len(series) != len(payload):
            logger.warning(
                "series_values_dropped",
                key=key,
                dropped=len(payload) - len(series),
            )
        return series

    async def save_series(self, key: str, series: Mapping[str, float]) -> None:
        """Persist a full series, most recent date first."""
        await self._blob.put(key, _dumps(sort_descending(series)))
        logger.info("series_saved", key=key, dates=len(series))

    # ──────────────────────────────────────────────
    # Thresholds
    # ──────────────────────────────────────────────

    async def load_thresholds(self, key: str) -> dict[str, ThresholdRecord]:
        payload = await self._load_json(key)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise StoreReadError(f"Object {key} is not a date-keyed threshold series")
        try:
            return {
                date_key: ThresholdRecord.from_dict(record)
                for date_key, record in sort_descending(payload).items()
            }
        except (KeyError, TypeError, ValueError) as e:
            raise StoreReadError(f"Object {key} holds a malformed threshold record") from e

    async def save_thresholds(self, key: str, thresholds: Mapping[str, ThresholdRecord]) -> None:
        payload = {
            date_key: record.to_dict()
            for date_key, record in sort_descending(thresholds).items()
        }
        await self._blob.put(key, _dumps(payload))
        logger.info("thresholds_saved", key=key, dates=len(payload))

    # ──────────────────────────────────────────────
    # Strategy history
    # ──────────────────────────────────────────────

    async def load_strategies(self, key: str) -> list[StrategyRecord]:
        """Load the strategy history, most recent first.

        A single stored object is treated as a one-element history and an
        unreadable object as an empty one.
        """
        data = await self._blob.get(key)
        if data is None:
            return []
        try:
            payload = json.loads(data)
        except ValueError:
            logger.warning("strategy_history_unreadable", key=key)
            return []

        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            return []
        return [StrategyRecord.from_dict(item) for item in payload if isinstance(item, dict)]

    async def save_strategies(self, key: str, history: list[StrategyRecord]) -> None:
        await self._blob.put(key, _dumps([record.to_dict() for record in history]))
        logger.info("strategies_saved", key=key, records=len(history))

    # ──────────────────────────────────────────────
    # Text
    # ──────────────────────────────────────────────

    async def load_text(self, key: str) -> str | None:
        data = await self._blob.get(key)
        if data is None:
            return None
        return data.decode("utf-8")
