"""Series merge engine.

Merges a freshly fetched window into the stored history of a series.
The incoming window is authoritative for every date it contains; dates it
does not contain keep their stored value. Results are new dicts ordered
most recent first, the persisted order.
"""

from collections.abc import Mapping
from typing import TypeVar

from kimp.dates import date_range
from kimp.logging import get_logger
from kimp.series.models import TimeSeries

logger = get_logger(__name__)

V = TypeVar("V")


def sort_descending(series: Mapping[str, V]) -> dict[str, V]:
    """Return a copy of ``series`` ordered by date key, most recent first."""
    return {key: series[key] for key in sorted(series, reverse=True)}


def merge_series(
    existing: Mapping[str, float] | None,
    incoming: Mapping[str, float],
) -> TimeSeries:
    """Merge ``incoming`` over ``existing``.

    ``existing`` may be None (no stored object yet) and is then treated as
    an empty series. The result does not depend on the iteration order of
    either input.

    Args:
        existing: Stored history.
        incoming: Freshly fetched window.

    Returns:
        New series sorted descending by date.
    """
    merged: dict[str, float] = dict(existing or {})
    overwritten = sum(1 for key in incoming if key in merged and merged[key] != incoming[key])
    added = sum(1 for key in incoming if key not in merged)
    merged.update(incoming)

    logger.debug(
        "series_merged",
        existing=len(existing or {}),
        incoming=len(incoming),
        added=added,
        overwritten=overwritten,
        total=len(merged),
    )
    return sort_descending(merged)


def backfill_series(
    series: Mapping[str, float],
    since: str,
    until: str,
) -> TimeSeries:
    """Carry the last known value forward over missing dates in [since, until].

    Used for raw rate/price series (weekends, holidays). The carried value
    is seeded from the latest date before ``since`` when one exists; dates
    before the first known value stay absent. The premium series never goes
    through this: a gap in any input stays a gap there.

    Returns:
        New series sorted descending by date.
    """
    filled: dict[str, float] = dict(series)

    earlier = [key for key in series if key < since]
    previous: float | None = series[max(earlier)] if earlier else None

    filled_dates: list[str] = []
    for key in date_range(since, until):
        if key in filled:
            previous = filled[key]
        elif previous is not None:
            filled[key] = previous
            filled_dates.append(key)

    if filled_dates:
        logger.info("series_backfilled", dates=filled_dates)
    return sort_descending(filled)


def slice_since(series: Mapping[str, V], since: str) -> dict[str, V]:
    """Entries dated on or after ``since``, most recent first."""
    return sort_descending({key: value for key, value in series.items() if key >= since})
