"""Abstract series source interface.

A source returns a date -> value map for a lookback window. It may return
fewer dates than requested (short upstream history, holidays) and must
already have normalized upstream shapes into plain floats.
"""

from abc import ABC, abstractmethod

from kimp.series.models import TimeSeries


class SeriesSource(ABC):
    """Abstract base class for upstream daily series."""

    #: Short name used in logs and error messages.
    name: str = "source"

    @abstractmethod
    async def fetch(self, lookback_days: int) -> TimeSeries:
        """Fetch daily values for the last ``lookback_days`` days (inclusive of today).

        Raises:
            UpstreamFetchError: On network errors or error responses.
        """
        ...

    async def close(self) -> None:
        """Clean up resources."""
        return None
