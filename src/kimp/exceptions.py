"""Custom exceptions for the premium tracker.

A blob that does not exist is not an error (it reads as an empty series),
and neither is an LLM reply that is not JSON. Everything here aborts the
current pass and is surfaced to the caller.
"""


class KimpError(Exception):
    """Base exception for all premium tracker errors."""


class UpstreamFetchError(KimpError):
    """Raised when a price or rate source cannot be fetched."""


class StoreReadError(KimpError):
    """Raised when the blob store fails for a reason other than not-found."""


class StoreWriteError(KimpError):
    """Raised when writing a blob back to the store fails."""


class StrategyGenerationError(KimpError):
    """Raised when the LLM collaborator itself cannot be reached."""


class MissingStrategyError(KimpError):
    """Raised when a decision needs a strategy record and none is stored."""
