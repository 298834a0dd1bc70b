"""Error taxonomy shared by every Tracktor module.

All errors derive from :class:`TracktorError`.  Input-shaped failures also
derive from :class:`ValueError` so callers that only care about "bad input"
can catch the builtin.
"""

from __future__ import annotations


class TracktorError(Exception):
    """Root of all Tracktor errors."""


class MalformedInputError(TracktorError, ValueError):
    """Input track data is malformed (bad shape, non-monotonic time, ...)."""


class InsufficientDataError(MalformedInputError):
    """Too few points to resample or summarise a track."""


class NoPositionDataError(MalformedInputError):
    """Hole filling found no point with a position to anchor on."""


class TileFetchError(TracktorError):
    """An elevation tile could not be fetched or decoded.

    Raised for the whole batch: no partial elevation results are returned.
    """

    def __init__(self, message: str, key: tuple[int, int] | None = None) -> None:
        super().__init__(message)
        self.key = key


class OutOfRangeError(TracktorError, IndexError):
    """Query for an index or tile outside the loaded bounds."""


class DomainConversionError(TracktorError, ValueError):
    """A domain span is degenerate (e.g. zero total distance)."""
