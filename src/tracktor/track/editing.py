"""Range deletion and undo history for an edited Track."""

from __future__ import annotations

import copy

from tracktor.errors import InsufficientDataError, OutOfRangeError
from tracktor.track.models import PartialTrack, Track


def delete_range(track: Track, start_index: int, end_index: int) -> PartialTrack:
    """Remove points ``start_index..end_index`` (inclusive).

    The remainder is returned as a PartialTrack; normalizing it again
    re-samples the removed time span by interpolating across the gap.

    Raises:
        OutOfRangeError: If the indices are outside *track* or inverted.
        InsufficientDataError: If fewer than 2 points would remain.
    """
    n = len(track)
    if not 0 <= start_index <= end_index < n:
        raise OutOfRangeError(
            f"Invalid deletion range [{start_index}, {end_index}] for {n} point(s)"
        )
    remainder = track[:start_index] + track[end_index + 1:]
    if len(remainder) < 2:
        raise InsufficientDataError(
            f"Deleting [{start_index}, {end_index}] would leave {len(remainder)} point(s)"
        )
    return [p.to_partial() for p in remainder]


class TrackHistory:
    """Bounded stack of Track snapshots for undo.

    Args:
        max_depth: Oldest snapshots are dropped beyond this depth.
    """

    def __init__(self, max_depth: int = 50) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self.max_depth = max_depth
        self._snapshots: list[Track] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    def push(self, track: Track) -> None:
        """Store a deep copy of *track*."""
        self._snapshots.append(copy.deepcopy(track))
        if len(self._snapshots) > self.max_depth:
            del self._snapshots[0]

    def pop(self) -> Track | None:
        """Return the most recent snapshot, or ``None`` when empty."""
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()
