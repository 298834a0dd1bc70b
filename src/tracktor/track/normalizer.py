"""TrackNormalizer — PartialTrack → uniform, enriched Track.

Pipeline:
1. Fill position holes by interpolating projected coordinates across each
   run of missing positions.
2. Resample onto a fixed time grid (one point per ``step_s``).
3. Load elevation tiles for every output point, then derive cumulative
   distance, speed and elevation in a single pass.

Normalization is all-or-nothing: on error no Track is returned.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import replace

from tracktor.elevation.cache import ElevationCache
from tracktor.errors import InsufficientDataError, MalformedInputError, NoPositionDataError
from tracktor.geo.models import Position
from tracktor.geo.primitives import haversine, lerp, unlerp
from tracktor.track.models import PartialTrack, PartialTrackPoint, Track, TrackPoint

_logger = logging.getLogger(__name__)

_KPH_PER_MPS = 3.6


def _validate_times(points: Sequence[PartialTrackPoint]) -> None:
    """Raise :class:`MalformedInputError` unless times are finite and non-decreasing."""
    prev = -math.inf
    for i, p in enumerate(points):
        if not math.isfinite(p.time):
            raise MalformedInputError(f"Point {i} has a non-finite time: {p.time!r}")
        if p.time < prev:
            raise MalformedInputError(
                f"Time goes backwards at point {i} ({p.time!r} < {prev!r})"
            )
        prev = p.time


def fill_position_holes(points: Sequence[PartialTrackPoint]) -> PartialTrack:
    """Return a copy of *points* in which every point has a position.

    A hole is a maximal run of points without ``position``.  It is bounded by
    the last known point before it (virtual index ``-1`` at the head) and the
    first known point after it (``len(points)`` at the tail).  Projected
    ``(x, y)`` is interpolated by index ratio between the bounds; a hole with
    only one real bound is filled with that bound's position.

    Raises:
        NoPositionDataError: If no point has a position at all.
    """
    holes: list[tuple[int, int]] = []
    hole_start: int | None = None

    for i, p in enumerate(points):
        if p.position is None and hole_start is None:
            hole_start = i - 1
        elif p.position is not None and hole_start is not None:
            holes.append((hole_start, i))
            hole_start = None

    if hole_start is not None:
        if hole_start == -1:
            raise NoPositionDataError("Track has no point with a position")
        holes.append((hole_start, len(points)))

    filled = [replace(p) for p in points]

    for start, end in holes:
        start_pos = filled[end].position if start == -1 else filled[start].position
        end_pos = filled[start].position if end == len(filled) else filled[end].position
        if start_pos is None or end_pos is None:
            raise NoPositionDataError(f"Hole {start + 1}..{end - 1} has no known neighbour")

        for i in range(start + 1, end):
            ratio = unlerp(i, start, end)
            filled[i].position = Position.from_plane(
                lerp(start_pos.x, end_pos.x, ratio),
                lerp(start_pos.y, end_pos.y, ratio),
            )

    if holes:
        _logger.debug("Filled %d position hole(s)", len(holes))
    return filled


def resample(points: Sequence[PartialTrackPoint], step_s: float = 1.0) -> Track:
    """Resample *points* onto the grid ``k * step_s``.

    Output covers ``ceil(first / step_s)`` to ``floor(last / step_s)``
    inclusive.  Positions are interpolated in the projected plane by time
    ratio between the bracketing input samples; the bracketing cursor only
    moves forward.  ``elevation``, ``speed`` and ``distance`` are left at 0
    for :func:`derive_metrics` to fill in.

    Raises:
        InsufficientDataError: If fewer than 2 points are given or no grid
            time falls inside the input span.
        MalformedInputError: If times decrease or a point lacks a position.
    """
    if len(points) < 2:
        raise InsufficientDataError(f"Need at least 2 points to resample, got {len(points)}")
    _validate_times(points)
    for i, p in enumerate(points):
        if p.position is None:
            raise MalformedInputError(f"Point {i} has no position; fill holes first")

    first_k = math.ceil(points[0].time / step_s)
    last_k = math.floor(points[-1].time / step_s)
    if last_k < first_k:
        raise InsufficientDataError("Track is shorter than one resampling step")

    result: Track = []
    last = len(points) - 1
    index = 1

    for k in range(first_k, last_k + 1):
        t = k * step_s

        while index < last and t > points[index].time:
            index += 1

        prev = points[index - 1]
        curr = points[index]
        span = curr.time - prev.time
        ratio = 1.0 if span == 0 else (t - prev.time) / span

        result.append(TrackPoint(
            time=t,
            position=Position.from_plane(
                lerp(prev.position.x, curr.position.x, ratio),
                lerp(prev.position.y, curr.position.y, ratio),
            ),
            elevation=0.0,
            speed=0.0,
            distance=0.0,
        ))

    return result


def derive_metrics(track: Track, elevation_at: Callable[[float, float], float]) -> None:
    """Fill ``distance``, ``speed`` and ``elevation`` of *track* in place.

    The first point gets distance 0 and speed 0.
    """
    if not track:
        return

    first = track[0]
    first.elevation = elevation_at(first.position.x, first.position.y)
    first.distance = 0.0
    first.speed = 0.0

    cumulative = 0.0
    for prev, curr in zip(track, track[1:]):
        step = haversine(prev.position, curr.position)
        dt = curr.time - prev.time
        cumulative += step

        curr.speed = step / dt * _KPH_PER_MPS
        curr.distance = cumulative
        curr.elevation = elevation_at(curr.position.x, curr.position.y)


class TrackNormalizer:
    """Turns a PartialTrack into a uniformly-sampled, enriched Track.

    Args:
        cache: Elevation tile cache used for the elevation lookup.
        step_s: Resampling step in seconds.
    """

    def __init__(self, cache: ElevationCache, step_s: float = 1.0) -> None:
        if not step_s > 0:
            raise ValueError("step_s must be > 0")
        self.cache = cache
        self.step_s = step_s

    async def normalize(self, partial: Sequence[PartialTrackPoint]) -> Track:
        """Run hole filling, resampling and derivation.

        Raises:
            InsufficientDataError: Fewer than 2 input points.
            MalformedInputError: Non-monotonic or non-finite times.
            NoPositionDataError: No position anywhere in the input.
            TileFetchError: An elevation tile could not be loaded.
        """
        if len(partial) < 2:
            raise InsufficientDataError(f"Need at least 2 points, got {len(partial)}")
        _validate_times(partial)

        filled = fill_position_holes(partial)
        track = resample(filled, self.step_s)
        tiles = await self.cache.ensure_loaded(
            (p.position.x, p.position.y) for p in track
        )
        derive_metrics(track, tiles.elevation_at)

        _logger.info(
            "Normalized %d raw point(s) into %d point(s) over %d tile(s), %.0f m",
            len(partial), len(track), len(tiles), track[-1].distance,
        )
        return track


async def normalize(
    partial: Sequence[PartialTrackPoint],
    cache: ElevationCache,
    step_s: float = 1.0,
) -> Track:
    """Shortcut for ``TrackNormalizer(cache, step_s).normalize(partial)``."""
    return await TrackNormalizer(cache, step_s).normalize(partial)
