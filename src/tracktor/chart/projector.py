"""Pure mappings between track domains, zoom windows and pixel space.

A *ratio* is a position in ``[0, 1]`` along a domain's full span; the visible
zoom window is a pair of ratios ``view_start < view_end``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from tracktor.errors import DomainConversionError, OutOfRangeError
from tracktor.geo.primitives import clamp, lerp, unlerp
from tracktor.track.models import Domain, Track

CHART_PADDING = 10.0  # px on each side of the plot area


def project_axis(
    value: float,
    domain_min: float,
    domain_max: float,
    pixel_span: float,
    view_start: float,
    view_end: float,
) -> float:
    """Horizontal pixel coordinate of *value* inside the zoom window."""
    ratio = unlerp(value, domain_min, domain_max)
    ratio_zoomed = unlerp(ratio, view_start, view_end)
    return lerp(CHART_PADDING, pixel_span + CHART_PADDING, ratio_zoomed)


def project_y(value: float, lo: float, hi: float, height: float) -> float:
    """Vertical pixel coordinate (0 at the top) of *value*."""
    return lerp(height, 0, unlerp(value, lo, hi)) + 0.5


def crisp(coordinate: float) -> float:
    """Snap to a pixel centre so 1 px lines render sharp."""
    return math.floor(coordinate) + 0.5


def calc_tick_interval(
    nice_values: Sequence[float], value_range: float, max_tick_count: float
) -> float:
    """Smallest of *nice_values* giving at most *max_tick_count* ticks."""
    if not nice_values:
        raise ValueError("nice_values must not be empty")
    for interval in nice_values:
        if math.floor(value_range / interval) <= max_tick_count:
            return interval
    return nice_values[-1]


def zoom_window(
    view_start: float, view_end: float, position: float, delta: float
) -> tuple[float, float]:
    """Zoom the window around *position* (a ratio of the window).

    The span is multiplied by ``2 ** delta``: negative *delta* zooms in.
    The result is clamped to ``[0, 1]``.
    """
    span = view_end - view_start
    difference = span - span * 2 ** delta
    return (
        max(view_start + difference * position, 0.0),
        min(view_end - difference * (1 - position), 1.0),
    )


def cursor_index(track: Track, view_start: float, view_end: float, cursor_ratio: float) -> int:
    """Index of the point under a cursor placed at *cursor_ratio* of the window."""
    if not track:
        raise OutOfRangeError("Track is empty")
    n = len(track)
    ratio_zoomed = lerp(view_start, view_end, cursor_ratio)
    return int(clamp(math.floor(n * ratio_zoomed), 0, n - 1))


def point_index_by_distance(track: Track, distance: float) -> int:
    """Index whose cumulative distance is nearest *distance* (first wins on ties)."""
    if not track:
        raise OutOfRangeError("Track is empty")
    best_index = 0
    best_error = math.inf
    for i, p in enumerate(track):
        error = abs(distance - p.distance)
        if error < best_error:
            best_error = error
            best_index = i
    return best_index


def domain_index(track: Track, ratio: float, domain: Domain) -> int:
    """Index of the point at *ratio* of the track along *domain*.

    ``time``: ``round(ratio * (n - 1))`` (halves round up).
    ``distance``: nearest cumulative distance to ``ratio`` of the total.
    """
    if not track:
        raise OutOfRangeError("Track is empty")
    ratio = clamp(ratio, 0.0, 1.0)
    if Domain(domain) is Domain.TIME:
        return math.floor((len(track) - 1) * ratio + 0.5)

    first = track[0].distance
    total = track[-1].distance - first
    return point_index_by_distance(track, first + total * ratio)


def convert_ratio(track: Track, ratio: float, source: Domain, target: Domain) -> float:
    """Re-express a *source*-domain ratio as a *target*-domain ratio.

    The point at *ratio* is located in the source domain and its coordinate
    re-normalized against the target domain's span.  Index quantization
    means a round trip is exact only to within one sample.

    Raises:
        DomainConversionError: If the target (or distance) span is zero.
    """
    source = Domain(source)
    target = Domain(target)
    if source is target:
        return clamp(ratio, 0.0, 1.0)
    if len(track) < 2:
        raise DomainConversionError("Need at least 2 points to convert ratios")

    first, last = track[0], track[-1]
    total_distance = last.distance - first.distance
    if total_distance <= 0:
        raise DomainConversionError("Track has zero total distance")

    index = domain_index(track, ratio, source)
    point = track[index]
    if target is Domain.DISTANCE:
        converted = (point.distance - first.distance) / total_distance
    else:
        converted = unlerp(point.time, first.time, last.time)
    return clamp(converted, 0.0, 1.0)
