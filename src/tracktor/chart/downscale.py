"""EnvelopeDownscaler — bounded (x, avg, min, max) samples for chart rendering.

For any track length and zoom window at most ``pixel_width + 1`` samples are
produced.  The speed series is smoothed by a forward and a backward
exponential moving average over the *whole* track so the visible window has
context on both sides; the average is the mean of the two, the envelope the
extrema of raw and smoothed values over the samples a pixel covers.

Smoothing is disabled (``alpha = 1``) when fewer than two raw points fall on
each pixel, so zoomed-in views keep full fidelity.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from tracktor.chart.projector import domain_index
from tracktor.errors import InsufficientDataError
from tracktor.geo.primitives import lerp, unlerp
from tracktor.track.models import Domain, Track

SMOOTHING_FACTOR = 2.0

Sample = tuple[float, float, float, float]
"""``(x, avg, min, max)`` where x is a timestamp or a distance."""


def _validate(track: Track, pixel_width: int, view_start: float, view_end: float) -> None:
    if not track:
        raise InsufficientDataError("Cannot downscale an empty track")
    if pixel_width < 1:
        raise ValueError("pixel_width must be >= 1")
    if not 0.0 <= view_start < view_end <= 1.0:
        raise ValueError(f"Invalid view window [{view_start}, {view_end}]")


def smoothing_alpha(point_count: int, pixel_width: int) -> float:
    """EMA weight for *point_count* visible points over *pixel_width* pixels."""
    if point_count < 2 * pixel_width:
        return 1.0
    points_per_px = point_count / pixel_width
    return 1 - math.exp(-1 / (points_per_px * SMOOTHING_FACTOR))


def smooth_forward(values: Sequence[float], alpha: float) -> list[float]:
    result: list[float] = []
    for v in values:
        result.append(v if not result else lerp(result[-1], v, alpha))
    return result


def smooth_backward(values: Sequence[float], alpha: float) -> list[float]:
    return smooth_forward(values[::-1], alpha)[::-1]


def downscale_time(
    track: Track, pixel_width: int, view_start: float = 0.0, view_end: float = 1.0
) -> list[Sample]:
    """Speed envelope over the time domain, one sample per ``step`` raw points.

    Sample indices lie on the grid ``0, step, 2*step, ...`` clipped to the
    visible index range; each envelope covers the ``step`` raw samples ending
    at its index.  Index 0 has no history, so its avg/min/max are all the
    forward-smoothed value.
    """
    _validate(track, pixel_width, view_start, view_end)
    n = len(track)
    start_index = math.floor(view_start * (n - 1))
    end_index = math.ceil(view_end * (n - 1))

    point_count = end_index - start_index
    step = max(math.ceil(point_count / pixel_width), 1)
    alpha = smoothing_alpha(point_count, pixel_width)

    speeds = [p.speed for p in track]
    forward = smooth_forward(speeds, alpha)
    backward = smooth_backward(speeds, alpha)

    result: list[Sample] = []
    first = start_index + (-start_index) % step

    for i in range(first, end_index + 1, step):
        if i == 0:
            result.append((track[0].time, forward[0], forward[0], forward[0]))
            continue

        lo = math.inf
        hi = -math.inf
        for j in range(i - step + 1, i + 1):
            lo = min(lo, speeds[j], forward[j], backward[j])
            hi = max(hi, speeds[j], forward[j], backward[j])
        result.append((track[i].time, (forward[i] + backward[i]) / 2, lo, hi))

    return result


def downscale_distance(
    track: Track, pixel_width: int, view_start: float = 0.0, view_end: float = 1.0
) -> list[Sample]:
    """Speed envelope over the distance domain, one sample per distance step.

    Targets are ``pixel_width + 1`` evenly spaced distances across the
    visible range.  The smoothed average is interpolated at each target by
    distance ratio between the bracketing points (found with a forward-only
    cursor); the envelope spans that value plus the raw and smoothed values
    of every point passed since the previous target.
    """
    _validate(track, pixel_width, view_start, view_end)
    n = len(track)
    start_index = domain_index(track, view_start, Domain.DISTANCE)
    end_index = domain_index(track, view_end, Domain.DISTANCE)

    alpha = smoothing_alpha(end_index - start_index, pixel_width)
    speeds = [p.speed for p in track]
    forward = smooth_forward(speeds, alpha)
    backward = smooth_backward(speeds, alpha)
    average = [(f + b) / 2 for f, b in zip(forward, backward)]

    start_distance = track[start_index].distance
    end_distance = track[end_index].distance
    span = end_distance - start_distance

    if span <= 0:
        i = start_index
        return [(
            start_distance,
            average[i],
            min(speeds[i], forward[i], backward[i]),
            max(speeds[i], forward[i], backward[i]),
        )]

    step = span / pixel_width
    result: list[Sample] = []
    index = start_index + 1
    raw = start_index

    for k in range(pixel_width + 1):
        distance = end_distance if k == pixel_width else start_distance + k * step

        while index < n - 1 and distance > track[index].distance:
            index += 1

        a = track[index - 1]
        b = track[index]
        if b.distance == a.distance:
            value = average[index]
        else:
            ratio = unlerp(distance, a.distance, b.distance)
            value = lerp(average[index - 1], average[index], ratio)

        lo = hi = value
        while raw <= end_index and track[raw].distance <= distance:
            lo = min(lo, speeds[raw], forward[raw], backward[raw])
            hi = max(hi, speeds[raw], forward[raw], backward[raw])
            raw += 1

        result.append((distance, value, lo, hi))

    return result


def downscale(
    track: Track,
    pixel_width: int,
    view_start: float = 0.0,
    view_end: float = 1.0,
    domain: Domain = Domain.TIME,
) -> list[Sample]:
    """Dispatch to :func:`downscale_time` or :func:`downscale_distance`."""
    if Domain(domain) is Domain.DISTANCE:
        return downscale_distance(track, pixel_width, view_start, view_end)
    return downscale_time(track, pixel_width, view_start, view_end)
