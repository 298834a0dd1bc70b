"""Summaries derived from a normalized Track."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from tracktor.errors import InsufficientDataError
from tracktor.track.models import Ranges, Track


def compute_ranges(track: Track) -> Ranges:
    """Axis ranges for the altitude/speed chart.

    * ``max_altitude`` is rounded up to the next multiple of 100 m.
    * ``min_altitude`` is padded by 2.5 % of the (rounded) altitude span and
      kept at least 100 m below ``max_altitude``.
    * ``max_speed`` is rounded up to a multiple of 5 km/h up to 40 km/h, and
      to a multiple of 10 km/h above that.  ``min_speed`` is always 0.

    Raises:
        InsufficientDataError: If *track* is empty.
    """
    if not track:
        raise InsufficientDataError("Cannot compute ranges of an empty track")

    min_altitude = min(p.elevation for p in track)
    max_altitude = max(p.elevation for p in track)
    max_speed = max(p.speed for p in track)

    max_altitude = math.ceil(max_altitude / 100) * 100
    min_altitude -= 0.025 * (max_altitude - min_altitude)
    min_altitude = min(max_altitude - 100, min_altitude)

    if max_speed <= 40:
        max_speed = math.ceil(max_speed / 5) * 5
    else:
        max_speed = math.ceil(max_speed / 10) * 10

    return Ranges(
        min_altitude=min_altitude,
        max_altitude=float(max_altitude),
        min_speed=0.0,
        max_speed=float(max_speed),
        min_time=track[0].time,
        max_time=track[-1].time,
        min_distance=track[0].distance,
        max_distance=track[-1].distance,
    )


def get_bound(track: Track) -> tuple[float, float, float, float]:
    """Return ``(min_lng, min_lat, max_lng, max_lat)`` of *track*."""
    if not track:
        raise InsufficientDataError("Cannot bound an empty track")
    lngs = [p.position.lng for p in track]
    lats = [p.position.lat for p in track]
    return min(lngs), min(lats), max(lngs), max(lats)


def to_geojson(track: Track) -> dict:
    """GeoJSON LineString feature of the track's ``[lng, lat]`` pairs."""
    return {
        "type": "Feature",
        "properties": {},
        "geometry": {
            "type": "LineString",
            "coordinates": [[p.position.lng, p.position.lat] for p in track],
        },
    }


def track_name(track: Track) -> str:
    """``YYYY-MM-DD-HH-MM-SS`` of the first point (UTC)."""
    if not track:
        raise InsufficientDataError("Cannot name an empty track")
    start = datetime.fromtimestamp(track[0].time, tz=timezone.utc)
    return start.strftime("%Y-%m-%d-%H-%M-%S")
