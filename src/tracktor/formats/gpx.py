"""GPX reader and writer backed by :mod:`gpxpy`."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import gpxpy
import gpxpy.gpx

from tracktor.errors import MalformedInputError
from tracktor.geo.models import Position
from tracktor.track.models import PartialTrack, PartialTrackPoint, Track
from tracktor.track.ranges import track_name

_logger = logging.getLogger(__name__)

CREATOR = "Tracktor"


def parse_gpx(text: str) -> PartialTrack:
    """Parse every track point of a GPX document into a PartialTrack.

    GPX points always carry a position; speed and distance are left for
    normalization to derive.

    Raises:
        MalformedInputError: On invalid GPX, no track points, or a point
            without a timestamp.
    """
    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXException as exc:
        raise MalformedInputError(f"Invalid GPX: {exc}") from exc

    partial: PartialTrack = []
    for track in gpx.tracks:
        for segment in track.segments:
            for point in segment.points:
                if point.time is None:
                    raise MalformedInputError(f"GPX point {len(partial)} has no time")
                time = point.time
                if time.tzinfo is None:
                    time = time.replace(tzinfo=timezone.utc)
                partial.append(PartialTrackPoint(
                    time=time.timestamp(),
                    elevation=point.elevation if point.elevation is not None else 0.0,
                    position=Position.from_lng_lat(point.longitude, point.latitude),
                ))

    if not partial:
        raise MalformedInputError("GPX document contains no track point")

    _logger.info("Parsed %d GPX point(s)", len(partial))
    return partial


def generate_gpx(track: Track) -> str:
    """Serialize a normalized Track as a GPX 1.1 document."""
    gpx = gpxpy.gpx.GPX()
    gpx.creator = CREATOR
    gpx_track = gpxpy.gpx.GPXTrack(name=track_name(track))
    segment = gpxpy.gpx.GPXTrackSegment()

    for p in track:
        segment.points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=p.position.lat,
            longitude=p.position.lng,
            elevation=p.elevation,
            time=datetime.fromtimestamp(p.time, tz=timezone.utc),
        ))

    gpx_track.segments.append(segment)
    gpx.tracks.append(gpx_track)
    return gpx.to_xml(version="1.1")
