"""Garmin TCX (TrainingCenterDatabase) reader and writer.

Reading produces a PartialTrack:
  - Every whole second missing between two consecutive Trackpoints is
    padded with a position-less point carrying the previous altitude and
    distance and a speed of 0.
  - A Trackpoint whose recorded speed is zero is treated as a GPS hold and
    its position dropped, so hole filling re-interpolates it.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from tracktor.errors import MalformedInputError
from tracktor.geo.models import Position
from tracktor.track.models import PartialTrack, PartialTrackPoint, Track
from tracktor.track.ranges import track_name

_logger = logging.getLogger(__name__)

TCX_NS = "http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2"
TPX_NS = "http://www.garmin.com/xmlschemas/ActivityExtension/v2"
_NS = {"tcx": TCX_NS, "ax": TPX_NS}

_KPH_PER_MPS = 3.6


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _parse_time(text: str, index: int) -> float:
    try:
        dt = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedInputError(f"Trackpoint {index}: invalid Time {text!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _number(
    element: ET.Element, path: str, index: int, default: float | None = None
) -> float | None:
    """Read a float child at *path*; *default* when absent."""
    text = element.findtext(path, namespaces=_NS)
    if text is None:
        return default
    try:
        value = float(text)
    except ValueError as exc:
        raise MalformedInputError(f"Trackpoint {index}: {path} is not a number: {text!r}") from exc
    if not math.isfinite(value):
        raise MalformedInputError(f"Trackpoint {index}: {path} is not finite")
    return value


def _parse_position(element: ET.Element, index: int) -> Position | None:
    position = element.find("tcx:Position", _NS)
    if position is None:
        return None
    lat = _number(position, "tcx:LatitudeDegrees", index)
    lng = _number(position, "tcx:LongitudeDegrees", index)
    if lat is None or lng is None:
        raise MalformedInputError(f"Trackpoint {index}: Position needs latitude and longitude")
    return Position.from_lng_lat(lng, lat)


def _parse_trackpoint(element: ET.Element, index: int) -> PartialTrackPoint:
    time_text = element.findtext("tcx:Time", namespaces=_NS)
    if time_text is None:
        raise MalformedInputError(f"Trackpoint {index} has no Time")

    position = _parse_position(element, index)
    speed_mps = _number(element, "tcx:Extensions/ax:TPX/ax:Speed", index)
    if speed_mps is not None and speed_mps <= 0:
        position = None

    return PartialTrackPoint(
        time=_parse_time(time_text, index),
        elevation=_number(element, "tcx:AltitudeMeters", index, 0.0),
        speed=(speed_mps or 0.0) * _KPH_PER_MPS,
        distance=_number(element, "tcx:DistanceMeters", index, 0.0),
        position=position,
    )


def parse_tcx(text: str) -> PartialTrack:
    """Parse a TCX document into a PartialTrack.

    Raises:
        MalformedInputError: On invalid XML, a non-TCX root, no Trackpoints,
            or a Trackpoint with a missing time or unreadable number.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedInputError(f"Invalid TCX XML: {exc}") from exc

    if root.tag != f"{{{TCX_NS}}}TrainingCenterDatabase":
        raise MalformedInputError(f"Not a TCX document (root element {root.tag!r})")

    elements = root.findall(".//tcx:Trackpoint", _NS)
    if not elements:
        raise MalformedInputError("TCX document contains no Trackpoint")

    partial: PartialTrack = []
    prev: PartialTrackPoint | None = None
    padded = 0

    for i, element in enumerate(elements):
        point = _parse_trackpoint(element, i)

        if prev is not None:
            padding = point.time - prev.time - 1
            if padding > 0:
                for k in range(1, math.ceil(padding) + 1):
                    partial.append(PartialTrackPoint(
                        time=prev.time + k,
                        elevation=prev.elevation,
                        speed=0.0,
                        distance=prev.distance,
                    ))
                    padded += 1

        partial.append(point)
        prev = point

    _logger.info("Parsed %d TCX trackpoint(s), %d padding point(s)", len(elements), padded)
    return partial


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _iso_time(timestamp: float) -> str:
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _sub(parent: ET.Element, tag: str, text: str | None = None, ns: str = TCX_NS) -> ET.Element:
    child = ET.SubElement(parent, f"{{{ns}}}{tag}")
    if text is not None:
        child.text = text
    return child


def generate_tcx(track: Track, sport: str = "Biking") -> str:
    """Serialize a normalized Track as a TCX document."""
    ET.register_namespace("", TCX_NS)
    ET.register_namespace("tpx", TPX_NS)

    root = ET.Element(f"{{{TCX_NS}}}TrainingCenterDatabase")
    activity = _sub(_sub(root, "Activities"), "Activity")
    activity.set("Sport", sport)
    _sub(activity, "Id", track_name(track))
    lap = _sub(activity, "Lap")
    lap.set("StartTime", _iso_time(track[0].time))
    container = _sub(lap, "Track")

    for p in track:
        trackpoint = _sub(container, "Trackpoint")
        _sub(trackpoint, "Time", _iso_time(p.time))
        position = _sub(trackpoint, "Position")
        _sub(position, "LatitudeDegrees", repr(p.position.lat))
        _sub(position, "LongitudeDegrees", repr(p.position.lng))
        _sub(trackpoint, "AltitudeMeters", repr(p.elevation))
        _sub(trackpoint, "DistanceMeters", repr(p.distance))
        tpx = _sub(_sub(trackpoint, "Extensions"), "TPX", ns=TPX_NS)
        _sub(tpx, "Speed", repr(p.speed / _KPH_PER_MPS), ns=TPX_NS)

    ET.indent(root)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode")
