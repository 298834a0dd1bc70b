"""Track data structures."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from tracktor.geo.models import Position


class Domain(str, Enum):
    """The axis a chart or zoom-window ratio is expressed against."""

    TIME = "time"
    DISTANCE = "distance"


@dataclass
class PartialTrackPoint:
    """A sample before normalization; ``position`` is ``None`` on signal loss.

    ``speed`` and ``distance`` are provisional values from the source file.
    """

    time: float
    """POSIX timestamp in seconds."""

    elevation: float = 0.0
    """Metres, as recorded."""

    speed: float = 0.0
    """km/h, as recorded."""

    distance: float = 0.0
    """Cumulative metres, as recorded."""

    position: Position | None = None


@dataclass
class TrackPoint:
    """A sample on the normalized, uniformly-stepped track."""

    time: float
    """POSIX timestamp in seconds (a multiple of the resampling step)."""

    position: Position

    elevation: float
    """Metres above sea level, looked up from elevation tiles."""

    speed: float
    """km/h derived from the previous point (0 for the first point)."""

    distance: float
    """Cumulative metres from the start of the track."""

    def to_partial(self) -> PartialTrackPoint:
        return PartialTrackPoint(
            time=self.time,
            elevation=self.elevation,
            speed=self.speed,
            distance=self.distance,
            position=self.position,
        )


Track = list[TrackPoint]
PartialTrack = list[PartialTrackPoint]


@dataclass
class Ranges:
    """Axis ranges used to scale the altitude/speed chart."""

    min_altitude: float
    max_altitude: float
    min_speed: float
    max_speed: float
    min_time: float
    max_time: float
    min_distance: float
    max_distance: float

    def to_dict(self) -> dict:
        return asdict(self)
