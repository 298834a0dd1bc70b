"""Track data model, normalization, summaries and editing."""

from tracktor.track.editing import TrackHistory, delete_range
from tracktor.track.models import (
    Domain,
    PartialTrack,
    PartialTrackPoint,
    Ranges,
    Track,
    TrackPoint,
)
from tracktor.track.normalizer import (
    TrackNormalizer,
    derive_metrics,
    fill_position_holes,
    normalize,
    resample,
)
from tracktor.track.ranges import compute_ranges, get_bound, to_geojson, track_name

__all__ = [
    "Domain",
    "PartialTrack",
    "PartialTrackPoint",
    "Ranges",
    "Track",
    "TrackHistory",
    "TrackNormalizer",
    "TrackPoint",
    "compute_ranges",
    "delete_range",
    "derive_metrics",
    "fill_position_holes",
    "get_bound",
    "normalize",
    "resample",
    "to_geojson",
    "track_name",
]
