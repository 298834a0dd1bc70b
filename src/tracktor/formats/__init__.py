"""Track file formats: TCX and GPX readers and writers."""

from tracktor.formats.gpx import generate_gpx, parse_gpx
from tracktor.formats.tcx import generate_tcx, parse_tcx

__all__ = ["generate_gpx", "generate_tcx", "parse_gpx", "parse_tcx"]
