"""TrackService — in-memory track sessions behind the Web API."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from tracktor.config import Settings
from tracktor.elevation.cache import ElevationCache
from tracktor.elevation.tiles import HttpTileSource, TileSource
from tracktor.formats.gpx import generate_gpx, parse_gpx
from tracktor.formats.tcx import generate_tcx, parse_tcx
from tracktor.track.editing import TrackHistory, delete_range
from tracktor.track.models import Track
from tracktor.track.normalizer import TrackNormalizer

_logger = logging.getLogger(__name__)


class UnknownTrackError(LookupError):
    """Raised when a track id does not name a live session."""


@dataclass
class TrackSession:
    """A loaded track plus its edit history."""

    id: str
    name: str
    track: Track
    history: TrackHistory = field(default_factory=TrackHistory)
    edit_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    """Serializes edits so each one sees the previous edit's track."""


class TrackService:
    """Imports, edits and exports tracks held in memory.

    Parameters
    ----------
    cache:
        Elevation cache shared by every session of this service.
    step_s:
        Resampling step in seconds.
    source:
        Tile source owned by the service, closed by :meth:`aclose`.
    """

    def __init__(
        self,
        cache: ElevationCache,
        step_s: float = 1.0,
        source: TileSource | None = None,
    ) -> None:
        self._normalizer = TrackNormalizer(cache, step_s)
        self._source = source
        self._sessions: dict[str, TrackSession] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> TrackService:
        source = HttpTileSource.from_settings(settings)
        cache = ElevationCache(
            source,
            zoom=settings.tile_zoom,
            tile_size=settings.tile_size,
            capacity=settings.cache_capacity,
            max_concurrency=settings.max_concurrency,
        )
        return cls(cache, step_s=settings.step_s, source=source)

    def get(self, track_id: str) -> TrackSession:
        try:
            return self._sessions[track_id]
        except KeyError:
            raise UnknownTrackError(f"Unknown track {track_id!r}") from None

    async def import_track(self, name: str, fmt: str, content: str) -> TrackSession:
        """Parse and normalize *content*, then open a new session for it."""
        if fmt == "tcx":
            partial = parse_tcx(content)
        elif fmt == "gpx":
            partial = parse_gpx(content)
        else:
            raise ValueError(f"Unsupported format {fmt!r}")

        track = await self._normalizer.normalize(partial)
        session = TrackSession(id=uuid.uuid4().hex, name=name, track=track)
        self._sessions[session.id] = session
        _logger.info("Opened track %s (%r, %d points)", session.id, name, len(track))
        return session

    async def delete_range(self, track_id: str, start_index: int, end_index: int) -> TrackSession:
        """Delete an inclusive index range and re-normalize the remainder.

        The session is only updated once normalization has succeeded.
        Concurrent edits of one session run one after the other.
        """
        session = self.get(track_id)
        async with session.edit_lock:
            partial = delete_range(session.track, start_index, end_index)
            track = await self._normalizer.normalize(partial)
            session.history.push(session.track)
            session.track = track
        return session

    def undo(self, track_id: str) -> TrackSession:
        """Restore the track before the last edit; no-op without history."""
        session = self.get(track_id)
        previous = session.history.pop()
        if previous is not None:
            session.track = previous
        return session

    def export(self, track_id: str, fmt: str) -> str:
        session = self.get(track_id)
        if fmt == "tcx":
            return generate_tcx(session.track)
        if fmt == "gpx":
            return generate_gpx(session.track)
        raise ValueError(f"Unsupported format {fmt!r}")

    def close_track(self, track_id: str) -> None:
        self.get(track_id)
        del self._sessions[track_id]

    async def aclose(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()
