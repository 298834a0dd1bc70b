"""FastAPI application — renderer-facing Tracktor API."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import quote

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from tracktor import __version__
from tracktor.chart.downscale import downscale
from tracktor.chart.projector import convert_ratio
from tracktor.config import Settings
from tracktor.errors import TileFetchError
from tracktor.track.models import Domain
from tracktor.track.ranges import compute_ranges, get_bound, to_geojson
from tracktor.web.schemas import (
    ChartResponse,
    ChartSample,
    DeleteRequest,
    HealthResponse,
    ImportRequest,
    RangesModel,
    RatioResponse,
    TrackFormat,
    TrackSummary,
)
from tracktor.web.service import TrackService, TrackSession, UnknownTrackError

load_dotenv()  # loads .env from project root; must run before Settings.from_env()

router = APIRouter()


def _service(request: Request) -> TrackService:
    return request.app.state.service


def _content_disposition(filename: str) -> str:
    """RFC 6266 attachment header with an ASCII fallback and a UTF-8 ``filename*``."""
    fallback = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _summary(session: TrackSession) -> TrackSummary:
    return TrackSummary(
        id=session.id,
        name=session.name,
        point_count=len(session.track),
        ranges=RangesModel(**compute_ranges(session.track).to_dict()),
        bound=get_bound(session.track),
        can_undo=len(session.history) > 0,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


@router.post("/api/tracks", response_model=TrackSummary)
async def import_track(req: ImportRequest, request: Request) -> TrackSummary:
    """Parse, normalize and open a track."""
    session = await _service(request).import_track(req.name, req.format, req.content)
    return _summary(session)


@router.get("/api/tracks/{track_id}", response_model=TrackSummary)
def get_track(track_id: str, request: Request) -> TrackSummary:
    return _summary(_service(request).get(track_id))


@router.delete("/api/tracks/{track_id}", status_code=204)
def close_track(track_id: str, request: Request) -> Response:
    _service(request).close_track(track_id)
    return Response(status_code=204)


@router.get("/api/tracks/{track_id}/ranges", response_model=RangesModel)
def get_ranges(track_id: str, request: Request) -> RangesModel:
    track = _service(request).get(track_id).track
    return RangesModel(**compute_ranges(track).to_dict())


@router.get("/api/tracks/{track_id}/chart", response_model=ChartResponse)
def get_chart(
    track_id: str,
    request: Request,
    width: int = Query(800, ge=1, le=20000),
    start: float = 0.0,
    end: float = 1.0,
    domain: Domain = Domain.TIME,
) -> ChartResponse:
    """Downscaled speed envelope for the visible window."""
    track = _service(request).get(track_id).track
    samples = downscale(track, width, start, end, domain)
    return ChartResponse(
        domain=domain,
        width=width,
        start=start,
        end=end,
        samples=[ChartSample(x=x, avg=avg, min=lo, max=hi) for x, avg, lo, hi in samples],
    )


@router.get("/api/tracks/{track_id}/convert-ratio", response_model=RatioResponse)
def get_converted_ratio(
    track_id: str,
    request: Request,
    ratio: float = Query(ge=0.0, le=1.0),
    source: Domain = Domain.TIME,
    target: Domain = Domain.DISTANCE,
) -> RatioResponse:
    track = _service(request).get(track_id).track
    return RatioResponse(
        source=source, target=target, ratio=convert_ratio(track, ratio, source, target)
    )


@router.get("/api/tracks/{track_id}/geojson")
def get_geojson(track_id: str, request: Request) -> dict:
    return to_geojson(_service(request).get(track_id).track)


@router.post("/api/tracks/{track_id}/delete", response_model=TrackSummary)
async def delete_range(track_id: str, req: DeleteRequest, request: Request) -> TrackSummary:
    """Delete an inclusive index range and re-normalize."""
    session = await _service(request).delete_range(track_id, req.start_index, req.end_index)
    return _summary(session)


@router.post("/api/tracks/{track_id}/undo", response_model=TrackSummary)
def undo(track_id: str, request: Request) -> TrackSummary:
    return _summary(_service(request).undo(track_id))


@router.get("/api/tracks/{track_id}/export")
def export_track(
    track_id: str,
    request: Request,
    fmt: TrackFormat = Query("gpx", alias="format"),
) -> Response:
    service = _service(request)
    name = service.get(track_id).name
    return Response(
        content=service.export(track_id, fmt),
        media_type="application/xml",
        headers={"Content-Disposition": _content_disposition(f"{name}.{fmt}")},
    )


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(service: TrackService | None = None) -> FastAPI:
    """Build the application; *service* is injected in tests."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.service.aclose()

    app = FastAPI(title="Tracktor", version=__version__, lifespan=lifespan)
    app.state.service = service or TrackService.from_settings(Settings.from_env())
    app.include_router(router)

    @app.exception_handler(UnknownTrackError)
    async def _unknown_track(request: Request, exc: UnknownTrackError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc.args[0])})

    @app.exception_handler(TileFetchError)
    async def _tile_fetch(request: Request, exc: TileFetchError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def _bad_input(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(IndexError)
    async def _out_of_range(request: Request, exc: IndexError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


app = create_app()
