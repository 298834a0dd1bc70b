"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from tracktor.track.models import Domain

TrackFormat = Literal["tcx", "gpx"]


class HealthResponse(BaseModel):
    status: str
    version: str


class ImportRequest(BaseModel):
    name: str = "track"
    format: TrackFormat = "tcx"
    content: str


class DeleteRequest(BaseModel):
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)


class RangesModel(BaseModel):
    min_altitude: float
    max_altitude: float
    min_speed: float
    max_speed: float
    min_time: float
    max_time: float
    min_distance: float
    max_distance: float


class TrackSummary(BaseModel):
    id: str
    name: str
    point_count: int
    ranges: RangesModel
    bound: tuple[float, float, float, float]
    can_undo: bool


class ChartSample(BaseModel):
    x: float
    avg: float
    min: float
    max: float


class ChartResponse(BaseModel):
    domain: Domain
    width: int
    start: float
    end: float
    samples: list[ChartSample]


class RatioResponse(BaseModel):
    source: Domain
    target: Domain
    ratio: float
