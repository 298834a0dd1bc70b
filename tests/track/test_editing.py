"""Tests for range deletion, re-normalization and undo history."""

from __future__ import annotations

import asyncio

import pytest

from tests.conftest import make_cache, make_track
from tracktor.errors import InsufficientDataError, OutOfRangeError
from tracktor.geo.models import Position
from tracktor.track.editing import TrackHistory, delete_range
from tracktor.track.models import PartialTrackPoint
from tracktor.track.normalizer import normalize


def _moving_track(n: int = 10):
    points = [
        PartialTrackPoint(time=float(i), position=Position.from_lng_lat(10.0 + i * 1e-4, 45.0))
        for i in range(n)
    ]
    return asyncio.run(normalize(points, make_cache()))


class TestDeleteRange:
    def test_removes_inclusive_range(self):
        track = make_track([0.0] + [10.0] * 9)
        remainder = delete_range(track, 3, 5)
        assert len(remainder) == 7
        assert [p.time - track[0].time for p in remainder] == [0, 1, 2, 6, 7, 8, 9]

    def test_remainder_keeps_positions(self):
        track = make_track([0.0, 5.0, 5.0, 5.0])
        remainder = delete_range(track, 1, 1)
        assert all(isinstance(p, PartialTrackPoint) for p in remainder)
        assert all(p.position is not None for p in remainder)

    @pytest.mark.parametrize("start,end", [(-1, 2), (2, 1), (0, 10), (10, 10)])
    def test_invalid_range(self, start, end):
        with pytest.raises(OutOfRangeError):
            delete_range(make_track([0.0] * 10), start, end)

    def test_too_little_left(self):
        with pytest.raises(InsufficientDataError):
            delete_range(make_track([0.0] * 3), 0, 1)

    def test_renormalizing_refills_the_gap(self):
        track = _moving_track(10)
        remainder = delete_range(track, 3, 6)
        edited = asyncio.run(normalize(remainder, make_cache()))

        assert [p.time for p in edited] == [p.time for p in track]
        # points inside the deleted span now lie on the straight line 2 → 7
        x2, x7 = track[2].position.x, track[7].position.x
        assert edited[4].position.x == pytest.approx(x2 + (x7 - x2) * 2 / 5)
        for prev, curr in zip(edited, edited[1:]):
            assert curr.distance >= prev.distance


class TestTrackHistory:
    def test_push_and_pop(self):
        history = TrackHistory()
        first = make_track([0.0, 1.0])
        history.push(first)
        assert len(history) == 1
        restored = history.pop()
        assert [p.time for p in restored] == [p.time for p in first]
        assert history.pop() is None

    def test_snapshot_is_a_copy(self):
        history = TrackHistory()
        track = make_track([0.0, 1.0])
        history.push(track)
        track[1].speed = 99.0
        assert history.pop()[1].speed == 1.0

    def test_max_depth_drops_oldest(self):
        history = TrackHistory(max_depth=2)
        for n in (2, 3, 4):
            history.push(make_track([0.0] * n))
        assert len(history) == 2
        assert len(history.pop()) == 4
        assert len(history.pop()) == 3

    def test_clear(self):
        history = TrackHistory()
        history.push(make_track([0.0, 1.0]))
        history.clear()
        assert len(history) == 0
