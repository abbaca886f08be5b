"""Tests for the SpatialIndex broad phase."""

from __future__ import annotations

from buildcheck.geometry.bounds import BoundingBox
from buildcheck.spatial.index import SpatialIndex


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _box(x0: float, x1: float, y0: float = 0.0, y1: float = 1.0) -> BoundingBox:
    return BoundingBox(min_x=x0, max_x=x1, min_y=y0, max_y=y1, min_z=0.0, max_z=1.0)


_LAYOUT = {
    "a": _box(0, 2),
    "b": _box(1, 3),
    "c": _box(3, 4),       # touches b
    "d": _box(10, 11),
    "e": _box(0, 5, 5, 6),  # overlaps in x only
}


# ---------------------------------------------------------------------------
# Overlaps
# ---------------------------------------------------------------------------

class TestQueryOverlaps:
    def test_pairs(self):
        assert SpatialIndex(_LAYOUT).query_overlaps() == [("a", "b"), ("b", "c")]

    def test_insertion_order_independent(self):
        reversed_layout = dict(reversed(list(_LAYOUT.items())))
        assert SpatialIndex(reversed_layout).query_overlaps() == SpatialIndex(_LAYOUT).query_overlaps()

    def test_tolerance_widens(self):
        pairs = SpatialIndex({"a": _box(0, 1), "b": _box(1.5, 2)}).query_overlaps(tolerance=0.5)
        assert pairs == [("a", "b")]

    def test_identical_min_x(self):
        index = SpatialIndex({"z": _box(0, 1), "y": _box(0, 1), "x": _box(0, 1)})
        assert index.query_overlaps() == [("x", "y"), ("x", "z"), ("y", "z")]

    def test_empty(self):
        assert SpatialIndex({}).query_overlaps() == []


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------

class TestQueryCandidates:
    def test_within_radius(self):
        index = SpatialIndex(_LAYOUT)
        assert index.query_candidates("c", 0.0) == ["b"]
        assert index.query_candidates("c", 6.0) == ["a", "b", "d", "e"]

    def test_long_box_before_query(self):
        # "long" starts far to the left of "p" but reaches it
        index = SpatialIndex({"long": _box(-100, 9.5), "p": _box(10, 11)})
        assert index.query_candidates("p", 1.0) == ["long"]

    def test_excludes_self(self):
        assert "a" not in SpatialIndex(_LAYOUT).query_candidates("a", 100.0)

    def test_query_box(self):
        index = SpatialIndex(_LAYOUT)
        assert index.query_box(_box(3.5, 10.5)) == ["c", "d"]
        assert len(index) == 5
        assert "e" in index
