"""Tests for connection-point matching."""

from __future__ import annotations

from buildcheck.config import SolverSettings
from buildcheck.design.design import Design
from buildcheck.geometry.mesh import box_mesh
from buildcheck.geometry.placement import Placement
from buildcheck.geometry.vector import Vector
from buildcheck.parts.catalog import DEFAULT_STUD_LENGTH, lumber_template
from buildcheck.parts.library import TemplateLibrary
from buildcheck.parts.template import PartTemplate
from buildcheck.spatial.index import SpatialIndex
from buildcheck.validation.connections import (
    FREESTANDING_MESSAGE,
    ConnectionMatch,
    ConnectionSolver,
)
from buildcheck.validation.findings import FindingSource, Severity

L = DEFAULT_STUD_LENGTH


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _design(**offsets: tuple[float, float, float]) -> Design:
    """Studs keyed by part id, each placed at the given world position."""
    library = TemplateLibrary([lumber_template("2x4")])
    library.register(PartTemplate(name="block", mesh=box_mesh(1, 1, 1)))
    design = Design(library)
    for pid, position in offsets.items():
        design.add_part("2x4", pid, Placement(position=Vector(*position)))
    return design


def _end_to_end() -> Design:
    return _design(a=(0.0, 0.0, 0.0), b=(L, 0.0, 0.0))


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class TestMatching:
    def test_end_to_end(self):
        result = ConnectionSolver().solve(_end_to_end().snapshot())
        assert result.findings == []
        assert result.matches == [ConnectionMatch(("a", 1), ("b", 0), 0.0)]
        assert result.anchored == frozenset({"a", "b"})

    def test_match_is_symmetric(self):
        result = ConnectionSolver().solve(_end_to_end().snapshot())
        match = result.matches[0]
        assert match.other("a") == ("b", 0)
        assert match.other("b") == ("a", 1)
        assert result.partner_of(("b", 0)) == ("a", 1)
        assert result.partner_of(("a", 1)) == ("b", 0)
        assert result.partner_of(("a", 0)) is None
        assert result.matches_for("b") == result.matches_for("a")

    def test_nearest_wins(self):
        design = _end_to_end()
        design.add_part("2x4", "c", Placement(position=Vector(L, 1.5, 0.0)), Length=40.0)
        result = ConnectionSolver().solve(design.snapshot())
        assert [m.to_dict()["b"]["part_id"] for m in result.matches] == ["b"]
        assert [f.part_ids for f in result.findings] == [("c",)]
        assert result.findings[0].message == FREESTANDING_MESSAGE

    def test_tie_goes_to_lowest_id(self):
        design = _design(a=(0.0, 0.0, 0.0), c=(L, -1.0, 0.0), b=(L, 1.0, 0.0))
        result = ConnectionSolver().solve(design.snapshot())
        assert len(result.matches) == 1
        assert result.matches[0].b == ("b", 0)
        assert result.matches[0].distance == 1.0
        assert "c" not in result.anchored

    def test_point_used_once(self):
        design = _end_to_end()
        design.add_part("2x4", "c", Placement(position=Vector(L, 1.5, 0.0)), Length=40.0)
        solver = ConnectionSolver()
        snapshot = design.snapshot()
        candidates = solver.candidates(snapshot, SpatialIndex(snapshot.bounds_by_id()))
        assert len(candidates) == 3
        assert len(solver.solve(snapshot).matches) == 1

    def test_out_of_reach(self):
        design = _design(a=(0.0, 0.0, 0.0), b=(L + 2.0, 0.0, 0.0))
        result = ConnectionSolver().solve(design.snapshot())
        assert result.matches == []
        assert len(result.findings) == 2

    def test_illegal_pair_skipped(self):
        result = ConnectionSolver().solve(_end_to_end().snapshot(), skip_pairs=[("b", "a")])
        assert result.matches == []
        assert [f.part_ids for f in result.findings] == [("a",), ("b",)]


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------

class TestFindings:
    def test_lone_part_is_freestanding(self):
        design = _design(a=(0.0, 0.0, 0.0))
        snapshot = design.snapshot()
        result = ConnectionSolver().solve(snapshot)
        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.severity is Severity.WARNING
        assert finding.source is FindingSource.CONNECTION
        assert finding.message == "freestanding part"
        assert finding.location == snapshot.get("a").bounds.center

    def test_part_without_points_ignored(self):
        design = _design()
        design.add_part("block", "blk")
        assert ConnectionSolver().solve(design.snapshot()).findings == []

    def test_require_all_points(self):
        settings = SolverSettings(require_all_points=True)
        result = ConnectionSolver(settings).solve(_end_to_end().snapshot())
        messages = [(f.part_ids, f.message) for f in result.findings]
        assert messages == [
            (("a",), "unconnected connection point 'start'"),
            (("b",), "unconnected connection point 'end'"),
        ]

    def test_empty_design(self):
        result = ConnectionSolver().solve(_design().snapshot())
        assert result.findings == []
        assert result.anchored == frozenset()
