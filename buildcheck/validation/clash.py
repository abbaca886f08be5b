"""GeometrySolver — pairwise part intersection detection and classification.

Broad phase comes from the :class:`~buildcheck.spatial.SpatialIndex`; each
candidate pair then gets an exact mesh test in world space.  Intersecting
pairs are classified into a shape category and looked up in the pair-rule
registry; anything without an allowing rule is an error.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from buildcheck.config import (
    ORIENTATION_ANGLED,
    ORIENTATION_PARALLEL,
    ORIENTATION_PERPENDICULAR,
    SolverSettings,
)
from buildcheck.design.design import DesignSnapshot, PlacedPart
from buildcheck.errors import MalformedMesh
from buildcheck.geometry.intersect import MeshIntersection, intersect_meshes
from buildcheck.geometry.vector import Vector, line_angle
from buildcheck.spatial.index import SpatialIndex
from buildcheck.validation.findings import Finding, FindingSource, Severity, canonical
from buildcheck.validation.pair_rules import PairRuleRegistry

logger = logging.getLogger(__name__)


class IntersectionResult:
    """One intersecting part pair and how it was classified."""

    def __init__(
        self,
        part_a: str,
        part_b: str,
        category: str,
        legal: bool,
        points: tuple[Vector, ...],
        relative_angle: float,
        contained: bool = False,
    ) -> None:
        self.part_a = part_a
        self.part_b = part_b
        self.category = category
        self.legal = legal
        self.points = points
        self.relative_angle = relative_angle
        self.contained = contained

    @property
    def pair(self) -> tuple[str, str]:
        return (self.part_a, self.part_b)

    @property
    def location(self) -> Vector | None:
        return MeshIntersection(self.points).centroid

    def to_dict(self) -> dict[str, Any]:
        loc = self.location
        return {
            "part_a": self.part_a,
            "part_b": self.part_b,
            "category": self.category,
            "legal": self.legal,
            "points": len(self.points),
            "relative_angle": round(self.relative_angle, 6),
            "contained": self.contained,
            "location": list(loc) if loc is not None else None,
        }


class GeometryResult:
    """Output of the geometry stage."""

    def __init__(self, findings: list[Finding], intersections: list[IntersectionResult]) -> None:
        self.findings = findings
        self.intersections = intersections

    @property
    def illegal_pairs(self) -> frozenset[tuple[str, str]]:
        return frozenset(r.pair for r in self.intersections if not r.legal)

    @property
    def legal_intersections(self) -> list[IntersectionResult]:
        return [r for r in self.intersections if r.legal]


def orientation_category(relative_angle: float, tolerance: float) -> str:
    """Classify the angle between two length axes."""
    if relative_angle <= tolerance:
        return ORIENTATION_PARALLEL
    if abs(relative_angle - 90.0) <= tolerance:
        return ORIENTATION_PERPENDICULAR
    return ORIENTATION_ANGLED


class GeometrySolver:
    """Detect and classify part/part intersections.

    Parameters
    ----------
    registry:
        Pair-type rules.  Defaults to :meth:`PairRuleRegistry.with_defaults`.
    settings:
        Tolerances and worker count.
    """

    def __init__(
        self,
        registry: PairRuleRegistry | None = None,
        settings: SolverSettings | None = None,
    ) -> None:
        self.registry = registry if registry is not None else PairRuleRegistry.with_defaults()
        self.settings = settings or SolverSettings()

    def solve(self, snapshot: DesignSnapshot, index: SpatialIndex | None = None) -> GeometryResult:
        """Run the geometry stage.  Raises :class:`MalformedMesh` on bad geometry."""
        for part in snapshot:
            try:
                part.mesh.validated()
            except MalformedMesh as exc:
                raise MalformedMesh(f"Part '{part.part_id}': {exc}") from exc

        index = index or SpatialIndex(snapshot.bounds_by_id())
        pairs = index.query_overlaps(self.settings.contact_tolerance)

        def run(pair: tuple[str, str]) -> IntersectionResult | None:
            return self.test_pair(snapshot.get(pair[0]), snapshot.get(pair[1]))

        if self.settings.max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
                outcomes = list(pool.map(run, pairs))
        else:
            outcomes = [run(pair) for pair in pairs]

        intersections = [r for r in outcomes if r is not None]
        findings = [self._finding(r) for r in intersections if not r.legal]
        logger.info(
            "Geometry: %d candidate pairs, %d intersections, %d illegal",
            len(pairs), len(intersections), len(findings),
        )
        return GeometryResult(canonical(findings), intersections)

    def test_pair(self, a: PlacedPart, b: PlacedPart) -> IntersectionResult | None:
        """Exact test for one pair; *None* when the parts do not interpenetrate."""
        if b.part_id < a.part_id:
            a, b = b, a
        hit = intersect_meshes(a.mesh, b.mesh, self.settings.contact_tolerance)
        if not hit.intersects:
            return None
        relative = line_angle(a.axis, b.axis)
        category = self.classify(a, b, hit.points, relative)
        legal = self.registry.is_legal(a.template_name, b.template_name, category)
        logger.debug(
            "Pair %s/%s: %s (%.2f deg) -> %s",
            a.part_id, b.part_id, category, relative, "legal" if legal else "illegal",
        )
        return IntersectionResult(
            a.part_id, b.part_id, category, legal, hit.points, relative, hit.contained,
        )

    def classify(
        self,
        a: PlacedPart,
        b: PlacedPart,
        points: tuple[Vector, ...],
        relative_angle: float,
    ) -> str:
        """Shape category of an overlap.

        An annotation category applies when every overlap point falls inside
        the union of that category's accepting regions on either part.
        Otherwise the relative orientation of the parts is used.
        """
        tol = max(self.settings.contact_tolerance, 1e-6)
        angle_tol = self.settings.angle_tolerance
        categories = sorted({ann.category for ann in a.annotations + b.annotations})
        for category in categories:
            regions = [
                (part, ann)
                for part, partner in ((a, b), (b, a))
                for ann in part.annotations
                if ann.category == category
                and ann.accepts(partner.template_name, relative_angle, angle_tol)
            ]
            if not regions:
                continue
            if all(
                any(ann.covers(part.to_local(p), tol) for part, ann in regions)
                for p in points
            ):
                return category
        return orientation_category(relative_angle, angle_tol)

    @staticmethod
    def _finding(result: IntersectionResult) -> Finding:
        return Finding(
            severity=Severity.ERROR,
            source=FindingSource.GEOMETRY,
            part_ids=result.pair,
            message=(
                f"Illegal {result.category} intersection between "
                f"{result.part_a} and {result.part_b}"
            ),
            location=result.location,
            category=result.category,
        )
