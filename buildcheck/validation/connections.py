"""ConnectionSolver — match connection points between parts.

Matching is greedy by ascending world distance.  Ties go to the
lexicographically lowest ``(part_id, point_index)`` endpoints, and each point
is consumed at most once.  Pairs the geometry stage flagged as illegal
intersections are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from typing import Any

from buildcheck.config import SolverSettings
from buildcheck.design.design import DesignSnapshot
from buildcheck.spatial.index import SpatialIndex
from buildcheck.validation.findings import Finding, FindingSource, Severity, canonical

logger = logging.getLogger(__name__)

FREESTANDING_MESSAGE = "freestanding part"
UNCONNECTED_POINT_MESSAGE = "unconnected connection point"

PointKey = tuple[str, int]


@dataclass(frozen=True, order=True)
class ConnectionMatch:
    """Two connected points.  ``a < b`` always, so a match reads the same from either side."""

    a: PointKey
    b: PointKey
    distance: float

    def other(self, part_id: str) -> PointKey:
        return self.b if self.a[0] == part_id else self.a

    def involves(self, part_id: str) -> bool:
        return self.a[0] == part_id or self.b[0] == part_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "a": {"part_id": self.a[0], "point": self.a[1]},
            "b": {"part_id": self.b[0], "point": self.b[1]},
            "distance": round(self.distance, 9),
        }


class ConnectionResult:
    """Output of the connection stage."""

    def __init__(
        self,
        findings: list[Finding],
        matches: list[ConnectionMatch],
        anchored: frozenset[str],
    ) -> None:
        self.findings = findings
        self.matches = matches
        self.anchored = anchored

    def matches_for(self, part_id: str) -> list[ConnectionMatch]:
        return [m for m in self.matches if m.involves(part_id)]

    def partner_of(self, point: PointKey) -> PointKey | None:
        for m in self.matches:
            if m.a == point:
                return m.b
            if m.b == point:
                return m.a
        return None


class ConnectionSolver:
    """Verify that parts are joined at declared connection points."""

    def __init__(self, settings: SolverSettings | None = None) -> None:
        self.settings = settings or SolverSettings()

    def candidates(
        self,
        snapshot: DesignSnapshot,
        index: SpatialIndex,
        skip_pairs: Collection[tuple[str, str]] = (),
    ) -> list[ConnectionMatch]:
        """Every point pair within combined capture radius, canonically sorted."""
        max_radius = max(
            (cp.radius for part in snapshot for cp in part.connection_points),
            default=0.0,
        )
        eps = self.settings.match_epsilon
        skip = {tuple(sorted(p)) for p in skip_pairs}
        found: set[ConnectionMatch] = set()

        for part in snapshot:
            if not part.connection_points:
                continue
            for other_id in index.query_candidates(part.part_id, 2.0 * max_radius + eps):
                if other_id <= part.part_id:
                    continue  # each unordered part pair once
                if (part.part_id, other_id) in skip:
                    logger.debug("Skipping illegal pair %s/%s", part.part_id, other_id)
                    continue
                other = snapshot.get(other_id)
                for i, (cp, wp) in enumerate(zip(part.connection_points, part.world_points)):
                    for j, (ocp, owp) in enumerate(zip(other.connection_points, other.world_points)):
                        d = wp.distance(owp)
                        if d <= cp.radius + ocp.radius + eps:
                            found.add(ConnectionMatch((part.part_id, i), (other_id, j), d))

        return sorted(found, key=lambda m: (m.distance, m.a, m.b))

    def solve(
        self,
        snapshot: DesignSnapshot,
        skip_pairs: Collection[tuple[str, str]] = (),
        index: SpatialIndex | None = None,
    ) -> ConnectionResult:
        index = index or SpatialIndex(snapshot.bounds_by_id())
        consumed: set[PointKey] = set()
        matches: list[ConnectionMatch] = []
        for candidate in self.candidates(snapshot, index, skip_pairs):
            if candidate.a in consumed or candidate.b in consumed:
                continue
            consumed.add(candidate.a)
            consumed.add(candidate.b)
            matches.append(candidate)
        matches.sort()

        anchored = frozenset(key[0] for key in consumed)
        findings: list[Finding] = []
        for part in snapshot:
            if not part.connection_points:
                continue
            if part.part_id not in anchored:
                findings.append(Finding(
                    severity=Severity.WARNING,
                    source=FindingSource.CONNECTION,
                    part_ids=(part.part_id,),
                    message=FREESTANDING_MESSAGE,
                    location=part.bounds.center,
                ))
            elif self.settings.require_all_points:
                for i, wp in enumerate(part.world_points):
                    if (part.part_id, i) in consumed:
                        continue
                    name = part.connection_points[i].name or str(i)
                    findings.append(Finding(
                        severity=Severity.WARNING,
                        source=FindingSource.CONNECTION,
                        part_ids=(part.part_id,),
                        message=f"{UNCONNECTED_POINT_MESSAGE} '{name}'",
                        location=wp,
                    ))

        logger.info(
            "Connection: %d matches, %d/%d parts anchored",
            len(matches), len(anchored), len(snapshot),
        )
        return ConnectionResult(canonical(findings), matches, anchored)
