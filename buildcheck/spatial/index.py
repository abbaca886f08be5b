"""SpatialIndex — broad-phase overlap and proximity queries over part bounds.

Sweep-and-prune along x.  Entries are sorted by ``(min_x, part_id)`` so the
output never depends on insertion order.
"""

from __future__ import annotations

import bisect
import logging
from typing import Mapping

from buildcheck.geometry.bounds import BoundingBox

logger = logging.getLogger(__name__)


class SpatialIndex:
    """Read-only index over a fixed set of world-space bounds."""

    def __init__(self, bounds: Mapping[str, BoundingBox]) -> None:
        self._bounds: dict[str, BoundingBox] = dict(bounds)
        self._order: list[str] = sorted(
            self._bounds, key=lambda pid: (self._bounds[pid].min_x, pid)
        )
        self._min_x: list[float] = [self._bounds[pid].min_x for pid in self._order]
        self._max_extent = max(
            (b.max_x - b.min_x for b in self._bounds.values()), default=0.0
        )

    def __len__(self) -> int:
        return len(self._bounds)

    def __contains__(self, part_id: str) -> bool:
        return part_id in self._bounds

    def bounds(self, part_id: str) -> BoundingBox:
        return self._bounds[part_id]

    def query_overlaps(self, tolerance: float = 0.0) -> list[tuple[str, str]]:
        """Unordered pairs ``(a, b)`` with ``a < b`` whose boxes overlap, sorted."""
        pairs: set[tuple[str, str]] = set()
        active: list[str] = []
        for pid in self._order:
            box = self._bounds[pid]
            active = [
                other for other in active
                if self._bounds[other].max_x + tolerance >= box.min_x
            ]
            for other in active:
                if box.overlaps(self._bounds[other], tolerance):
                    pairs.add((pid, other) if pid < other else (other, pid))
            active.append(pid)
        result = sorted(pairs)
        logger.debug("Broad phase: %d overlapping pairs among %d parts", len(result), len(self))
        return result

    def query_candidates(self, part_id: str, radius: float) -> list[str]:
        """Other parts whose boxes lie within *radius* of *part_id*'s box, sorted."""
        box = self._bounds[part_id]
        lo = box.min_x - radius - self._max_extent
        hi = box.max_x + radius
        start = bisect.bisect_left(self._min_x, lo)
        stop = bisect.bisect_right(self._min_x, hi)
        found = [
            other for other in self._order[start:stop]
            if other != part_id and box.distance(self._bounds[other]) <= radius
        ]
        return sorted(found)

    def query_box(self, region: BoundingBox) -> list[str]:
        """Parts whose boxes overlap *region*, sorted."""
        return sorted(pid for pid, b in self._bounds.items() if b.overlaps(region))
