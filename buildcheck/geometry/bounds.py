"""BoundingBox — axis-aligned box math.

Pure Python bounding box math, no numeric libraries.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict

from buildcheck.geometry.vector import Vector


class BoundingBox(BaseModel):
    """Axis-aligned bounding box."""

    model_config = ConfigDict(frozen=True)

    min_x: float = 0.0
    min_y: float = 0.0
    min_z: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0
    max_z: float = 0.0

    @classmethod
    def from_points(cls, points: Iterable[Vector]) -> BoundingBox:
        """Tight box around *points*.  An empty iterable gives a zero box."""
        pts = list(points)
        if not pts:
            return cls()
        return cls(
            min_x=min(p.x for p in pts),
            min_y=min(p.y for p in pts),
            min_z=min(p.z for p in pts),
            max_x=max(p.x for p in pts),
            max_y=max(p.y for p in pts),
            max_z=max(p.z for p in pts),
        )

    @property
    def minimum(self) -> Vector:
        return Vector(self.min_x, self.min_y, self.min_z)

    @property
    def maximum(self) -> Vector:
        return Vector(self.max_x, self.max_y, self.max_z)

    @property
    def center(self) -> Vector:
        return (self.minimum + self.maximum) * 0.5

    @property
    def size(self) -> Vector:
        return self.maximum - self.minimum

    def volume(self) -> float:
        s = self.size
        return max(0.0, s.x) * max(0.0, s.y) * max(0.0, s.z)

    def corners(self) -> list[Vector]:
        return [
            Vector(x, y, z)
            for x in (self.min_x, self.max_x)
            for y in (self.min_y, self.max_y)
            for z in (self.min_z, self.max_z)
        ]

    def expanded(self, margin: float) -> BoundingBox:
        return BoundingBox(
            min_x=self.min_x - margin,
            min_y=self.min_y - margin,
            min_z=self.min_z - margin,
            max_x=self.max_x + margin,
            max_y=self.max_y + margin,
            max_z=self.max_z + margin,
        )

    def overlaps(self, other: BoundingBox, tolerance: float = 0.0) -> bool:
        """True when the boxes share any point.  Touching faces count."""
        return (
            self.min_x <= other.max_x + tolerance and other.min_x <= self.max_x + tolerance
            and self.min_y <= other.max_y + tolerance and other.min_y <= self.max_y + tolerance
            and self.min_z <= other.max_z + tolerance and other.min_z <= self.max_z + tolerance
        )

    def contains(self, p: Vector, tolerance: float = 0.0) -> bool:
        return (
            self.min_x - tolerance <= p.x <= self.max_x + tolerance
            and self.min_y - tolerance <= p.y <= self.max_y + tolerance
            and self.min_z - tolerance <= p.z <= self.max_z + tolerance
        )

    def encloses(self, other: BoundingBox, tolerance: float = 0.0) -> bool:
        return self.contains(other.minimum, tolerance) and self.contains(other.maximum, tolerance)

    def distance(self, other: BoundingBox) -> float:
        """Euclidean gap between two boxes; 0.0 when they overlap."""
        dx = max(0.0, other.min_x - self.max_x, self.min_x - other.max_x)
        dy = max(0.0, other.min_y - self.max_y, self.min_y - other.max_y)
        dz = max(0.0, other.min_z - self.max_z, self.min_z - other.max_z)
        return Vector(dx, dy, dz).length()

    def intersection(self, other: BoundingBox) -> BoundingBox | None:
        """The overlap box, or *None* when the boxes are disjoint."""
        if not self.overlaps(other):
            return None
        return BoundingBox(
            min_x=max(self.min_x, other.min_x),
            min_y=max(self.min_y, other.min_y),
            min_z=max(self.min_z, other.min_z),
            max_x=min(self.max_x, other.max_x),
            max_y=min(self.max_y, other.max_y),
            max_z=min(self.max_z, other.max_z),
        )
