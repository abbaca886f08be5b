"""Vector — an immutable 3D point / direction."""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple


class Vector(NamedTuple):
    """Immutable 3-component vector.  Doubles as a point (vertex)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def of(cls, value: Iterable[float] | float) -> Vector:
        """Build a vector from a 3-sequence, broadcasting a scalar to all axes."""
        if isinstance(value, (int, float)):
            v = float(value)
            return cls(v, v, v)
        x, y, z = (float(c) for c in value)
        return cls(x, y, z)

    def __add__(self, other: Vector) -> Vector:  # type: ignore[override]
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k: float) -> Vector:  # type: ignore[override]
        return Vector(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y, -self.z)

    def hadamard(self, other: Vector) -> Vector:
        """Component-wise product."""
        return Vector(self.x * other.x, self.y * other.y, self.z * other.z)

    def dot(self, other: Vector) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector) -> Vector:
        return Vector(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def distance(self, other: Vector) -> float:
        return (self - other).length()

    def normalize(self) -> Vector:
        n = self.length()
        if n == 0.0:
            return Vector()
        return Vector(self.x / n, self.y / n, self.z / n)

    def is_close(self, other: Vector, tol: float = 1e-9) -> bool:
        return (
            abs(self.x - other.x) <= tol
            and abs(self.y - other.y) <= tol
            and abs(self.z - other.z) <= tol
        )


def angle_between(a: Vector, b: Vector) -> float:
    """Unsigned angle in degrees between two directions, in [0, 180]."""
    na, nb = a.length(), b.length()
    if na == 0.0 or nb == 0.0:
        return 0.0
    cos = max(-1.0, min(1.0, a.dot(b) / (na * nb)))
    return math.degrees(math.acos(cos))


def line_angle(a: Vector, b: Vector) -> float:
    """Angle in degrees between two undirected lines, in [0, 90]."""
    angle = angle_between(a, b)
    return min(angle, 180.0 - angle)
