"""4x4 homogeneous transform matrices (row-major)."""

from __future__ import annotations

import math
from enum import Enum
from typing import Sequence

from buildcheck.geometry.vector import Vector


class MatrixType(str, Enum):
    """Kinds of transform an attribute rule can apply."""

    TRANSLATE = "translate"
    SCALE = "scale"
    ROTATE = "rotate"


class Matrix:
    """Immutable 4x4 affine matrix stored as a flat row-major tuple."""

    __slots__ = ("data",)

    def __init__(self, values: Sequence[float]) -> None:
        if len(values) != 16:
            raise ValueError(f"Matrix needs 16 values, got {len(values)}")
        self.data: tuple[float, ...] = tuple(float(v) for v in values)

    # -- constructors ---------------------------------------------------------

    @classmethod
    def identity(cls) -> Matrix:
        return cls.scale(1.0, 1.0, 1.0)

    @classmethod
    def scale(cls, x: float, y: float, z: float) -> Matrix:
        return cls([
            x, 0.0, 0.0, 0.0,
            0.0, y, 0.0, 0.0,
            0.0, 0.0, z, 0.0,
            0.0, 0.0, 0.0, 1.0,
        ])

    @classmethod
    def translate(cls, x: float, y: float, z: float) -> Matrix:
        return cls([
            1.0, 0.0, 0.0, x,
            0.0, 1.0, 0.0, y,
            0.0, 0.0, 1.0, z,
            0.0, 0.0, 0.0, 1.0,
        ])

    @classmethod
    def rotate_x(cls, degrees: float) -> Matrix:
        c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
        return cls([
            1.0, 0.0, 0.0, 0.0,
            0.0, c, -s, 0.0,
            0.0, s, c, 0.0,
            0.0, 0.0, 0.0, 1.0,
        ])

    @classmethod
    def rotate_y(cls, degrees: float) -> Matrix:
        c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
        return cls([
            c, 0.0, s, 0.0,
            0.0, 1.0, 0.0, 0.0,
            -s, 0.0, c, 0.0,
            0.0, 0.0, 0.0, 1.0,
        ])

    @classmethod
    def rotate_z(cls, degrees: float) -> Matrix:
        c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
        return cls([
            c, -s, 0.0, 0.0,
            s, c, 0.0, 0.0,
            0.0, 0.0, 1.0, 0.0,
            0.0, 0.0, 0.0, 1.0,
        ])

    @classmethod
    def rotate(cls, x: float, y: float, z: float) -> Matrix:
        """Euler rotation in degrees, applied about z, then y, then x."""
        return cls.rotate_x(x) @ cls.rotate_y(y) @ cls.rotate_z(z)

    @classmethod
    def matching(cls, kind: MatrixType, v: Vector) -> Matrix:
        if kind is MatrixType.TRANSLATE:
            return cls.translate(*v)
        if kind is MatrixType.SCALE:
            return cls.scale(*v)
        return cls.rotate(*v)

    @classmethod
    def about(cls, matrix: Matrix, pivot: Vector) -> Matrix:
        """Conjugate *matrix* so that it acts around *pivot* instead of the origin."""
        return cls.translate(*pivot) @ matrix @ cls.translate(*(-pivot))

    # -- algebra --------------------------------------------------------------

    def __matmul__(self, other: Matrix) -> Matrix:
        a, b = self.data, other.data
        out = [0.0] * 16
        for row in range(4):
            for col in range(4):
                out[row * 4 + col] = sum(a[row * 4 + k] * b[k * 4 + col] for k in range(4))
        return Matrix(out)

    def apply(self, p: Vector) -> Vector:
        """Transform a point (w = 1)."""
        m = self.data
        return Vector(
            m[0] * p.x + m[1] * p.y + m[2] * p.z + m[3],
            m[4] * p.x + m[5] * p.y + m[6] * p.z + m[7],
            m[8] * p.x + m[9] * p.y + m[10] * p.z + m[11],
        )

    def apply_direction(self, d: Vector) -> Vector:
        """Transform a direction (w = 0); translation is ignored."""
        m = self.data
        return Vector(
            m[0] * d.x + m[1] * d.y + m[2] * d.z,
            m[4] * d.x + m[5] * d.y + m[6] * d.z,
            m[8] * d.x + m[9] * d.y + m[10] * d.z,
        )

    def rigid_inverse(self) -> Matrix:
        """Inverse of a rotation + translation matrix (transpose the rotation)."""
        m = self.data
        r = [
            m[0], m[4], m[8],
            m[1], m[5], m[9],
            m[2], m[6], m[10],
        ]
        t = (m[3], m[7], m[11])
        tx = -(r[0] * t[0] + r[1] * t[1] + r[2] * t[2])
        ty = -(r[3] * t[0] + r[4] * t[1] + r[5] * t[2])
        tz = -(r[6] * t[0] + r[7] * t[1] + r[8] * t[2])
        return Matrix([
            r[0], r[1], r[2], tx,
            r[3], r[4], r[5], ty,
            r[6], r[7], r[8], tz,
            0.0, 0.0, 0.0, 1.0,
        ])

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Matrix) and self.data == other.data

    def __hash__(self) -> int:
        return hash(self.data)

    def __repr__(self) -> str:
        return f"Matrix({list(self.data)!r})"
