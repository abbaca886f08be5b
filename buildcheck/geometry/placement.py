"""Placement — world position and orientation of a part."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from buildcheck.geometry.matrix import Matrix
from buildcheck.geometry.vector import Vector


class Placement(BaseModel):
    """Rigid placement: Euler rotation (degrees) followed by a translation."""

    model_config = ConfigDict(frozen=True)

    position: Vector = Vector()
    rotation: Vector = Vector()

    @property
    def matrix(self) -> Matrix:
        return Matrix.translate(*self.position) @ Matrix.rotate(*self.rotation)

    @property
    def inverse(self) -> Matrix:
        return self.matrix.rigid_inverse()

    def to_world(self, p: Vector) -> Vector:
        return self.matrix.apply(p)

    def to_local(self, p: Vector) -> Vector:
        return self.inverse.apply(p)

    def axis(self, local_axis: Vector = Vector(1.0, 0.0, 0.0)) -> Vector:
        """World-space direction of a local axis (the length axis by default)."""
        return self.matrix.apply_direction(local_axis).normalize()

    def moved(self, position: Vector | None = None, rotation: Vector | None = None) -> Placement:
        return Placement(
            position=self.position if position is None else Vector.of(position),
            rotation=self.rotation if rotation is None else Vector.of(rotation),
        )
