"""Attributes and the transform rules they drive.

An attribute value change never edits a mesh in place.  Geometry is always
recomputed from the template's base mesh by :func:`apply_transforms`, a pure
function, so setting the same value twice yields the same mesh.

Transform semantics for a rule with ``direction`` d and ``multiplier`` m,
where ``E(v) = d * (v * m)`` (a scalar ``v`` broadcasts to all axes):

* ``translate`` moves the selection by ``E(value) - E(default)``
* ``scale`` scales about ``pivot`` by ``E(value) / E(default)`` on each axis
  where ``d`` is non-zero
* ``rotate`` rotates about ``pivot`` by ``E(value) - E(default)`` degrees

Rules apply in declaration order.  When selections overlap, a later rule sees
the vertices as the earlier rule left them.
"""

from __future__ import annotations

import math
from typing import Iterable, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from buildcheck.errors import OutOfDomain, TemplateError
from buildcheck.geometry.matrix import Matrix, MatrixType
from buildcheck.geometry.mesh import Mesh
from buildcheck.geometry.vector import Vector

AttributeValue = Union[float, Vector]


class VertexSelection(BaseModel):
    """Which vertices a transform rule touches."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["indices", "range", "all"] = "all"
    indices: tuple[int, ...] = ()
    start: int = 0
    end: int = 0
    """Half-open ``[start, end)`` when ``mode == 'range'``."""

    @classmethod
    def specific(cls, indices: Iterable[int]) -> VertexSelection:
        return cls(mode="indices", indices=tuple(indices))

    @classmethod
    def span(cls, start: int, end: int) -> VertexSelection:
        return cls(mode="range", start=start, end=end)

    @classmethod
    def every(cls) -> VertexSelection:
        return cls(mode="all")

    def resolve(self, count: int) -> frozenset[int]:
        if self.mode == "all":
            return frozenset(range(count))
        if self.mode == "range":
            return frozenset(range(self.start, self.end))
        return frozenset(self.indices)

    def check(self, count: int) -> None:
        """Raise :class:`TemplateError` if any index is outside ``[0, count)``."""
        if self.mode == "range":
            if not 0 <= self.start < self.end <= count:
                raise TemplateError(
                    f"Vertex range [{self.start}, {self.end}) invalid for {count} vertices"
                )
        elif self.mode == "indices":
            if not self.indices:
                raise TemplateError("Vertex selection is empty")
            bad = [i for i in self.indices if not 0 <= i < count]
            if bad:
                raise TemplateError(f"Vertex indices {bad} invalid for {count} vertices")


class TransformRule(BaseModel):
    """(vertex selection, transform kind, multiplier) applied on attribute change."""

    model_config = ConfigDict(frozen=True)

    selection: VertexSelection = Field(default_factory=VertexSelection.every)
    kind: MatrixType = MatrixType.TRANSLATE
    direction: Vector = Vector(1.0, 1.0, 1.0)
    multiplier: float = 1.0
    pivot: Vector = Vector()

    def effective(self, value: AttributeValue) -> Vector:
        return self.direction.hadamard(Vector.of(value) * self.multiplier)

    def matrix(self, value: AttributeValue, default: AttributeValue) -> Matrix:
        e = self.effective(value)
        e0 = self.effective(default)
        if self.kind is MatrixType.TRANSLATE:
            return Matrix.translate(*(e - e0))
        if self.kind is MatrixType.ROTATE:
            return Matrix.about(Matrix.rotate(*(e - e0)), self.pivot)
        factors = [
            (ei / e0i) if di != 0.0 else 1.0
            for ei, e0i, di in zip(e, e0, self.direction)
        ]
        return Matrix.about(Matrix.scale(*factors), self.pivot)


class Attribute(BaseModel):
    """A named parametric value and the ordered rules it drives."""

    model_config = ConfigDict(frozen=True)

    name: str
    default: AttributeValue = 0.0
    minimum: float | None = None
    maximum: float | None = None
    unit: str = "in"
    rules: tuple[TransformRule, ...] = ()
    description: str = ""

    @property
    def is_vector(self) -> bool:
        return isinstance(self.default, tuple)

    def check_definition(self, vertex_count: int) -> None:
        """Template-time checks; raises :class:`TemplateError`."""
        if not self.name:
            raise TemplateError("Attribute doesn't have a name")
        if not self.rules:
            raise TemplateError(f"Attribute '{self.name}' doesn't change any vertices")
        for rule in self.rules:
            if rule.multiplier == 0.0:
                raise TemplateError(f"Attribute '{self.name}' has a rule with multiplier 0.0")
            rule.selection.check(vertex_count)
            if rule.kind is MatrixType.SCALE:
                e0 = rule.effective(self.default)
                if any(d != 0.0 and c == 0.0 for d, c in zip(rule.direction, e0)):
                    raise TemplateError(
                        f"Attribute '{self.name}' scales from a zero default"
                    )
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise TemplateError(f"Attribute '{self.name}' has minimum > maximum")

    def coerce(self, value: object, part_id: str = "") -> AttributeValue:
        """Validate *value* against this attribute's shape and domain."""
        if self.is_vector:
            if isinstance(value, (int, float)) or not isinstance(value, Sequence):
                raise OutOfDomain(part_id, self.name, value, "expected a 3-vector")
            if len(value) != 3:
                raise OutOfDomain(part_id, self.name, value, "expected a 3-vector")
            components = [self._number(c, part_id, value) for c in value]
            for c in components:
                self._check_range(c, part_id, value)
            return Vector(*components)

        number = self._number(value, part_id, value)
        self._check_range(number, part_id, value)
        return number

    def _number(self, value: object, part_id: str, original: object) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise OutOfDomain(part_id, self.name, original, "not a number")
        number = float(value)
        if not math.isfinite(number):
            raise OutOfDomain(part_id, self.name, original, "not finite")
        return number

    def _check_range(self, number: float, part_id: str, original: object) -> None:
        if self.minimum is not None and number < self.minimum:
            raise OutOfDomain(part_id, self.name, original, f"below minimum {self.minimum}")
        if self.maximum is not None and number > self.maximum:
            raise OutOfDomain(part_id, self.name, original, f"above maximum {self.maximum}")


Rider = tuple[Vector, frozenset[int]]
"""A point carried along with the mesh, and the vertex indices it is anchored to."""


def transform_points(
    vertices: Sequence[Vector],
    rules: Sequence[TransformRule],
    value: AttributeValue,
    default: AttributeValue,
    riders: Sequence[Rider] = (),
) -> tuple[tuple[Vector, ...], tuple[Vector, ...]]:
    """Apply *rules* in order to *vertices* and to the anchored *riders*.

    A rider moves with a rule only when every one of its anchor vertices is
    selected by that rule.  Riders without anchors never move.
    """
    verts = list(vertices)
    carried = [p for p, _anchor in riders]
    count = len(verts)
    for rule in rules:
        selected = rule.selection.resolve(count)
        if not selected:
            continue
        m = rule.matrix(value, default)
        for i in selected:
            verts[i] = m.apply(verts[i])
        for n, (_p, anchor) in enumerate(riders):
            if anchor and anchor <= selected:
                carried[n] = m.apply(carried[n])
    return tuple(verts), tuple(carried)


def apply_transforms(
    mesh: Mesh,
    rules: Sequence[TransformRule],
    value: AttributeValue,
    default: AttributeValue = 0.0,
) -> Mesh:
    """Pure mesh transform: return a new mesh with *rules* applied for *value*."""
    verts, _ = transform_points(mesh.vertices, rules, value, default)
    return mesh.with_vertices(verts)
