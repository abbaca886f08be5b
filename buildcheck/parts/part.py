"""Part — a placed, parametric instance of a template.

:func:`set_attribute` is the Attribute-Transform Engine entry point.  It
validates the new value, rebuilds geometry from the template's base mesh with
every attribute at its current value, and swaps the result onto the part in
one step.  A failed call leaves the part untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from buildcheck.errors import UnknownAttribute
from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.mesh import Mesh
from buildcheck.geometry.placement import Placement
from buildcheck.geometry.vector import Vector
from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import AttributeValue, Rider, transform_points
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.template import PartTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Geometry:
    """Everything derived from attribute values, replaced as a unit."""

    mesh: Mesh
    connection_points: tuple[ConnectionPoint, ...]
    annotations: tuple[JointAnnotation, ...]


def _annotation_riders(annotation: JointAnnotation) -> list[Rider]:
    anchor = frozenset(annotation.follows)
    return [(corner, anchor) for corner in annotation.region.corners()]


def _on_surface(
    position: Vector,
    anchor: tuple[int, ...],
    weights: tuple[float, ...],
    base: tuple[Vector, ...],
    moved: tuple[Vector, ...],
) -> Vector:
    """Carry *position* with its anchor face as a barycentric blend of its vertices."""
    for i, w in zip(anchor, weights):
        if moved[i] != base[i]:
            position = position + (moved[i] - base[i]) * w
    return position


def build_geometry(template: PartTemplate, values: Mapping[str, AttributeValue]) -> _Geometry:
    """Recompute mesh, connection points and annotation regions from *values*."""
    base = template.mesh.vertices
    vertices = base
    riders: list[Rider] = []
    for annotation in template.annotations:
        riders.extend(_annotation_riders(annotation))

    for attr in template.attributes:
        vertices, carried = transform_points(
            vertices, attr.rules, values[attr.name], attr.default, riders,
        )
        riders = [(p, anchor) for p, (_old, anchor) in zip(carried, riders)]

    points = tuple(
        cp.moved_to(_on_surface(cp.position, anchor, weights, base, vertices))
        for cp, (anchor, weights) in zip(template.connection_points, template.surface_anchors)
    )
    annotations: list[JointAnnotation] = []
    offset = 0
    for annotation in template.annotations:
        corners = [p for p, _anchor in riders[offset:offset + 8]]
        offset += 8
        annotations.append(annotation.with_region(BoundingBox.from_points(corners)))

    return _Geometry(
        mesh=template.mesh.with_vertices(vertices).validated(),
        connection_points=points,
        annotations=tuple(annotations),
    )


class Part:
    """A template instance with identity, placement, and parametric geometry.

    ``part_id`` and ``name`` are fixed at creation.  Geometry is only ever
    changed through :func:`set_attribute`.
    """

    def __init__(
        self,
        part_id: str,
        template: PartTemplate,
        placement: Placement | None = None,
        *,
        name: str | None = None,
        values: Mapping[str, Any] | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        self._part_id = part_id
        self._name = name or template.name
        self._template = template
        self.placement = placement or Placement()
        self.metadata: dict[str, str] = dict(template.metadata)
        if metadata:
            self.metadata.update(metadata)

        resolved: dict[str, AttributeValue] = {a.name: a.default for a in template.attributes}
        for key, val in (values or {}).items():
            attr = template.attribute(key)
            if attr is None:
                raise UnknownAttribute(part_id, key)
            resolved[key] = attr.coerce(val, part_id)
        self._values = resolved
        self._geometry = build_geometry(template, resolved)

    # -- identity -------------------------------------------------------------

    @property
    def part_id(self) -> str:
        return self._part_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def template(self) -> PartTemplate:
        return self._template

    @property
    def template_name(self) -> str:
        return self._template.name

    # -- attributes -----------------------------------------------------------

    @property
    def attribute_values(self) -> dict[str, AttributeValue]:
        return dict(self._values)

    def get_attribute(self, name: str) -> AttributeValue:
        if name not in self._values:
            raise UnknownAttribute(self._part_id, name)
        return self._values[name]

    def set_attribute(self, name: str, value: Any) -> None:
        set_attribute(self, name, value)

    # -- geometry -------------------------------------------------------------

    @property
    def mesh(self) -> Mesh:
        return self._geometry.mesh

    @property
    def bounds(self) -> BoundingBox:
        """Local-space bounds of the current mesh."""
        return self._geometry.mesh.bounds

    @property
    def connection_points(self) -> tuple[ConnectionPoint, ...]:
        return self._geometry.connection_points

    @property
    def annotations(self) -> tuple[JointAnnotation, ...]:
        return self._geometry.annotations

    def world_mesh(self) -> Mesh:
        return self._geometry.mesh.transformed(self.placement.matrix)

    def world_bounds(self) -> BoundingBox:
        return self.world_mesh().bounds

    def world_connection_points(self) -> list[Vector]:
        m = self.placement.matrix
        return [m.apply(cp.position) for cp in self._geometry.connection_points]

    def __repr__(self) -> str:
        return f"Part({self._part_id!r}, template={self.template_name!r})"


def set_attribute(part: Part, attribute_name: str, new_value: Any) -> None:
    """Change one attribute and rebuild the part's geometry.

    Raises
    ------
    UnknownAttribute
        If the template does not declare *attribute_name*.
    OutOfDomain
        If *new_value* has the wrong shape or violates the declared domain.
    MalformedMesh
        If the transformed mesh breaks a mesh invariant.
    """
    attr = part.template.attribute(attribute_name)
    if attr is None:
        raise UnknownAttribute(part.part_id, attribute_name)
    value = attr.coerce(new_value, part.part_id)

    values = dict(part._values)
    values[attribute_name] = value
    geometry = build_geometry(part.template, values)

    # Swap only after everything succeeded
    part._values = values
    part._geometry = geometry
    logger.debug("Part %s: %s = %r", part.part_id, attribute_name, value)
