"""Design — the set of placed parts sharing one world space.

Solvers never see a live :class:`Design`.  They work on a
:class:`DesignSnapshot`, an immutable view with world-space geometry resolved
once per part.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from buildcheck.errors import DesignError
from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.mesh import Mesh
from buildcheck.geometry.placement import Placement
from buildcheck.geometry.vector import Vector
from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import AttributeValue
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.library import TemplateLibrary
from buildcheck.parts.part import Part, set_attribute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedPart:
    """Read-only, world-resolved view of a part at snapshot time."""

    part_id: str
    name: str
    template_name: str
    placement: Placement
    local_mesh: Mesh
    mesh: Mesh
    """World-space mesh."""
    bounds: BoundingBox
    """World-space bounds."""
    connection_points: tuple[ConnectionPoint, ...]
    world_points: tuple[Vector, ...]
    annotations: tuple[JointAnnotation, ...]
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_part(cls, part: Part) -> PlacedPart:
        world = part.world_mesh()
        return cls(
            part_id=part.part_id,
            name=part.name,
            template_name=part.template_name,
            placement=part.placement,
            local_mesh=part.mesh,
            mesh=world,
            bounds=world.bounds,
            connection_points=part.connection_points,
            world_points=tuple(part.world_connection_points()),
            annotations=part.annotations,
            attributes=part.attribute_values,
            metadata=dict(part.metadata),
        )

    @property
    def axis(self) -> Vector:
        """World direction of the part's length (local x) axis."""
        return self.placement.axis()

    def to_local(self, p: Vector) -> Vector:
        return self.placement.to_local(p)


class DesignSnapshot:
    """Immutable set of placed parts, ordered by part id."""

    def __init__(self, parts: Iterable[PlacedPart], name: str = "") -> None:
        ordered = sorted(parts, key=lambda p: p.part_id)
        self._parts: tuple[PlacedPart, ...] = tuple(ordered)
        self._by_id = {p.part_id: p for p in ordered}
        self.name = name

    @property
    def parts(self) -> tuple[PlacedPart, ...]:
        return self._parts

    def get(self, part_id: str) -> PlacedPart:
        try:
            return self._by_id[part_id]
        except KeyError:
            raise DesignError(f"Part not found: {part_id}") from None

    def parts_of(self, template_name: str) -> list[PlacedPart]:
        return [p for p in self._parts if p.template_name == template_name]

    def bounds_by_id(self) -> dict[str, BoundingBox]:
        return {p.part_id: p.bounds for p in self._parts}

    def __iter__(self) -> Iterator[PlacedPart]:
        return iter(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __contains__(self, part_id: str) -> bool:
        return part_id in self._by_id


class Design:
    """Mutable collection of parts; the unit of solving.

    Parameters
    ----------
    library:
        Template library parts are instantiated from.
    name:
        Optional design name, carried into reports.
    """

    def __init__(self, library: TemplateLibrary | None = None, name: str = "") -> None:
        self.library = library or TemplateLibrary()
        self.name = name
        self._parts: dict[str, Part] = {}

    # -- mutation -------------------------------------------------------------

    def add_part(
        self,
        template_name: str,
        part_id: str,
        placement: Placement | None = None,
        **values: Any,
    ) -> Part:
        """Instantiate *template_name* from the library and place it."""
        if part_id in self._parts:
            raise DesignError(f"Duplicate part id: {part_id}")
        part = self.library.instantiate(template_name, part_id, placement, **values)
        self._parts[part_id] = part
        logger.debug("Added part %s (%s)", part_id, template_name)
        return part

    def adopt(self, part: Part) -> Part:
        """Add an already-built part."""
        if part.part_id in self._parts:
            raise DesignError(f"Duplicate part id: {part.part_id}")
        self._parts[part.part_id] = part
        return part

    def remove_part(self, part_id: str) -> Part:
        try:
            return self._parts.pop(part_id)
        except KeyError:
            raise DesignError(f"Part not found: {part_id}") from None

    def move_part(
        self,
        part_id: str,
        position: Vector | tuple[float, float, float] | None = None,
        rotation: Vector | tuple[float, float, float] | None = None,
    ) -> Part:
        part = self.get(part_id)
        part.placement = part.placement.moved(
            Vector.of(position) if position is not None else None,
            Vector.of(rotation) if rotation is not None else None,
        )
        return part

    def set_attribute(self, part_id: str, attribute_name: str, value: Any) -> None:
        set_attribute(self.get(part_id), attribute_name, value)

    # -- access ---------------------------------------------------------------

    def get(self, part_id: str) -> Part:
        try:
            return self._parts[part_id]
        except KeyError:
            raise DesignError(f"Part not found: {part_id}") from None

    @property
    def parts(self) -> list[Part]:
        return [self._parts[k] for k in sorted(self._parts)]

    def snapshot(self) -> DesignSnapshot:
        """Freeze the current state for solving."""
        return DesignSnapshot((PlacedPart.from_part(p) for p in self._parts.values()), self.name)

    def __contains__(self, part_id: str) -> bool:
        return part_id in self._parts

    def __len__(self) -> int:
        return len(self._parts)
