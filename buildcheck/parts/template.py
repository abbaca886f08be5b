"""PartTemplate — a library definition parts are instantiated from."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from buildcheck.errors import MalformedMesh, TemplateError
from buildcheck.geometry.mesh import Mesh
from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import Attribute
from buildcheck.parts.connection import ConnectionPoint

# Distance within which a connection point counts as lying on the surface
SURFACE_TOLERANCE = 1e-6


class PartTemplate(BaseModel):
    """Geometry, attribute and connection declarations for one kind of part.

    Validation runs on construction and raises :class:`TemplateError`:
    attributes must map to real vertices, connection points must lie on the
    surface, and the mesh must be non-empty.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    mesh: Mesh
    attributes: tuple[Attribute, ...] = ()
    connection_points: tuple[ConnectionPoint, ...] = ()
    annotations: tuple[JointAnnotation, ...] = ()
    metadata: dict[str, str] = Field(default_factory=dict)
    description: str = ""

    _anchors: tuple[frozenset[int], ...] = PrivateAttr(default=())
    _surface: tuple[tuple[tuple[int, ...], tuple[float, ...]], ...] = PrivateAttr(default=())

    @field_validator("mesh", mode="before")
    @classmethod
    def _coerce_mesh(cls, value: Any) -> Any:
        if isinstance(value, dict):
            try:
                return Mesh.make(value.get("vertices", []), value.get("faces", []))
            except MalformedMesh as exc:
                raise TemplateError(f"Invalid template mesh: {exc}") from exc
        return value

    def model_post_init(self, __context: Any) -> None:
        if not self.name:
            raise TemplateError("Template doesn't have a name")
        if not self.mesh.faces:
            raise TemplateError(f"Template '{self.name}' has an empty mesh")
        try:
            self.mesh.validated()
        except MalformedMesh as exc:
            raise TemplateError(f"Template '{self.name}': {exc}") from exc

        count = len(self.mesh.vertices)
        seen: set[str] = set()
        for attr in self.attributes:
            attr.check_definition(count)
            if attr.name in seen:
                raise TemplateError(f"Template '{self.name}' declares '{attr.name}' twice")
            seen.add(attr.name)

        surface: list[tuple[tuple[int, ...], tuple[float, ...]]] = []
        for n, point in enumerate(self.connection_points):
            anchor, weights = self.mesh.anchor(point.position, SURFACE_TOLERANCE)
            if not anchor:
                raise TemplateError(
                    f"Template '{self.name}': connection point {n} "
                    f"{tuple(point.position)} is not on the surface"
                )
            surface.append((anchor, weights))
        self._surface = tuple(surface)
        self._anchors = tuple(frozenset(anchor) for anchor, _w in surface)

        for annotation in self.annotations:
            bad = [i for i in annotation.follows if not 0 <= i < count]
            if bad:
                raise TemplateError(
                    f"Template '{self.name}': annotation follows invalid vertices {bad}"
                )

    @property
    def anchors(self) -> tuple[frozenset[int], ...]:
        """Vertex indices each connection point is attached to."""
        return self._anchors

    @property
    def surface_anchors(self) -> tuple[tuple[tuple[int, ...], tuple[float, ...]], ...]:
        """Anchor vertex indices and barycentric weights per connection point."""
        return self._surface

    def attribute(self, name: str) -> Attribute | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    @property
    def attribute_names(self) -> list[str]:
        return [a.name for a in self.attributes]
