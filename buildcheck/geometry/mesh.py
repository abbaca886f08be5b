"""Mesh — immutable triangle mesh (vertices + 0-based face index triples)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from buildcheck.errors import MalformedMesh
from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.matrix import Matrix
from buildcheck.geometry.vector import Vector

Face = tuple[int, int, int]


@dataclass(frozen=True)
class Triangle:
    """Three world or local points plus the face indices they came from."""

    p1: Vector
    p2: Vector
    p3: Vector
    indices: Face = (0, 0, 0)

    @property
    def points(self) -> tuple[Vector, Vector, Vector]:
        return (self.p1, self.p2, self.p3)

    def normal(self) -> Vector:
        return (self.p2 - self.p1).cross(self.p3 - self.p1).normalize()

    def area(self) -> float:
        return (self.p2 - self.p1).cross(self.p3 - self.p1).length() * 0.5

    def edges(self) -> tuple[tuple[Vector, Vector], ...]:
        return ((self.p1, self.p2), (self.p2, self.p3), (self.p3, self.p1))

    def bounds(self) -> BoundingBox:
        return BoundingBox.from_points(self.points)


class Mesh:
    """Vertex list and triangle faces.

    Instances are never mutated; transforms return a new mesh.
    """

    __slots__ = ("_vertices", "_faces", "_bounds")

    def __init__(self, vertices: Iterable[Vector] = (), faces: Iterable[Face] = ()) -> None:
        self._vertices: tuple[Vector, ...] = tuple(vertices)
        self._faces: tuple[Face, ...] = tuple(faces)
        self._bounds: BoundingBox | None = None

    @property
    def vertices(self) -> tuple[Vector, ...]:
        return self._vertices

    @property
    def faces(self) -> tuple[Face, ...]:
        return self._faces

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Mesh)
            and self._vertices == other._vertices
            and self._faces == other._faces
        )

    def __hash__(self) -> int:
        return hash((self._vertices, self._faces))

    def __repr__(self) -> str:
        return f"Mesh({len(self._vertices)} vertices, {len(self._faces)} faces)"

    @classmethod
    def make(cls, vertices: Iterable[Iterable[float]], faces: Iterable[Iterable[int]]) -> Mesh:
        """Build and validate a mesh from plain coordinate/index sequences."""
        verts = tuple(Vector.of(v) for v in vertices)
        tris: list[Face] = []
        for f in faces:
            idx = tuple(int(i) for i in f)
            if len(idx) != 3:
                raise MalformedMesh(f"Face {idx} is not a triangle")
            tris.append(idx)  # type: ignore[arg-type]
        return cls(verts, tuple(tris)).validated()

    def validated(self) -> Mesh:
        """Return self, raising :class:`MalformedMesh` on any invariant violation."""
        count = len(self.vertices)
        seen: set[frozenset[int]] = set()
        for n, face in enumerate(self.faces):
            for i in face:
                if not 0 <= i < count:
                    raise MalformedMesh(
                        f"Face {n} references vertex {i}; mesh has {count} vertices"
                    )
            key = frozenset(face)
            if len(key) != 3:
                raise MalformedMesh(f"Face {n} repeats a vertex: {face}")
            if key in seen:
                raise MalformedMesh(f"Face {n} duplicates an earlier face: {face}")
            seen.add(key)
        return self

    # -- accessors ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.faces)

    def triangle(self, i: int) -> Triangle:
        a, b, c = self.faces[i]
        return Triangle(self.vertices[a], self.vertices[b], self.vertices[c], (a, b, c))

    def triangles(self) -> Iterator[Triangle]:
        for i in range(len(self.faces)):
            yield self.triangle(i)

    @property
    def bounds(self) -> BoundingBox:
        if self._bounds is None:
            self._bounds = BoundingBox.from_points(self._vertices)
        return self._bounds

    # -- transforms -----------------------------------------------------------

    def transformed(self, matrix: Matrix) -> Mesh:
        return Mesh(tuple(matrix.apply(v) for v in self.vertices), self.faces)

    def with_vertices(self, vertices: Iterable[Vector]) -> Mesh:
        verts = tuple(vertices)
        if len(verts) != len(self.vertices):
            raise MalformedMesh(
                f"Vertex count changed from {len(self.vertices)} to {len(verts)}"
            )
        return Mesh(verts, self.faces)

    # -- queries --------------------------------------------------------------

    def locate(self, point: Vector, tolerance: float = 1e-6) -> tuple[int, ...]:
        """Anchor a point to the surface.

        Returns ``(vertex,)`` when the point coincides with a vertex, the
        three face indices when it lies on a face, and ``()`` otherwise.
        """
        return self.anchor(point, tolerance)[0]

    def anchor(
        self, point: Vector, tolerance: float = 1e-6,
    ) -> tuple[tuple[int, ...], tuple[float, ...]]:
        """Vertex indices *point* is attached to, with its barycentric weights.

        The weighted sum of those vertices reproduces the point, so it can be
        rebuilt on the same face after the vertices move.
        """
        for i, v in enumerate(self.vertices):
            if v.is_close(point, tolerance):
                return (i,), (1.0,)
        for tri in self.triangles():
            if point_on_triangle(point, tri, tolerance):
                return tri.indices, barycentric(point, tri)
        return (), ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "vertices": [list(v) for v in self.vertices],
            "faces": [list(f) for f in self.faces],
        }


def barycentric(p: Vector, tri: Triangle) -> tuple[float, float, float]:
    """Weights of ``tri.p1``, ``tri.p2``, ``tri.p3`` for *p* projected onto *tri*.

    Degenerate triangles give ``(1, 0, 0)``.
    """
    n = (tri.p2 - tri.p1).cross(tri.p3 - tri.p1)
    area2 = n.length()
    if area2 == 0.0:
        return (1.0, 0.0, 0.0)
    unit = n * (1.0 / area2)
    # Sub-triangle areas, signed by the normal
    u = (tri.p3 - tri.p2).cross(p - tri.p2).dot(unit) / area2
    v = (tri.p1 - tri.p3).cross(p - tri.p3).dot(unit) / area2
    return (u, v, 1.0 - u - v)


def point_on_triangle(p: Vector, tri: Triangle, tolerance: float = 1e-6) -> bool:
    """True when *p* lies on the (closed) triangle within *tolerance*."""
    n = (tri.p2 - tri.p1).cross(tri.p3 - tri.p1)
    area2 = n.length()
    if area2 == 0.0:
        return False
    if abs((p - tri.p1).dot(n * (1.0 / area2))) > tolerance:
        return False
    u, v, w = barycentric(p, tri)
    slack = tolerance / max(area2 ** 0.5, 1e-12)
    return u >= -slack and v >= -slack and w >= -slack


def box_mesh(length: float, width: float, height: float) -> Mesh:
    """Closed box from the origin to ``(length, width, height)``.

    Vertices 0-3 are the ``x = 0`` end, 4-7 the ``x = length`` end, each in the
    order (y0,z0), (y1,z0), (y1,z1), (y0,z1).  Faces wind outward.
    """
    L, W, H = float(length), float(width), float(height)
    vertices = [
        (0.0, 0.0, 0.0), (0.0, W, 0.0), (0.0, W, H), (0.0, 0.0, H),
        (L, 0.0, 0.0), (L, W, 0.0), (L, W, H), (L, 0.0, H),
    ]
    faces = [
        (0, 2, 1), (0, 3, 2),  # x = 0
        (4, 5, 6), (4, 6, 7),  # x = L
        (0, 1, 5), (0, 5, 4),  # z = 0
        (3, 7, 6), (3, 6, 2),  # z = H
        (0, 4, 7), (0, 7, 3),  # y = 0
        (1, 2, 6), (1, 6, 5),  # y = W
    ]
    return Mesh.make(vertices, faces)
