"""Exact mesh/mesh intersection in world space.

Edge/face crossings are found with the Möller–Trumbore segment test run in
both directions.  Only strictly interior crossings count: an edge that ends on
a face, or a crossing that lands on a face boundary, is contact.  Coplanar
faces never cross.  A part buried entirely inside another is caught by a
ray-parity containment test on its centre.  Vertices of either mesh that lie
strictly inside the other are reported too, and when nothing else registers,
the centre of the shared bounding volume is tested against both meshes so
that boxes overlapping along coincident face planes still intersect.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.mesh import Mesh, Triangle, point_on_triangle
from buildcheck.geometry.vector import Vector

logger = logging.getLogger(__name__)

# Skewed direction so containment rays avoid running along box edges/diagonals
_RAY_DIRECTION = Vector(0.5309, 0.6214, 0.5762).normalize()
_PARALLEL_EPS = 1e-12


@dataclass(frozen=True)
class MeshIntersection:
    """Points where two meshes interpenetrate (empty when they only touch)."""

    points: tuple[Vector, ...] = ()
    contained: bool = False

    @property
    def intersects(self) -> bool:
        return bool(self.points)

    @property
    def centroid(self) -> Vector | None:
        if not self.points:
            return None
        total = Vector()
        for p in self.points:
            total = total + p
        return total * (1.0 / len(self.points))

    @property
    def bounds(self) -> BoundingBox | None:
        if not self.points:
            return None
        return BoundingBox.from_points(self.points)


def segment_crossing(
    p0: Vector,
    p1: Vector,
    tri: Triangle,
    tolerance: float,
) -> Vector | None:
    """Point where segment ``p0 -> p1`` strictly crosses *tri*, else *None*."""
    d = p1 - p0
    seg_len = d.length()
    if seg_len == 0.0:
        return None
    e1 = tri.p2 - tri.p1
    e2 = tri.p3 - tri.p1
    h = d.cross(e2)
    det = e1.dot(h)
    if abs(det) <= _PARALLEL_EPS * seg_len * e1.length() * e2.length():
        return None  # parallel or coplanar: contact at most

    inv = 1.0 / det
    s = p0 - tri.p1
    u = inv * s.dot(h)
    q = s.cross(e1)
    v = inv * d.dot(q)
    t = inv * e2.dot(q)

    eps_t = tolerance / seg_len
    eps_b = tolerance / max(math.sqrt(2.0 * tri.area()), 1e-12)
    if not eps_t < t < 1.0 - eps_t:
        return None
    if u <= eps_b or v <= eps_b or u + v >= 1.0 - eps_b:
        return None
    return p0 + d * t


def _ray_hits(origin: Vector, mesh: Mesh) -> int:
    hits = 0
    for tri in mesh.triangles():
        e1 = tri.p2 - tri.p1
        e2 = tri.p3 - tri.p1
        h = _RAY_DIRECTION.cross(e2)
        det = e1.dot(h)
        if abs(det) <= _PARALLEL_EPS:
            continue
        inv = 1.0 / det
        s = origin - tri.p1
        u = inv * s.dot(h)
        if u < 0.0 or u > 1.0:
            continue
        q = s.cross(e1)
        v = inv * _RAY_DIRECTION.dot(q)
        if v < 0.0 or u + v > 1.0:
            continue
        if inv * e2.dot(q) > 0.0:
            hits += 1
    return hits


def point_inside(point: Vector, mesh: Mesh, tolerance: float = 1e-6) -> bool:
    """True when *point* lies strictly inside the closed *mesh*."""
    if not mesh.bounds.contains(point, -tolerance):
        return False
    for tri in mesh.triangles():
        if point_on_triangle(point, tri, tolerance):
            return False
    return _ray_hits(point, mesh) % 2 == 1


def _crossings(a: Mesh, b: Mesh, tolerance: float) -> list[Vector]:
    """Edges of *a* crossing faces of *b*."""
    b_box = b.bounds
    found: list[Vector] = []
    b_tris = [(t, t.bounds()) for t in b.triangles()]
    seen_edges: set[tuple[int, int]] = set()
    for tri in a.triangles():
        if not tri.bounds().overlaps(b_box, tolerance):
            continue
        ia, ib, ic = tri.indices
        for (p0, p1), key in zip(tri.edges(), ((ia, ib), (ib, ic), (ic, ia))):
            edge = (min(key), max(key))
            if edge in seen_edges:
                continue
            seen_edges.add(edge)
            edge_box = BoundingBox.from_points((p0, p1))
            for other, other_box in b_tris:
                if not edge_box.overlaps(other_box, tolerance):
                    continue
                hit = segment_crossing(p0, p1, other, tolerance)
                if hit is not None:
                    found.append(hit)
    return found


def _interior_vertices(a: Mesh, b: Mesh, tolerance: float) -> list[Vector]:
    """Vertices of *a* strictly inside *b*."""
    box = b.bounds
    return [v for v in a.vertices if box.contains(v, -tolerance) and point_inside(v, b, tolerance)]


def intersect_meshes(a: Mesh, b: Mesh, tolerance: float = 1e-6) -> MeshIntersection:
    """Exact narrow-phase test between two world-space meshes."""
    if not a.bounds.overlaps(b.bounds, tolerance):
        return MeshIntersection()

    points = _crossings(a, b, tolerance) + _crossings(b, a, tolerance)
    contained = False
    if not points:
        # No surface crossings: either disjoint, touching, or one inside the other
        for inner, outer in ((a, b), (b, a)):
            centre = inner.bounds.center
            if point_inside(centre, outer, tolerance) and outer.bounds.encloses(
                inner.bounds, tolerance
            ):
                points.append(centre)
                contained = True
                break

    points.extend(_interior_vertices(a, b, tolerance))
    points.extend(_interior_vertices(b, a, tolerance))
    if not points:
        # Faces sharing planes cross only on boundaries; test the shared volume
        overlap = a.bounds.intersection(b.bounds)
        if overlap is not None and min(overlap.size) > tolerance:
            centre = overlap.center
            if point_inside(centre, a, tolerance) and point_inside(centre, b, tolerance):
                points.append(centre)

    unique = sorted({Vector(*(round(c, 9) for c in p)) for p in points})
    if unique:
        logger.debug("Mesh intersection: %d points (contained=%s)", len(unique), contained)
    return MeshIntersection(points=tuple(unique), contained=contained)
