"""Tests for geometry primitives — vectors, matrices, bounds, meshes, intersection."""

from __future__ import annotations

import pytest

from buildcheck.errors import MalformedMesh
from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.intersect import intersect_meshes, point_inside, segment_crossing
from buildcheck.geometry.matrix import Matrix, MatrixType
from buildcheck.geometry.mesh import Mesh, Triangle, box_mesh
from buildcheck.geometry.placement import Placement
from buildcheck.geometry.vector import Vector, angle_between, line_angle


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _moved_box(size: float, offset: tuple[float, float, float]) -> Mesh:
    return box_mesh(size, size, size).transformed(Matrix.translate(*offset))


def _approx(v: Vector) -> tuple:
    return tuple(pytest.approx(c, abs=1e-9) for c in v)


# ---------------------------------------------------------------------------
# Vector
# ---------------------------------------------------------------------------

class TestVector:
    def test_of_broadcasts_scalar(self):
        assert Vector.of(2) == Vector(2.0, 2.0, 2.0)

    def test_of_sequence(self):
        assert Vector.of([1, 2, 3]) == Vector(1.0, 2.0, 3.0)

    def test_arithmetic(self):
        a, b = Vector(1, 2, 3), Vector(4, 5, 6)
        assert a + b == Vector(5, 7, 9)
        assert b - a == Vector(3, 3, 3)
        assert a * 2 == Vector(2, 4, 6)
        assert 2 * a == Vector(2, 4, 6)
        assert -a == Vector(-1, -2, -3)
        assert a.hadamard(b) == Vector(4, 10, 18)

    def test_dot_cross(self):
        x, y = Vector(1, 0, 0), Vector(0, 1, 0)
        assert x.dot(y) == 0.0
        assert x.cross(y) == Vector(0, 0, 1)

    def test_normalize_zero(self):
        assert Vector().normalize() == Vector()

    def test_angles(self):
        x = Vector(1, 0, 0)
        assert angle_between(x, Vector(-1, 0, 0)) == pytest.approx(180.0)
        assert line_angle(x, Vector(-1, 0, 0)) == pytest.approx(0.0)
        assert line_angle(x, Vector(1, 1, 0)) == pytest.approx(45.0)
        assert line_angle(x, Vector(0, 0, 5)) == pytest.approx(90.0)


# ---------------------------------------------------------------------------
# Matrix / Placement
# ---------------------------------------------------------------------------

class TestMatrix:
    def test_identity(self):
        p = Vector(1, 2, 3)
        assert Matrix.identity().apply(p) == p

    def test_translate(self):
        assert Matrix.translate(1, 2, 3).apply(Vector()) == Vector(1, 2, 3)

    def test_rotate_z_quarter_turn(self):
        p = Matrix.rotate_z(90).apply(Vector(1, 0, 0))
        assert _approx(p) == (0.0, 1.0, 0.0)

    def test_about_pivot(self):
        m = Matrix.about(Matrix.scale(2, 2, 2), Vector(1, 1, 1))
        assert m.apply(Vector(1, 1, 1)) == Vector(1, 1, 1)
        assert m.apply(Vector(2, 1, 1)) == Vector(3, 1, 1)

    def test_matching(self):
        v = Vector(2, 3, 4)
        assert Matrix.matching(MatrixType.SCALE, v) == Matrix.scale(2, 3, 4)
        assert Matrix.matching(MatrixType.TRANSLATE, v) == Matrix.translate(2, 3, 4)

    def test_rigid_inverse(self):
        m = Matrix.translate(5, -2, 1) @ Matrix.rotate(10, 20, 30)
        p = Vector(3, 4, 5)
        assert _approx(m.rigid_inverse().apply(m.apply(p))) == tuple(p)

    def test_wrong_size(self):
        with pytest.raises(ValueError):
            Matrix([1.0, 2.0])


class TestPlacement:
    def test_round_trip(self):
        pl = Placement(position=Vector(10, 0, 0), rotation=Vector(0, 0, 90))
        p = Vector(1, 2, 3)
        assert _approx(pl.to_local(pl.to_world(p))) == tuple(p)

    def test_axis(self):
        pl = Placement(rotation=Vector(0, 0, 90))
        assert _approx(pl.axis()) == (0.0, 1.0, 0.0)

    def test_moved_keeps_unset(self):
        pl = Placement(position=Vector(1, 1, 1), rotation=Vector(0, 0, 45))
        moved = pl.moved(position=(2, 2, 2))
        assert moved.position == Vector(2, 2, 2)
        assert moved.rotation == Vector(0, 0, 45)


# ---------------------------------------------------------------------------
# BoundingBox
# ---------------------------------------------------------------------------

class TestBoundingBox:
    def test_from_points_tight(self):
        box = BoundingBox.from_points([Vector(1, 5, -1), Vector(-2, 0, 3)])
        assert box.minimum == Vector(-2, 0, -1)
        assert box.maximum == Vector(1, 5, 3)
        assert box.center == Vector(-0.5, 2.5, 1.0)

    def test_touching_overlaps(self):
        a = BoundingBox(max_x=1, max_y=1, max_z=1)
        b = BoundingBox(min_x=1, max_x=2, max_y=1, max_z=1)
        assert a.overlaps(b)
        assert a.distance(b) == 0.0

    def test_distance(self):
        a = BoundingBox(max_x=1, max_y=1, max_z=1)
        b = BoundingBox(min_x=4, max_x=5, min_y=5, max_y=6, max_z=1)
        assert a.distance(b) == pytest.approx(5.0)
        assert a.intersection(b) is None

    def test_corners(self):
        corners = BoundingBox(max_x=1, max_y=2, max_z=3).corners()
        assert len(corners) == 8
        assert Vector(1, 2, 3) in corners


# ---------------------------------------------------------------------------
# Mesh
# ---------------------------------------------------------------------------

class TestMesh:
    def test_box_mesh(self):
        mesh = box_mesh(4, 2, 1)
        assert len(mesh.vertices) == 8
        assert len(mesh.faces) == 12
        assert mesh.bounds.maximum == Vector(4, 2, 1)

    def test_face_index_out_of_range(self):
        with pytest.raises(MalformedMesh, match="references vertex"):
            Mesh.make([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 3)])

    def test_duplicate_face(self):
        with pytest.raises(MalformedMesh, match="duplicates"):
            Mesh.make([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 2), (2, 1, 0)])

    def test_repeated_vertex(self):
        with pytest.raises(MalformedMesh, match="repeats"):
            Mesh.make([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 1)])

    def test_non_triangle(self):
        with pytest.raises(MalformedMesh):
            Mesh.make([(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)], [(0, 1, 2, 3)])

    def test_with_vertices_count_change(self):
        mesh = box_mesh(1, 1, 1)
        with pytest.raises(MalformedMesh):
            mesh.with_vertices(mesh.vertices[:4])

    def test_transformed_is_new_mesh(self):
        mesh = box_mesh(1, 1, 1)
        moved = mesh.transformed(Matrix.translate(1, 0, 0))
        assert mesh.bounds.min_x == 0.0
        assert moved.bounds.min_x == 1.0
        assert moved.faces == mesh.faces

    def test_equality(self):
        assert box_mesh(1, 2, 3) == box_mesh(1, 2, 3)
        assert box_mesh(1, 2, 3) != box_mesh(1, 2, 4)

    def test_locate_vertex(self):
        assert box_mesh(2, 2, 2).locate(Vector(2, 2, 2)) == (6,)

    def test_locate_face(self):
        anchors = box_mesh(2, 2, 2).locate(Vector(2, 0.5, 0.5))
        assert set(anchors) <= {4, 5, 6, 7}
        assert len(anchors) == 3

    def test_locate_off_surface(self):
        assert box_mesh(2, 2, 2).locate(Vector(1, 1, 1)) == ()


# ---------------------------------------------------------------------------
# Intersection
# ---------------------------------------------------------------------------

class TestIntersection:
    def test_segment_crossing_interior(self):
        tri = Triangle(Vector(0, 0, 0), Vector(4, 0, 0), Vector(0, 4, 0))
        hit = segment_crossing(Vector(1, 1, -1), Vector(1, 1, 1), tri, 1e-6)
        assert hit is not None
        assert _approx(hit) == (1.0, 1.0, 0.0)

    def test_segment_ending_on_face_is_contact(self):
        tri = Triangle(Vector(0, 0, 0), Vector(4, 0, 0), Vector(0, 4, 0))
        assert segment_crossing(Vector(1, 1, -1), Vector(1, 1, 0), tri, 1e-6) is None

    def test_segment_through_edge_is_contact(self):
        tri = Triangle(Vector(0, 0, 0), Vector(4, 0, 0), Vector(0, 4, 0))
        assert segment_crossing(Vector(2, 0, -1), Vector(2, 0, 1), tri, 1e-6) is None

    def test_overlapping_boxes(self):
        a = box_mesh(2, 2, 2)
        b = _moved_box(2, (1, 0.5, 0.25))
        hit = intersect_meshes(a, b)
        assert hit.intersects
        assert not hit.contained
        assert all(b.bounds.contains(p, 1e-9) and a.bounds.contains(p, 1e-9) for p in hit.points)

    def test_touching_boxes_do_not_intersect(self):
        a = box_mesh(2, 2, 2)
        b = _moved_box(2, (2, 0, 0))
        assert not intersect_meshes(a, b).intersects

    def test_disjoint_boxes(self):
        assert not intersect_meshes(box_mesh(1, 1, 1), _moved_box(1, (5, 5, 5))).intersects

    def test_containment(self):
        outer = box_mesh(10, 10, 10)
        inner = _moved_box(1, (4, 4, 4))
        hit = intersect_meshes(outer, inner)
        assert hit.intersects
        assert hit.contained
        assert hit.points[0] == Vector(4.0, 4.0, 4.0)
        assert Vector(4.5, 4.5, 4.5) in hit.points
        assert len(hit.points) == 9

    def test_contained_sharing_a_face(self):
        outer = box_mesh(10, 2, 2)
        inner = _moved_box(2, (3, 0, 0))
        hit = intersect_meshes(outer, inner)
        assert hit.contained
        assert hit.points == (Vector(4.0, 1.0, 1.0),)

    def test_collinear_overlap(self):
        a = box_mesh(10, 2, 2)
        b = box_mesh(10, 2, 2).transformed(Matrix.translate(6, 0, 0))
        hit = intersect_meshes(a, b)
        assert hit.intersects
        assert not hit.contained
        assert hit.points == (Vector(8.0, 1.0, 1.0),)

    def test_half_width_overlap(self):
        a = box_mesh(10, 2, 2)
        b = box_mesh(10, 2, 2).transformed(Matrix.translate(0, 1, 0))
        assert intersect_meshes(a, b).intersects

    def test_buried_vertices_reported(self):
        a = box_mesh(10, 2, 2)
        b = box_mesh(4, 1, 1).transformed(Matrix.translate(8, 0.5, 0.5))
        hit = intersect_meshes(a, b)
        assert Vector(8.0, 0.5, 0.5) in hit.points
        assert all(p.x >= 8.0 for p in hit.points)

    def test_point_inside(self):
        mesh = box_mesh(10, 10, 10)
        assert point_inside(Vector(5, 5, 5), mesh)
        assert not point_inside(Vector(15, 5, 5), mesh)
        assert not point_inside(Vector(10, 5, 5), mesh)

    def test_symmetric(self):
        a = box_mesh(2, 2, 2)
        b = _moved_box(2, (1, 0.5, 0.25))
        assert intersect_meshes(a, b).points == intersect_meshes(b, a).points
