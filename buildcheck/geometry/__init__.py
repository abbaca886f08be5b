"""Geometry primitives — vectors, matrices, meshes, bounds, intersection."""

from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.intersect import MeshIntersection, intersect_meshes, point_inside
from buildcheck.geometry.matrix import Matrix, MatrixType
from buildcheck.geometry.mesh import Mesh, Triangle, box_mesh
from buildcheck.geometry.placement import Placement
from buildcheck.geometry.vector import Vector

__all__ = [
    "BoundingBox",
    "Matrix",
    "MatrixType",
    "Mesh",
    "MeshIntersection",
    "Placement",
    "Triangle",
    "Vector",
    "box_mesh",
    "intersect_meshes",
    "point_inside",
]
