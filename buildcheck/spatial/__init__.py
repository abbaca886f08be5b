"""Spatial index over placed part bounds."""

from buildcheck.spatial.index import SpatialIndex

__all__ = ["SpatialIndex"]
