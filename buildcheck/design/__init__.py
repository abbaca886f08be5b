"""Design model — placed parts and immutable solve snapshots."""

from buildcheck.design.design import Design, DesignSnapshot, PlacedPart

__all__ = ["Design", "DesignSnapshot", "PlacedPart"]
