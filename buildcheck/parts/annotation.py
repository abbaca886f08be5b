"""JointAnnotation — a declared allowed-intersection pattern on a template.

The region is a part-local box (the cut-tolerance volume).  When ``follows``
lists vertex indices, the region rides the attribute transforms of those
vertices, so an annotation at the end of a board stays at the end when the
board's Length changes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.vector import Vector


class JointAnnotation(BaseModel):
    """Declares that overlap inside ``region`` is an intentional joint or cut."""

    model_config = ConfigDict(frozen=True)

    category: str
    """Shape category reported when an overlap is confined here, e.g. 'angled_joint'."""

    region: BoundingBox
    angle: float | None = Field(default=None, ge=0.0, le=90.0)
    """Required relative angle (degrees) between the two parts' length axes."""

    partner: str | None = None
    """Template name the joint is meant for; *None* accepts any partner."""

    follows: tuple[int, ...] = ()
    note: str = ""

    def covers(self, local_point: Vector, tolerance: float = 1e-6) -> bool:
        return self.region.contains(local_point, tolerance)

    def accepts(self, partner_template: str, relative_angle: float, angle_tolerance: float) -> bool:
        """True when this annotation applies to the given partner and orientation."""
        if self.partner is not None and self.partner != partner_template:
            return False
        if self.angle is not None and abs(self.angle - relative_angle) > angle_tolerance:
            return False
        return True

    def with_region(self, region: BoundingBox) -> JointAnnotation:
        return self.model_copy(update={"region": region})
