"""ConnectionPoint — a part-local capture sphere used to validate joints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from buildcheck.geometry.vector import Vector


class ConnectionPoint(BaseModel):
    """Local position plus the radius of its spherical capture volume."""

    model_config = ConfigDict(frozen=True)

    position: Vector
    radius: float = Field(gt=0.0)
    name: str = ""

    def moved_to(self, position: Vector) -> ConnectionPoint:
        return self.model_copy(update={"position": position})

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
