"""Finding — a non-fatal solver output describing a design problem."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, field_validator

from buildcheck.geometry.vector import Vector


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class FindingSource(str, Enum):
    """Solver stage that produced a finding, in pipeline order."""

    GEOMETRY = "geometry"
    CONNECTION = "connection"
    REGULATORY = "regulatory"


STAGE_ORDER: tuple[FindingSource, ...] = (
    FindingSource.GEOMETRY,
    FindingSource.CONNECTION,
    FindingSource.REGULATORY,
)


class Finding(BaseModel):
    """(severity, source, part ids, message, location hint)."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    source: FindingSource
    part_ids: tuple[str, ...] = ()
    message: str
    location: Vector | None = None
    rule_id: str = ""
    category: str = ""

    @field_validator("part_ids", mode="after")
    @classmethod
    def _sort_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(sorted(set(value)))

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def sort_key(self) -> tuple[Any, ...]:
        """Canonical order within a stage."""
        location = tuple(self.location) if self.location is not None else ()
        return (
            self.part_ids,
            self.rule_id,
            self.category,
            self.severity.value,
            self.message,
            location,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def canonical(findings: Iterable[Finding]) -> list[Finding]:
    """Deduplicate and sort findings into their canonical order."""
    unique = {f.model_dump_json(): f for f in findings}
    return sorted(unique.values(), key=Finding.sort_key)
