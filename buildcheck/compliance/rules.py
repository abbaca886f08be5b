"""Regulatory rule model and evaluation logic.

Every rule is a predicate over a :class:`DesignSnapshot` plus the findings of
earlier pipeline stages.  Declarative rules are :class:`RegulatoryRule`
models loaded from rule-set files; code can supply its own predicates by
subclassing :class:`RulePredicate`.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from buildcheck.design.design import DesignSnapshot, PlacedPart
from buildcheck.geometry.vector import Vector
from buildcheck.validation.findings import Finding, FindingSource, Severity

logger = logging.getLogger(__name__)

ANY_TEMPLATE = "*"

CHECK_TYPES = (
    "attribute_min",
    "attribute_max",
    "attribute_range",
    "spacing_min",
    "spacing_max",
    "count_min",
    "count_max",
    "metadata_exists",
    "metadata_enum",
    "max_findings",
)

_AXES = {"x": 0, "y": 1, "z": 2}


class RuleOutcome(BaseModel):
    """Result of evaluating one rule against a design."""

    model_config = ConfigDict(frozen=True)

    passed: bool
    severity: Severity = Severity.ERROR
    message: str = ""
    part_ids: tuple[str, ...] = ()
    location: Vector | None = None


class RulePredicate(abc.ABC):
    """Interface every regulatory rule presents to the engine.

    Implementations expose ``id`` (unique within a rule set), ``title`` and
    ``severity`` attributes.
    """

    @abc.abstractmethod
    def evaluate(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        """Check the design.

        Parameters
        ----------
        design:
            Frozen design being solved.
        findings:
            Findings from the geometry and connection stages.

        Returns
        -------
        RuleOutcome
        """


class RegulatoryRule(BaseModel, RulePredicate):
    """A declarative building-code rule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    """Identifier unique within the rule set, e.g. 'IRC-R311.2-width'."""

    check: str
    """One of :data:`CHECK_TYPES`."""

    title: str = ""
    template: str = ANY_TEMPLATE
    """Template the rule applies to; '*' for every part."""

    attribute: str | None = None
    value: float | None = None
    """Threshold for min/max/spacing/count/max_findings checks."""

    min: float | None = None
    max: float | None = None
    axis: Literal["x", "y", "z"] = "x"
    key: str | None = None
    """Metadata key for metadata checks."""

    allowed: list[str] = Field(default_factory=list)
    source: FindingSource | None = None
    """Finding source counted by 'max_findings'; any source when unset."""

    of_severity: Severity | None = None
    """Finding severity counted by 'max_findings'; any severity when unset."""

    severity: Severity = Severity.ERROR
    code_name: str = ""
    """Code identifier: 'IRC2021', 'IBC2024'."""

    section: str = ""
    citation: str = ""

    @field_validator("check")
    @classmethod
    def _known_check(cls, value: str) -> str:
        if value not in CHECK_TYPES:
            raise ValueError(f"Unknown check: {value!r} (expected one of {', '.join(CHECK_TYPES)})")
        return value

    @model_validator(mode="after")
    def _required_fields(self) -> RegulatoryRule:
        check = self.check
        missing: list[str] = []
        if check.startswith("attribute_") and not self.attribute:
            missing.append("attribute")
        if check == "attribute_range":
            if self.min is None:
                missing.append("min")
            if self.max is None:
                missing.append("max")
        elif check not in ("metadata_exists", "metadata_enum") and self.value is None:
            missing.append("value")
        if check.startswith("metadata_") and not self.key:
            missing.append("key")
        if check == "metadata_enum" and not self.allowed:
            missing.append("allowed")
        if missing:
            raise ValueError(f"Rule {self.id!r} ({check}) requires: {', '.join(missing)}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Rule {self.id!r}: min {self.min} exceeds max {self.max}")
        return self

    @property
    def label(self) -> str:
        return self.title or self.id

    # -- evaluation -----------------------------------------------------------

    def evaluate(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        handler = getattr(self, f"_eval_{self.check}")
        return handler(design, findings)

    def _parts(self, design: DesignSnapshot) -> list[PlacedPart]:
        if self.template == ANY_TEMPLATE:
            return list(design.parts)
        return design.parts_of(self.template)

    def _outcome(
        self,
        failures: list[tuple[PlacedPart | None, str]],
        passed_message: str,
    ) -> RuleOutcome:
        if not failures:
            return RuleOutcome(passed=True, severity=self.severity, message=passed_message)
        ids = tuple(p.part_id for p, _ in failures if p is not None)
        first = failures[0][0]
        return RuleOutcome(
            passed=False,
            severity=self.severity,
            message="; ".join(msg for _, msg in failures),
            part_ids=ids,
            location=first.bounds.center if first is not None else None,
        )

    def _attribute_failures(self, design: DesignSnapshot, lo: float | None, hi: float | None):
        failures: list[tuple[PlacedPart | None, str]] = []
        for part in self._parts(design):
            if self.attribute not in part.attributes:
                continue
            raw = part.attributes[self.attribute]
            values = list(raw) if isinstance(raw, tuple) else [raw]
            for v in values:
                if lo is not None and v < lo:
                    failures.append(
                        (part, f"{part.part_id}: {self.attribute} = {_fmt(raw)} below minimum {_fmt(lo)}")
                    )
                    break
                if hi is not None and v > hi:
                    failures.append(
                        (part, f"{part.part_id}: {self.attribute} = {_fmt(raw)} exceeds maximum {_fmt(hi)}")
                    )
                    break
        return failures

    def _eval_attribute_min(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        return self._outcome(
            self._attribute_failures(design, self.value, None),
            f"{self.attribute} meets minimum {_fmt(self.value)}.",
        )

    def _eval_attribute_max(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        return self._outcome(
            self._attribute_failures(design, None, self.value),
            f"{self.attribute} within maximum {_fmt(self.value)}.",
        )

    def _eval_attribute_range(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        return self._outcome(
            self._attribute_failures(design, self.min, self.max),
            f"{self.attribute} within [{_fmt(self.min)}, {_fmt(self.max)}].",
        )

    def _spacings(self, design: DesignSnapshot) -> list[tuple[PlacedPart, PlacedPart, float]]:
        """On-centre distances between consecutive parts along the rule's axis."""
        i = _AXES[self.axis]
        ordered = sorted(self._parts(design), key=lambda p: (p.bounds.center[i], p.part_id))
        return [
            (a, b, b.bounds.center[i] - a.bounds.center[i])
            for a, b in zip(ordered, ordered[1:])
        ]

    def _eval_spacing_min(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        failures: list[tuple[PlacedPart | None, str]] = [
            (b, f"{a.part_id} -> {b.part_id}: spacing {_fmt(d)} below minimum {_fmt(self.value)}")
            for a, b, d in self._spacings(design)
            if d < self.value
        ]
        return self._outcome(failures, f"Spacing along {self.axis} at least {_fmt(self.value)}.")

    def _eval_spacing_max(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        failures: list[tuple[PlacedPart | None, str]] = [
            (b, f"{a.part_id} -> {b.part_id}: spacing {_fmt(d)} exceeds maximum {_fmt(self.value)}")
            for a, b, d in self._spacings(design)
            if d > self.value
        ]
        return self._outcome(failures, f"Spacing along {self.axis} at most {_fmt(self.value)}.")

    def _eval_count_min(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        n = len(self._parts(design))
        failures: list[tuple[PlacedPart | None, str]] = []
        if n < self.value:
            failures.append((None, f"{n} '{self.template}' parts, minimum {_fmt(self.value)}"))
        return self._outcome(failures, f"{n} '{self.template}' parts.")

    def _eval_count_max(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        parts = self._parts(design)
        failures: list[tuple[PlacedPart | None, str]] = []
        if len(parts) > self.value:
            failures.append((None, f"{len(parts)} '{self.template}' parts, maximum {_fmt(self.value)}"))
        outcome = self._outcome(failures, f"{len(parts)} '{self.template}' parts.")
        if not outcome.passed:
            outcome = outcome.model_copy(update={"part_ids": tuple(p.part_id for p in parts)})
        return outcome

    def _eval_metadata_exists(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        failures: list[tuple[PlacedPart | None, str]] = [
            (p, f"{p.part_id}: {self.key} is required but missing")
            for p in self._parts(design)
            if not p.metadata.get(self.key)
        ]
        return self._outcome(failures, f"{self.key} is present.")

    def _eval_metadata_enum(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        allowed_upper = {a.upper() for a in self.allowed}
        failures: list[tuple[PlacedPart | None, str]] = []
        for p in self._parts(design):
            actual = p.metadata.get(self.key)
            if actual is None or actual.upper() not in allowed_upper:
                failures.append((p, f"{p.part_id}: {self.key} = {actual} not in allowed values {self.allowed}"))
        return self._outcome(failures, f"{self.key} in allowed set.")

    def _eval_max_findings(self, design: DesignSnapshot, findings: Sequence[Finding]) -> RuleOutcome:
        counted = [
            f for f in findings
            if (self.source is None or f.source is self.source)
            and (self.of_severity is None or f.severity is self.of_severity)
        ]
        if len(counted) <= self.value:
            return RuleOutcome(passed=True, severity=self.severity,
                               message=f"{len(counted)} findings within limit {_fmt(self.value)}.")
        ids = sorted({pid for f in counted for pid in f.part_ids})
        kind = " ".join(x.value for x in (self.source, self.of_severity) if x is not None)
        return RuleOutcome(
            passed=False,
            severity=self.severity,
            message=f"{len(counted)} {kind + ' ' if kind else ''}findings, limit {_fmt(self.value)}",
            part_ids=tuple(ids),
        )


def _fmt(value: Any) -> str:
    """Compact number formatting for messages: 30.0 -> '30'."""
    if isinstance(value, tuple):
        return "(" + ", ".join(_fmt(v) for v in value) + ")"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)
