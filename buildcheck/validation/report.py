"""SolveReport model and Markdown/JSON report generation."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from buildcheck.errors import BuildcheckError
from buildcheck.validation.findings import STAGE_ORDER, Finding, FindingSource, Severity


class SolveStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


class SolveReport:
    """Result of one :func:`~buildcheck.validation.pipeline.solve` run.

    ``findings`` are ordered by stage (geometry, connection, regulatory), then
    canonically within each stage.
    """

    def __init__(
        self,
        design_name: str = "",
        findings: list[Finding] | None = None,
        status: SolveStatus = SolveStatus.COMPLETED,
        error: BuildcheckError | None = None,
        stages: list[FindingSource] | None = None,
        rule_set: str = "",
        suggested_fixes: list[str] | None = None,
        solved_at: datetime | str | None = None,
    ) -> None:
        self.design_name = design_name
        self.findings = findings or []
        self.status = status
        self.error = error
        self.stages = stages or []  # stages that ran to completion
        self.rule_set = rule_set
        self.suggested_fixes = suggested_fixes or []
        if solved_at is None:
            self.solved_at = datetime.now(timezone.utc)
        elif isinstance(solved_at, str):
            self.solved_at = datetime.fromisoformat(solved_at)
        else:
            self.solved_at = solved_at

    @property
    def success(self) -> bool:
        """True iff no finding has error severity."""
        return not any(f.is_error for f in self.findings)

    @property
    def ok(self) -> bool:
        """Completed with no error findings."""
        return self.status is SolveStatus.COMPLETED and self.success

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    def findings_by_source(self, source: FindingSource | str) -> list[Finding]:
        source = FindingSource(source)
        return [f for f in self.findings if f.source is source]

    def raise_for_error(self) -> None:
        """Re-raise the fatal error of an aborted run."""
        if self.error is not None:
            raise self.error

    def to_markdown(self) -> str:
        """Render the report as a Markdown document."""
        lines: list[str] = []

        lines.append(f"# Solve Report — {self.design_name or 'Unknown'}")
        lines.append("")
        lines.append(f"**Status:** {self.status.value.upper()}")
        lines.append(f"**Result:** {'PASS' if self.success else 'FAIL'}")
        if self.rule_set:
            lines.append(f"**Rule Set:** {self.rule_set}")
        lines.append(f"**Solved:** {self.solved_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append("")

        lines.append(
            f"**Summary:** {len(self.errors)} errors, {len(self.warnings)} warnings"
        )
        lines.append("")

        if self.error is not None:
            lines.append("## Aborted")
            lines.append("")
            lines.append(f"`{type(self.error).__name__}`: {self.error}")
            lines.append("")

        for source in STAGE_ORDER:
            stage = self.findings_by_source(source)
            if not stage:
                continue
            lines.append(f"## {source.value.capitalize()}")
            lines.append("")
            lines.append("| Severity | Parts | Message | Location |")
            lines.append("|----------|-------|---------|----------|")
            for f in stage:
                msg = f.message.replace("|", "\\|")
                parts = ", ".join(f.part_ids)
                loc = _fmt_location(f.location)
                lines.append(f"| {f.severity.value.upper()} | {parts} | {msg} | {loc} |")
            lines.append("")

        if self.suggested_fixes:
            lines.append("## Suggested Fixes")
            lines.append("")
            for fix in self.suggested_fixes:
                lines.append(f"- {fix}")
            lines.append("")

        if not self.findings and self.status is SolveStatus.COMPLETED:
            lines.append("No findings. Design passes all checks.")
            lines.append("")

        return "\n".join(lines)

    def to_json(self) -> str:
        """Return structured JSON report for audit trail."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def to_dict(self) -> dict[str, Any]:
        return {
            "design_name": self.design_name,
            "status": self.status.value,
            "success": self.success,
            "error": (
                {"type": type(self.error).__name__, "message": str(self.error)}
                if self.error is not None else None
            ),
            "stages": [s.value for s in self.stages],
            "rule_set": self.rule_set,
            "solved_at": self.solved_at.isoformat(),
            "findings": [f.to_dict() for f in self.findings],
            "suggested_fixes": list(self.suggested_fixes),
        }


def _fmt_location(location: Any) -> str:
    if location is None:
        return ""
    return "(" + ", ".join(f"{c:.2f}" for c in location) + ")"
