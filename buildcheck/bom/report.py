"""BillOfMaterials model and Markdown generation."""

from __future__ import annotations

import json
from typing import Any


class BomLine:
    """Parts sharing one template and identical attribute values."""

    def __init__(
        self,
        template: str,
        attributes: dict[str, Any],
        quantity: int,
        unit_cost: float | None = None,
        part_ids: list[str] | None = None,
    ) -> None:
        self.template = template
        self.attributes = attributes
        self.quantity = quantity
        self.unit_cost = unit_cost
        self.part_ids = part_ids or []

    @property
    def total_cost(self) -> float | None:
        if self.unit_cost is None:
            return None
        return round(self.unit_cost * self.quantity, 2)

    @property
    def description(self) -> str:
        if not self.attributes:
            return self.template
        values = ", ".join(f"{k}={_fmt(v)}" for k, v in self.attributes.items())
        return f"{self.template} ({values})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "template": self.template,
            "attributes": {
                k: list(v) if isinstance(v, tuple) else v
                for k, v in self.attributes.items()
            },
            "quantity": self.quantity,
            "unit_cost": self.unit_cost,
            "total_cost": self.total_cost,
            "part_ids": list(self.part_ids),
        }


class BillOfMaterials:
    """Grouped part counts for a design, with optional pricing."""

    def __init__(self, design_name: str = "", lines: list[BomLine] | None = None) -> None:
        self.design_name = design_name
        self.lines = lines or []

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_cost(self) -> float | None:
        """Sum of priced lines; *None* when no line is priced."""
        priced = [line.total_cost for line in self.lines if line.total_cost is not None]
        if not priced:
            return None
        return round(sum(priced), 2)

    @property
    def unpriced(self) -> list[str]:
        return sorted({line.template for line in self.lines if line.unit_cost is None})

    def to_markdown(self) -> str:
        """Generate BOM.md content."""
        lines: list[str] = []

        lines.append(f"# Bill of Materials — {self.design_name or 'Unknown'}")
        lines.append("")
        lines.append(f"**Parts:** {self.total_quantity}")
        lines.append("")

        if not self.lines:
            lines.append("No parts in design.")
            lines.append("")
            return "\n".join(lines)

        lines.append("| Item | Qty | Unit Cost | Total |")
        lines.append("|------|-----|-----------|-------|")
        for line in self.lines:
            item = line.description.replace("|", "\\|")
            unit = f"${line.unit_cost:,.2f}" if line.unit_cost is not None else "—"
            total = f"${line.total_cost:,.2f}" if line.total_cost is not None else "—"
            lines.append(f"| {item} | {line.quantity} | {unit} | {total} |")
        lines.append("")

        total = self.total_cost
        if total is not None:
            lines.append(f"**Total:** ${total:,.2f}")
            lines.append("")
        if self.unpriced:
            lines.append(f"*Unpriced:* {', '.join(self.unpriced)}")
            lines.append("")

        return "\n".join(lines)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "design_name": self.design_name,
            "total_quantity": self.total_quantity,
            "total_cost": self.total_cost,
            "lines": [line.to_dict() for line in self.lines],
        }


def _fmt(value: Any) -> str:
    if isinstance(value, tuple):
        return "(" + ", ".join(_fmt(v) for v in value) + ")"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)
