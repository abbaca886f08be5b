"""Quantity takeoff: group a design's parts into bill-of-materials lines.

Counts come entirely from part templates and attribute values; no geometry
is measured.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from buildcheck.bom.report import BillOfMaterials, BomLine
from buildcheck.design.design import Design, DesignSnapshot

logger = logging.getLogger(__name__)


def _key(value: Any) -> Any:
    """Hashable, rounded form of an attribute value for grouping."""
    if isinstance(value, tuple):
        return tuple(round(float(v), 6) for v in value)
    return round(float(value), 6)


def bill_of_materials(
    design: Design | DesignSnapshot,
    unit_costs: Mapping[str, float] | None = None,
) -> BillOfMaterials:
    """Group parts by template and attribute values.

    Parameters
    ----------
    design:
        Design or snapshot to take off.
    unit_costs:
        Price per part, keyed by template name.  Templates without a price
        produce unpriced lines.

    Returns
    -------
    BillOfMaterials
        Lines sorted by template name, then attribute values.
    """
    snapshot = design.snapshot() if isinstance(design, Design) else design
    costs = dict(unit_costs or {})

    groups: dict[tuple[str, tuple[tuple[str, Any], ...]], list[str]] = {}
    for part in snapshot:
        attrs = tuple(sorted((k, _key(v)) for k, v in part.attributes.items()))
        groups.setdefault((part.template_name, attrs), []).append(part.part_id)

    lines = [
        BomLine(
            template=template,
            attributes=dict(attrs),
            quantity=len(ids),
            unit_cost=costs.get(template),
            part_ids=sorted(ids),
        )
        for (template, attrs), ids in sorted(groups.items())
    ]
    if costs:
        for template in sorted({line.template for line in lines} - costs.keys()):
            logger.warning("No unit cost for template '%s'", template)

    return BillOfMaterials(design_name=snapshot.name, lines=lines)
