"""Embedded sample residential rule set, no external files required.

Rules paraphrase the 2021 International Residential Code for the parts in
:func:`buildcheck.parts.catalog.standard_library`.  They are a starting point
for tests and demos, not an authoritative rule book.
"""

from __future__ import annotations

from typing import Any

from buildcheck.compliance.ruleset import RuleSet

CODE_NAME = "IRC2021"

SEED_RULES: list[dict[str, Any]] = [
    {
        "id": "IRC-R311.2-width",
        "title": "Egress door clear width",
        "check": "attribute_min",
        "template": "door",
        "attribute": "Width",
        "value": 32.0,
        "code_name": CODE_NAME,
        "section": "R311.2",
        "citation": "IRC 2021 R311.2: egress door not less than 32 inches clear width",
    },
    {
        "id": "IRC-R311.2-height",
        "title": "Egress door clear height",
        "check": "attribute_min",
        "template": "door",
        "attribute": "Height",
        "value": 78.0,
        "code_name": CODE_NAME,
        "section": "R311.2",
        "citation": "IRC 2021 R311.2: egress door not less than 78 inches clear height",
    },
    {
        "id": "IRC-R602.3-stud-spacing",
        "title": "Wood stud spacing",
        "check": "spacing_max",
        "template": "2x4",
        "axis": "y",
        "value": 24.0,
        "code_name": CODE_NAME,
        "section": "R602.3(5)",
        "citation": "IRC 2021 Table R602.3(5): stud spacing not more than 24 inches on centre",
    },
    {
        "id": "IRC-R602.3-stud-length",
        "title": "Wood stud height",
        "check": "attribute_max",
        "template": "2x4",
        "attribute": "Length",
        "value": 120.0,
        "severity": "warning",
        "code_name": CODE_NAME,
        "section": "R602.3(5)",
        "citation": "IRC 2021 Table R602.3(5): laterally unsupported stud height 10 feet",
    },
]


def default_rule_set() -> RuleSet:
    """Return the sample rule set built from :data:`SEED_RULES`."""
    return RuleSet.from_dict({
        "name": "Sample residential",
        "jurisdiction": "US-IRC",
        "year": 2021,
        "version": "1",
        "rules": SEED_RULES,
    })
