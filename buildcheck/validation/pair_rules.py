"""Pair-type rule registry for classifying part intersections.

Rules are keyed by ``(template_a, template_b, category)``.  Template order is
irrelevant and ``"*"`` matches anything.  When several rules match, the most
specific one wins; among equally specific rules a forbidding rule wins.  No
match means the intersection is illegal.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from buildcheck.config import DEFAULT_ALLOWED_CATEGORIES

logger = logging.getLogger(__name__)

WILDCARD = "*"


def _match(pattern: str, value: str) -> bool:
    return pattern == WILDCARD or pattern == value


class PairRule(BaseModel):
    """Declares an intersection category legal (or explicitly illegal) for a template pair."""

    model_config = ConfigDict(frozen=True)

    template_a: str = WILDCARD
    template_b: str = WILDCARD
    category: str = WILDCARD
    allowed: bool = True
    note: str = ""

    def matches(self, a: str, b: str, category: str) -> bool:
        if not _match(self.category, category):
            return False
        return (
            (_match(self.template_a, a) and _match(self.template_b, b))
            or (_match(self.template_a, b) and _match(self.template_b, a))
        )

    @property
    def specificity(self) -> int:
        return sum(p != WILDCARD for p in (self.template_a, self.template_b, self.category))


class PairRuleRegistry:
    """Lookup table of :class:`PairRule` objects."""

    def __init__(self, rules: list[PairRule] | None = None) -> None:
        self._rules: list[PairRule] = list(rules or [])

    @classmethod
    def with_defaults(cls) -> PairRuleRegistry:
        """Registry allowing every annotation-backed category for any templates."""
        return cls([
            PairRule(category=category, note="declared joint annotation")
            for category in DEFAULT_ALLOWED_CATEGORIES
        ])

    @property
    def rules(self) -> list[PairRule]:
        return list(self._rules)

    def add(self, rule: PairRule) -> None:
        self._rules.append(rule)

    def allow(self, template_a: str, template_b: str, category: str, note: str = "") -> None:
        self.add(PairRule(template_a=template_a, template_b=template_b,
                          category=category, allowed=True, note=note))

    def forbid(self, template_a: str, template_b: str, category: str, note: str = "") -> None:
        self.add(PairRule(template_a=template_a, template_b=template_b,
                          category=category, allowed=False, note=note))

    def lookup(self, template_a: str, template_b: str, category: str) -> PairRule | None:
        candidates = [r for r in self._rules if r.matches(template_a, template_b, category)]
        if not candidates:
            return None
        candidates.sort(key=lambda r: (-r.specificity, r.allowed))
        return candidates[0]

    def is_legal(self, template_a: str, template_b: str, category: str) -> bool:
        rule = self.lookup(template_a, template_b, category)
        if rule is None:
            logger.debug("No pair rule for (%s, %s, %s)", template_a, template_b, category)
            return False
        return rule.allowed

    def __len__(self) -> int:
        return len(self._rules)
