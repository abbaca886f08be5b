"""RegulatoryEngine — applies a rule set to a design snapshot.

Usage::

    from buildcheck.compliance import RegulatoryEngine, load_rule_set

    engine = RegulatoryEngine(load_rule_set("irc2021.yaml"))
    result = engine.evaluate(snapshot, prior_findings)
"""

from __future__ import annotations

import logging
from typing import Sequence

from buildcheck.compliance.rules import RegulatoryRule, RuleOutcome, RulePredicate
from buildcheck.compliance.ruleset import RuleSet
from buildcheck.design.design import DesignSnapshot
from buildcheck.errors import RuleSetMalformed
from buildcheck.validation.findings import Finding, FindingSource, canonical

logger = logging.getLogger(__name__)


class RegulatoryResult:
    """Output of the regulatory stage."""

    def __init__(
        self,
        findings: list[Finding],
        outcomes: dict[str, RuleOutcome],
        suggested_fixes: list[str],
    ) -> None:
        self.findings = findings
        self.outcomes = outcomes
        self.suggested_fixes = suggested_fixes

    @property
    def passed(self) -> list[str]:
        return sorted(rid for rid, o in self.outcomes.items() if o.passed)

    @property
    def failed(self) -> list[str]:
        return sorted(rid for rid, o in self.outcomes.items() if not o.passed)


class RegulatoryEngine:
    """Evaluate every rule of a :class:`RuleSet` independently.

    Parameters
    ----------
    rule_set:
        Rules to apply.  Injected per engine, never global.
    """

    def __init__(self, rule_set: RuleSet) -> None:
        self.rule_set = rule_set

    def evaluate(
        self,
        design: DesignSnapshot,
        findings: Sequence[Finding] = (),
    ) -> RegulatoryResult:
        """Run all rules.

        Parameters
        ----------
        design:
            Frozen design being solved.
        findings:
            Findings of the earlier stages, visible to ``max_findings`` rules.

        Returns
        -------
        RegulatoryResult
            One error/warning finding per failing rule.

        Raises
        ------
        RuleSetMalformed
            A rule raised while evaluating.
        """
        prior = tuple(findings)
        outcomes: dict[str, RuleOutcome] = {}
        out: list[Finding] = []
        fixes: list[str] = []

        for rule in self.rule_set:
            outcome = self._run(rule, design, prior)
            outcomes[rule.id] = outcome
            if outcome.passed:
                continue
            out.append(Finding(
                severity=outcome.severity,
                source=FindingSource.REGULATORY,
                part_ids=outcome.part_ids,
                message=f"{rule.title or rule.id}: {outcome.message}",
                location=outcome.location,
                rule_id=rule.id,
            ))
            fix = suggest_fix(rule)
            if fix:
                fixes.append(fix)

        logger.info(
            "Regulatory: %d rules from %s, %d failed",
            len(self.rule_set), self.rule_set.label, len(out),
        )
        return RegulatoryResult(canonical(out), outcomes, fixes)

    @staticmethod
    def _run(rule: RulePredicate, design: DesignSnapshot, prior: tuple[Finding, ...]) -> RuleOutcome:
        try:
            outcome = rule.evaluate(design, prior)
        except Exception as exc:
            raise RuleSetMalformed(f"Rule {rule.id!r} failed to evaluate: {exc}") from exc
        if not isinstance(outcome, RuleOutcome):
            raise RuleSetMalformed(
                f"Rule {rule.id!r} returned {type(outcome).__name__}, expected RuleOutcome"
            )
        logger.debug("Rule %s: %s", rule.id, "pass" if outcome.passed else "fail")
        return outcome


def suggest_fix(rule: RulePredicate) -> str:
    """Generate an actionable suggestion for a failed rule."""
    if not isinstance(rule, RegulatoryRule):
        return ""
    ref = f" per {rule.code_name} §{rule.section}" if rule.code_name else ""
    target = f"{rule.template} {rule.attribute}" if rule.attribute else rule.template
    if rule.check == "attribute_min":
        return f"Increase {target} to at least {rule.value:g}{ref}."
    if rule.check == "attribute_max":
        return f"Reduce {target} to at most {rule.value:g}{ref}."
    if rule.check == "attribute_range":
        return f"Keep {target} between {rule.min:g} and {rule.max:g}{ref}."
    if rule.check == "spacing_max":
        return f"Add {rule.template} parts so spacing along {rule.axis} is at most {rule.value:g}{ref}."
    if rule.check == "spacing_min":
        return f"Spread {rule.template} parts to at least {rule.value:g} apart along {rule.axis}{ref}."
    if rule.check in ("metadata_exists", "metadata_enum"):
        return f"Provide a valid '{rule.key}' for {rule.template} parts{ref}."
    return f"Review {rule.code_name or rule.id} {rule.section}: {rule.title or rule.id}.".replace("  ", " ")
