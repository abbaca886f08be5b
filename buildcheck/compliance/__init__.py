"""Regulatory rule engine — check designs against building codes."""

from buildcheck.compliance.engine import RegulatoryEngine, RegulatoryResult
from buildcheck.compliance.rules import RegulatoryRule, RuleOutcome, RulePredicate
from buildcheck.compliance.ruleset import RuleSet, load_rule_set, save_rule_set
from buildcheck.compliance.seed_data import SEED_RULES, default_rule_set

__all__ = [
    "RegulatoryEngine",
    "RegulatoryResult",
    "RegulatoryRule",
    "RuleOutcome",
    "RulePredicate",
    "RuleSet",
    "SEED_RULES",
    "default_rule_set",
    "load_rule_set",
    "save_rule_set",
]
