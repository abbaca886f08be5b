"""RuleSet — an immutable, versioned collection of regulatory rules.

Rule sets are read from JSON or YAML documents of the form::

    jurisdiction: US-IRC
    year: 2021
    version: "1"
    rules:
      - id: door-width
        check: attribute_min
        template: door
        attribute: Width
        value: 32
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from buildcheck.compliance.rules import RegulatoryRule, RulePredicate
from buildcheck.errors import RuleSetMalformed, RuleSetUnloadable

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


class RuleSetDocument(BaseModel):
    """On-disk schema of a rule set."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    jurisdiction: str = "*"
    year: int | None = None
    version: str = "1"
    rules: list[RegulatoryRule] = Field(default_factory=list)


class RuleSet:
    """Jurisdiction-specific rules, injected per solve.

    Parameters
    ----------
    rules:
        Rule predicates.  Ids must be unique.
    jurisdiction, year, version:
        Identify which edition of which code the rules encode.
    """

    def __init__(
        self,
        rules: Iterable[RulePredicate] = (),
        *,
        jurisdiction: str = "*",
        year: int | None = None,
        version: str = "1",
        name: str = "",
    ) -> None:
        self._rules: tuple[RulePredicate, ...] = tuple(rules)
        seen: set[str] = set()
        for rule in self._rules:
            if rule.id in seen:
                raise RuleSetMalformed(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        self.jurisdiction = jurisdiction
        self.year = year
        self.version = version
        self.name = name

    @classmethod
    def from_dict(cls, data: Any) -> RuleSet:
        """Validate a parsed document.  Raises :class:`RuleSetMalformed`."""
        if not isinstance(data, dict):
            raise RuleSetMalformed("Rule set must be a mapping with a 'rules' list")
        try:
            doc = RuleSetDocument.model_validate(data)
        except ValidationError as exc:
            raise RuleSetMalformed(f"Invalid rule set: {exc}") from exc
        return cls(
            doc.rules,
            jurisdiction=doc.jurisdiction,
            year=doc.year,
            version=doc.version,
            name=doc.name,
        )

    @property
    def rules(self) -> tuple[RulePredicate, ...]:
        return self._rules

    @property
    def label(self) -> str:
        year = f" {self.year}" if self.year is not None else ""
        return f"{self.name or self.jurisdiction}{year} v{self.version}"

    def get(self, rule_id: str) -> RulePredicate:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(f"Rule not found: {rule_id}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "jurisdiction": self.jurisdiction,
            "year": self.year,
            "version": self.version,
            "rules": [
                r.model_dump(mode="json", exclude_defaults=True)
                for r in self._rules
                if isinstance(r, RegulatoryRule)
            ],
        }

    def __iter__(self) -> Iterator[RulePredicate]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def load_rule_set(path: str | Path) -> RuleSet:
    """Read a rule set from a JSON or YAML file.

    Files ending in ``.yaml``/``.yml`` are parsed as YAML, everything else as
    JSON.

    Raises
    ------
    RuleSetUnloadable
        The file cannot be read or parsed.
    RuleSetMalformed
        The content is not a valid rule set.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleSetUnloadable(f"Cannot read rule set {path}: {exc}") from exc

    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RuleSetUnloadable(f"Cannot parse rule set {path}: {exc}") from exc

    rule_set = RuleSet.from_dict(data)
    logger.info("Loaded rule set %s (%d rules) from %s", rule_set.label, len(rule_set), path)
    return rule_set


def save_rule_set(rule_set: RuleSet, path: str | Path) -> Path:
    """Write *rule_set* as JSON or YAML, chosen by file suffix."""
    path = Path(path)
    data = rule_set.to_dict()
    if path.suffix.lower() in _YAML_SUFFIXES:
        text = yaml.safe_dump(data, sort_keys=False)
    else:
        text = json.dumps(data, indent=2)
    path.write_text(text, encoding="utf-8")
    return path
