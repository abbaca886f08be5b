"""Solve pipeline — main entry point for design validation.

Usage::

    from buildcheck import solve

    report = solve(design, "irc2021.yaml")
    if not report.success:
        print(report.to_markdown())

Stages run strictly geometry, then connection, then regulatory.  Each stage
sees the findings of the stages before it but never re-runs them.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Union

from buildcheck.compliance.engine import RegulatoryEngine
from buildcheck.compliance.ruleset import RuleSet, load_rule_set
from buildcheck.config import SolverSettings
from buildcheck.design.design import Design, DesignSnapshot
from buildcheck.errors import GeometryError, RuleSetError
from buildcheck.spatial.index import SpatialIndex
from buildcheck.validation.clash import GeometrySolver
from buildcheck.validation.connections import ConnectionSolver
from buildcheck.validation.findings import Finding, FindingSource
from buildcheck.validation.pair_rules import PairRuleRegistry
from buildcheck.validation.report import SolveReport, SolveStatus

logger = logging.getLogger(__name__)

RuleSetSource = Union[RuleSet, str, Path]


class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _Cancelled(Exception):
    pass


class Pipeline:
    """Runs the three solver stages over a design snapshot.

    Parameters
    ----------
    settings:
        Tolerances and worker count shared by every stage.
    registry:
        Pair-type rules for the geometry stage.
    """

    def __init__(
        self,
        settings: SolverSettings | None = None,
        registry: PairRuleRegistry | None = None,
    ) -> None:
        self.settings = settings or SolverSettings()
        self.geometry = GeometrySolver(registry, self.settings)
        self.connections = ConnectionSolver(self.settings)

    def solve(
        self,
        design: Design | DesignSnapshot,
        rule_set: RuleSetSource,
        cancel: CancellationToken | None = None,
    ) -> SolveReport:
        """Validate *design* against *rule_set*.

        Parameters
        ----------
        design:
            A live design (snapshotted here) or an existing snapshot.
        rule_set:
            Rule set, or a path to a JSON/YAML rule-set file loaded at the
            regulatory stage.
        cancel:
            Checked between stages.

        Returns
        -------
        SolveReport
            ``status`` is ``completed``, ``cancelled`` or ``aborted``.  Fatal
            errors never propagate; they are carried on the report.
        """
        snapshot = design.snapshot() if isinstance(design, Design) else design
        findings: list[Finding] = []
        stages: list[FindingSource] = []
        fixes: list[str] = []
        label = rule_set.label if isinstance(rule_set, RuleSet) else str(rule_set)

        def checkpoint() -> None:
            if cancel is not None and cancel.cancelled:
                raise _Cancelled

        def report(status: SolveStatus, error: Exception | None = None) -> SolveReport:
            return SolveReport(
                design_name=snapshot.name,
                findings=list(findings),
                status=status,
                error=error,
                stages=list(stages),
                rule_set=label,
                suggested_fixes=fixes,
            )

        logger.info("Solving design %r (%d parts)", snapshot.name, len(snapshot))
        try:
            checkpoint()
            index = SpatialIndex(snapshot.bounds_by_id())
            geometry = self.geometry.solve(snapshot, index)
            findings.extend(geometry.findings)
            stages.append(FindingSource.GEOMETRY)

            checkpoint()
            connection = self.connections.solve(snapshot, geometry.illegal_pairs, index)
            findings.extend(connection.findings)
            stages.append(FindingSource.CONNECTION)

            checkpoint()
            rules = rule_set if isinstance(rule_set, RuleSet) else load_rule_set(rule_set)
            label = rules.label
            regulatory = RegulatoryEngine(rules).evaluate(snapshot, findings)
            findings.extend(regulatory.findings)
            fixes.extend(regulatory.suggested_fixes)
            stages.append(FindingSource.REGULATORY)
        except _Cancelled:
            logger.info("Solve cancelled after %d stage(s)", len(stages))
            return report(SolveStatus.CANCELLED)
        except (GeometryError, RuleSetError) as exc:
            logger.warning("Solve aborted: %s", exc)
            return report(SolveStatus.ABORTED, exc)

        result = report(SolveStatus.COMPLETED)
        logger.info(
            "Solve complete: %d errors, %d warnings",
            len(result.errors), len(result.warnings),
        )
        return result


def solve(
    design: Design | DesignSnapshot,
    rule_set: RuleSetSource,
    *,
    settings: SolverSettings | None = None,
    cancel: CancellationToken | None = None,
    registry: PairRuleRegistry | None = None,
) -> SolveReport:
    """Run the full solve pipeline.  See :meth:`Pipeline.solve`."""
    return Pipeline(settings, registry).solve(design, rule_set, cancel)
