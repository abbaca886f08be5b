"""Constraint solvers — geometry, connection, and the findings they produce.

The pipeline entry point lives in :mod:`buildcheck.validation.pipeline` and is
re-exported as :func:`buildcheck.solve`.
"""

from buildcheck.validation.clash import GeometryResult, GeometrySolver, IntersectionResult
from buildcheck.validation.connections import ConnectionMatch, ConnectionResult, ConnectionSolver
from buildcheck.validation.findings import Finding, FindingSource, Severity
from buildcheck.validation.pair_rules import PairRule, PairRuleRegistry
from buildcheck.validation.report import SolveReport, SolveStatus

__all__ = [
    "ConnectionMatch",
    "ConnectionResult",
    "ConnectionSolver",
    "Finding",
    "FindingSource",
    "GeometryResult",
    "GeometrySolver",
    "IntersectionResult",
    "PairRule",
    "PairRuleRegistry",
    "Severity",
    "SolveReport",
    "SolveStatus",
]
