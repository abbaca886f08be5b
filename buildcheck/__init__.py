"""buildcheck — constraint-solving validator for residential construction designs."""

__version__ = "1.0.0"

from buildcheck.bom import BillOfMaterials, bill_of_materials
from buildcheck.compliance import RegulatoryRule, RuleSet, default_rule_set, load_rule_set
from buildcheck.config import SolverSettings, configure_logging, load_settings
from buildcheck.design import Design, DesignSnapshot
from buildcheck.errors import (
    BuildcheckError,
    DesignError,
    GeometryError,
    InterchangeError,
    MalformedMesh,
    OutOfDomain,
    PartAttributeError,
    RuleSetError,
    RuleSetMalformed,
    RuleSetUnloadable,
    TemplateError,
    UnknownAttribute,
)
from buildcheck.geometry import BoundingBox, Mesh, Placement, Vector, box_mesh
from buildcheck.interchange import read_template, write_template
from buildcheck.parts import (
    Attribute,
    ConnectionPoint,
    JointAnnotation,
    Part,
    PartTemplate,
    TemplateLibrary,
    TransformRule,
    VertexSelection,
    apply_transforms,
    set_attribute,
)
from buildcheck.parts.catalog import standard_library
from buildcheck.spatial import SpatialIndex
from buildcheck.validation import Finding, FindingSource, PairRuleRegistry, Severity, SolveReport, SolveStatus
from buildcheck.validation.pipeline import CancellationToken, solve

__all__ = [
    "Attribute",
    "BillOfMaterials",
    "BoundingBox",
    "BuildcheckError",
    "CancellationToken",
    "ConnectionPoint",
    "Design",
    "DesignError",
    "DesignSnapshot",
    "Finding",
    "FindingSource",
    "GeometryError",
    "InterchangeError",
    "JointAnnotation",
    "MalformedMesh",
    "Mesh",
    "OutOfDomain",
    "PairRuleRegistry",
    "Part",
    "PartAttributeError",
    "PartTemplate",
    "Placement",
    "RegulatoryRule",
    "RuleSet",
    "RuleSetError",
    "RuleSetMalformed",
    "RuleSetUnloadable",
    "Severity",
    "SolveReport",
    "SolveStatus",
    "SolverSettings",
    "SpatialIndex",
    "TemplateError",
    "TemplateLibrary",
    "TransformRule",
    "UnknownAttribute",
    "Vector",
    "VertexSelection",
    "apply_transforms",
    "bill_of_materials",
    "box_mesh",
    "configure_logging",
    "default_rule_set",
    "load_rule_set",
    "load_settings",
    "read_template",
    "set_attribute",
    "solve",
    "standard_library",
    "write_template",
]
