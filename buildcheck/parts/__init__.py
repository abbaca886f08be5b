"""Parametric parts — templates, attributes, connection points, annotations."""

from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import (
    Attribute,
    TransformRule,
    VertexSelection,
    apply_transforms,
)
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.library import TemplateLibrary
from buildcheck.parts.part import Part, set_attribute
from buildcheck.parts.template import PartTemplate

__all__ = [
    "Attribute",
    "ConnectionPoint",
    "JointAnnotation",
    "Part",
    "PartTemplate",
    "TemplateLibrary",
    "TransformRule",
    "VertexSelection",
    "apply_transforms",
    "set_attribute",
]
