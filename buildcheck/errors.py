"""Exception hierarchy for buildcheck.

Structural problems (bad templates, unparseable meshes, unloadable rule sets)
raise.  Design problems (illegal intersections, freestanding parts, code
violations) are reported as :class:`~buildcheck.validation.findings.Finding`
objects and never raise.
"""

from __future__ import annotations


class BuildcheckError(Exception):
    """Base class for every error raised by buildcheck."""


# -- attributes ---------------------------------------------------------------


class PartAttributeError(BuildcheckError):
    """Raised when an attribute change cannot be applied to a part."""

    def __init__(self, part_id: str, attribute: str, message: str) -> None:
        super().__init__(message)
        self.part_id = part_id
        self.attribute = attribute


class UnknownAttribute(PartAttributeError):
    """The attribute is not declared on the part's template."""

    def __init__(self, part_id: str, attribute: str) -> None:
        super().__init__(
            part_id, attribute,
            f"Part '{part_id}' has no attribute named '{attribute}'",
        )


class OutOfDomain(PartAttributeError):
    """The value violates the attribute's declared domain."""

    def __init__(self, part_id: str, attribute: str, value: object, reason: str) -> None:
        super().__init__(
            part_id, attribute,
            f"Value {value!r} for '{attribute}' on part '{part_id}' is out of domain: {reason}",
        )
        self.value = value
        self.reason = reason


# -- geometry -----------------------------------------------------------------


class GeometryError(BuildcheckError):
    """Fatal geometry problem.  Aborts a solve."""


class MalformedMesh(GeometryError):
    """A mesh violates its structural invariants."""


class InterchangeError(GeometryError):
    """An interchange file has a bad annotation line or format version."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


# -- templates / designs ------------------------------------------------------


class TemplateError(BuildcheckError):
    """A part template definition is invalid."""


class DesignError(BuildcheckError):
    """Unknown or duplicate part id in a design."""


# -- rule sets ----------------------------------------------------------------


class RuleSetError(BuildcheckError):
    """Fatal rule-set problem.  Aborts a solve."""


class RuleSetUnloadable(RuleSetError):
    """The rule-set source could not be read or parsed."""


class RuleSetMalformed(RuleSetError):
    """The rule-set content does not describe a valid rule catalog."""
