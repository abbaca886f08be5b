"""Built-in residential part templates.

Dimensions are actual (dressed) sizes in inches: a 2x4 is 1.5 x 3.5.
"""

from __future__ import annotations

from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.matrix import MatrixType
from buildcheck.geometry.mesh import box_mesh
from buildcheck.geometry.vector import Vector
from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import Attribute, TransformRule, VertexSelection
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.library import TemplateLibrary
from buildcheck.parts.template import PartTemplate

# box_mesh vertex groups
_FAR_END = (4, 5, 6, 7)
_TOP = (2, 3, 6, 7)

# Nominal -> actual lumber cross sections (thickness, depth)
LUMBER_SIZES: dict[str, tuple[float, float]] = {
    "2x4": (1.5, 3.5),
    "2x6": (1.5, 5.5),
    "2x8": (1.5, 7.25),
}

DEFAULT_STUD_LENGTH = 92.625  # precut stud for an 8' wall
DEFAULT_CAPTURE_RADIUS = 0.75


def _stretch(name: str, default: float, axis: Vector, vertices: tuple[int, ...],
             minimum: float, maximum: float | None = None, description: str = "") -> Attribute:
    return Attribute(
        name=name,
        default=default,
        minimum=minimum,
        maximum=maximum,
        rules=(
            TransformRule(
                selection=VertexSelection.specific(vertices),
                kind=MatrixType.TRANSLATE,
                direction=axis,
            ),
        ),
        description=description,
    )


def lumber_template(
    nominal: str = "2x4",
    length: float = DEFAULT_STUD_LENGTH,
    *,
    joint_angle: float | None = None,
    joint_length: float | None = None,
    name: str | None = None,
) -> PartTemplate:
    """Dimensional lumber along local x, with a connection point at each end.

    When *joint_angle* is given, both ends carry an ``angled_joint``
    annotation *joint_length* long (default: twice the board depth).
    """
    thickness, depth = LUMBER_SIZES[nominal]
    mesh = box_mesh(length, thickness, depth)
    centre_y, centre_z = thickness / 2.0, depth / 2.0

    annotations: tuple[JointAnnotation, ...] = ()
    if joint_angle is not None:
        reach = joint_length if joint_length is not None else 2.0 * depth
        annotations = (
            JointAnnotation(
                category="angled_joint",
                region=BoundingBox(min_x=0.0, min_y=0.0, min_z=0.0,
                                   max_x=reach, max_y=thickness, max_z=depth),
                angle=joint_angle,
                note="start miter",
            ),
            JointAnnotation(
                category="angled_joint",
                region=BoundingBox(min_x=length - reach, min_y=0.0, min_z=0.0,
                                   max_x=length, max_y=thickness, max_z=depth),
                angle=joint_angle,
                follows=_FAR_END,
                note="end miter",
            ),
        )

    return PartTemplate(
        name=name or nominal,
        mesh=mesh,
        attributes=(
            _stretch("Length", length, Vector(1.0, 0.0, 0.0), _FAR_END, minimum=1.0,
                     description="Board length"),
        ),
        connection_points=(
            ConnectionPoint(position=Vector(0.0, centre_y, centre_z),
                            radius=DEFAULT_CAPTURE_RADIUS, name="start"),
            ConnectionPoint(position=Vector(length, centre_y, centre_z),
                            radius=DEFAULT_CAPTURE_RADIUS, name="end"),
        ),
        annotations=annotations,
        metadata={"category": "lumber", "nominal": nominal, "material": "SPF"},
        description=f"{nominal} dimensional lumber",
    )


def door_template(width: float = 36.0, height: float = 80.0, thickness: float = 1.75) -> PartTemplate:
    """Slab door; width along x, height along z.  Hinge and latch points on the edges."""
    mesh = box_mesh(width, thickness, height)
    return PartTemplate(
        name="door",
        mesh=mesh,
        attributes=(
            _stretch("Width", width, Vector(1.0, 0.0, 0.0), _FAR_END, minimum=12.0, maximum=60.0,
                     description="Slab width"),
            _stretch("Height", height, Vector(0.0, 0.0, 1.0), _TOP, minimum=60.0, maximum=120.0,
                     description="Slab height"),
        ),
        connection_points=(
            ConnectionPoint(position=Vector(0.0, thickness / 2.0, height / 2.0),
                            radius=1.0, name="hinge"),
            ConnectionPoint(position=Vector(width, thickness / 2.0, height / 2.0),
                            radius=1.0, name="latch"),
        ),
        metadata={"category": "door", "material": "wood"},
        description="Interior slab door",
    )


def sheathing_template(width: float = 48.0, height: float = 96.0, thickness: float = 0.5) -> PartTemplate:
    """Sheet panel in the local x/z plane, fastened at its back-face corners."""
    mesh = box_mesh(width, thickness, height)
    corners = [
        Vector(0.0, 0.0, 0.0),
        Vector(width, 0.0, 0.0),
        Vector(width, 0.0, height),
        Vector(0.0, 0.0, height),
    ]
    return PartTemplate(
        name="sheathing_panel",
        mesh=mesh,
        attributes=(
            _stretch("Width", width, Vector(1.0, 0.0, 0.0), _FAR_END, minimum=1.0),
            _stretch("Height", height, Vector(0.0, 0.0, 1.0), _TOP, minimum=1.0),
        ),
        connection_points=tuple(
            ConnectionPoint(position=c, radius=2.0, name=f"corner_{i}")
            for i, c in enumerate(corners)
        ),
        metadata={"category": "sheathing", "material": "OSB"},
        description="OSB wall sheathing",
    )


def standard_library() -> TemplateLibrary:
    """Library with the built-in lumber, door and sheathing templates."""
    return TemplateLibrary([
        lumber_template("2x4"),
        lumber_template("2x6"),
        door_template(),
        sheathing_template(),
    ])
