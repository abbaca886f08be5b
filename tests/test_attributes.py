"""Tests for the attribute-transform engine, part templates and the template library."""

from __future__ import annotations

import pytest

from buildcheck.errors import OutOfDomain, TemplateError, UnknownAttribute
from buildcheck.geometry.bounds import BoundingBox
from buildcheck.geometry.matrix import MatrixType
from buildcheck.geometry.mesh import box_mesh
from buildcheck.geometry.vector import Vector
from buildcheck.parts.attribute import Attribute, TransformRule, VertexSelection, apply_transforms
from buildcheck.parts.catalog import DEFAULT_STUD_LENGTH, door_template, lumber_template, standard_library
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.library import TemplateLibrary
from buildcheck.parts.part import Part, set_attribute
from buildcheck.parts.template import PartTemplate


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _stud(part_id: str = "s1", **values) -> Part:
    return Part(part_id, lumber_template("2x4"), values=values)


def _offset_template() -> PartTemplate:
    """Unit cube with a 3-vector attribute translating the whole mesh."""
    return PartTemplate(
        name="block",
        mesh=box_mesh(1, 1, 1),
        attributes=(
            Attribute(
                name="Offset",
                default=Vector(0.0, 0.0, 0.0),
                rules=(TransformRule(kind=MatrixType.TRANSLATE),),
            ),
        ),
    )


def _approx(v) -> tuple:
    return tuple(pytest.approx(c, abs=1e-9) for c in v)


# ---------------------------------------------------------------------------
# apply_transforms (pure)
# ---------------------------------------------------------------------------

class TestApplyTransforms:
    def test_translate_relative_to_default(self):
        mesh = box_mesh(10, 1, 1)
        rule = TransformRule(
            selection=VertexSelection.specific((4, 5, 6, 7)),
            direction=Vector(1, 0, 0),
        )
        out = apply_transforms(mesh, [rule], 25.0, default=10.0)
        assert out.bounds.max_x == pytest.approx(25.0)
        assert out.bounds.min_x == 0.0

    def test_input_mesh_untouched(self):
        mesh = box_mesh(10, 1, 1)
        rule = TransformRule(selection=VertexSelection.span(4, 8), direction=Vector(1, 0, 0))
        apply_transforms(mesh, [rule], 25.0, default=10.0)
        assert mesh.bounds.max_x == 10.0

    def test_multiplier(self):
        mesh = box_mesh(10, 1, 1)
        rule = TransformRule(
            selection=VertexSelection.span(4, 8), direction=Vector(1, 0, 0), multiplier=2.0,
        )
        out = apply_transforms(mesh, [rule], 11.0, default=10.0)
        assert out.bounds.max_x == pytest.approx(12.0)

    def test_scale_about_pivot(self):
        mesh = box_mesh(2, 2, 2)
        rule = TransformRule(kind=MatrixType.SCALE)
        out = apply_transforms(mesh, [rule], 4.0, default=2.0)
        assert out.bounds.maximum == Vector(4, 4, 4)
        assert out.bounds.minimum == Vector(0, 0, 0)

    def test_rotate(self):
        mesh = box_mesh(1, 1, 1)
        rule = TransformRule(kind=MatrixType.ROTATE, direction=Vector(0, 0, 1))
        out = apply_transforms(mesh, [rule], 90.0, default=0.0)
        assert _approx(out.vertices[4]) == (0.0, 1.0, 0.0)

    def test_overlapping_rules_compose_sequentially(self):
        mesh = box_mesh(1, 1, 1)
        rules = [
            TransformRule(direction=Vector(1, 0, 0)),
            TransformRule(kind=MatrixType.SCALE, direction=Vector(1, 0, 0)),
        ]
        # translate by +1, then scale x by 2 about the origin
        out = apply_transforms(mesh, rules, 2.0, default=1.0)
        assert out.bounds.min_x == pytest.approx(2.0)
        assert out.bounds.max_x == pytest.approx(4.0)

    def test_value_equal_to_default_is_identity(self):
        mesh = box_mesh(3, 2, 1)
        rule = TransformRule(selection=VertexSelection.span(4, 8), direction=Vector(1, 0, 0))
        assert apply_transforms(mesh, [rule], 3.0, default=3.0) == mesh


# ---------------------------------------------------------------------------
# set_attribute
# ---------------------------------------------------------------------------

class TestSetAttribute:
    def test_changes_geometry(self):
        part = _stud()
        set_attribute(part, "Length", 100.0)
        assert part.get_attribute("Length") == 100.0
        assert part.bounds.max_x == pytest.approx(100.0)

    def test_idempotent(self):
        part = _stud()
        set_attribute(part, "Length", 80.0)
        first = part.mesh
        set_attribute(part, "Length", 80.0)
        assert part.mesh == first

    def test_bounds_track_any_sequence(self):
        part = _stud()
        for value in (50.0, 120.0, 3.0, DEFAULT_STUD_LENGTH, 77.5):
            set_attribute(part, "Length", value)
            assert part.bounds == BoundingBox.from_points(part.mesh.vertices)
            assert part.bounds.max_x == pytest.approx(value)

    def test_back_to_default_restores_mesh(self):
        part = _stud()
        original = part.mesh
        set_attribute(part, "Length", 40.0)
        set_attribute(part, "Length", DEFAULT_STUD_LENGTH)
        assert part.mesh == original

    def test_connection_points_ride_transforms(self):
        part = _stud()
        set_attribute(part, "Length", 100.0)
        start, end = part.connection_points
        assert start.position == Vector(0.0, 0.75, 1.75)
        assert _approx(end.position) == (100.0, 0.75, 1.75)
        assert end.radius == 0.75

    def test_annotation_follows_far_end(self):
        part = Part("m1", lumber_template("2x4", joint_angle=45.0))
        set_attribute(part, "Length", 100.0)
        start, end = part.annotations
        assert start.region.max_x == pytest.approx(7.0)
        assert end.region.min_x == pytest.approx(93.0)
        assert end.region.max_x == pytest.approx(100.0)

    def test_negative_length_out_of_domain(self):
        part = _stud()
        mesh, points = part.mesh, part.connection_points
        with pytest.raises(OutOfDomain) as exc_info:
            set_attribute(part, "Length", -5.0)
        assert exc_info.value.attribute == "Length"
        assert exc_info.value.part_id == "s1"
        assert part.mesh is mesh
        assert part.connection_points is points
        assert part.get_attribute("Length") == DEFAULT_STUD_LENGTH

    def test_above_maximum(self):
        door = Part("d1", door_template())
        with pytest.raises(OutOfDomain, match="above maximum"):
            door.set_attribute("Width", 61)

    def test_not_a_number(self):
        with pytest.raises(OutOfDomain, match="not a number"):
            set_attribute(_stud(), "Length", "long")

    def test_bool_rejected(self):
        with pytest.raises(OutOfDomain):
            set_attribute(_stud(), "Length", True)

    def test_nan_rejected(self):
        with pytest.raises(OutOfDomain, match="not finite"):
            set_attribute(_stud(), "Length", float("nan"))

    def test_unknown_attribute(self):
        with pytest.raises(UnknownAttribute):
            set_attribute(_stud(), "Width", 3.0)

    def test_vector_attribute(self):
        part = Part("b1", _offset_template())
        set_attribute(part, "Offset", (1, 2, 3))
        assert part.get_attribute("Offset") == Vector(1.0, 2.0, 3.0)
        assert part.bounds.minimum == Vector(1, 2, 3)

    def test_vector_attribute_wrong_shape(self):
        part = Part("b1", _offset_template())
        with pytest.raises(OutOfDomain, match="3-vector"):
            set_attribute(part, "Offset", 5.0)
        with pytest.raises(OutOfDomain, match="3-vector"):
            set_attribute(part, "Offset", (1, 2))

    def test_initial_values(self):
        part = Part("s1", lumber_template("2x4"), values={"Length": 48})
        assert part.get_attribute("Length") == 48.0
        assert part.bounds.max_x == pytest.approx(48.0)

    def test_initial_unknown_value(self):
        with pytest.raises(UnknownAttribute):
            Part("s1", lumber_template("2x4"), values={"Depth": 4})


# ---------------------------------------------------------------------------
# Connection points anchored mid-face
# ---------------------------------------------------------------------------

def _rail() -> PartTemplate:
    """96in rail with a point in the middle of its y = 0 face."""
    return PartTemplate(
        name="rail",
        mesh=box_mesh(96, 1.5, 3.5),
        attributes=(
            Attribute(
                name="Length",
                default=96.0,
                minimum=1.0,
                rules=(TransformRule(selection=VertexSelection.specific((4, 5, 6, 7)),
                                     direction=Vector(1, 0, 0)),),
            ),
            Attribute(
                name="Rise",
                default=0.0,
                rules=(TransformRule(selection=VertexSelection.specific((7,)),
                                     direction=Vector(0, 0, 1)),),
            ),
        ),
        connection_points=(ConnectionPoint(position=Vector(48, 0, 1.75), radius=0.5),),
    )


class TestSurfaceAnchors:
    def test_face_weights(self):
        ((anchor, weights),) = _rail().surface_anchors
        assert len(anchor) == 3
        assert sum(weights) == pytest.approx(1.0)

    def test_shrink_keeps_point_on_face(self):
        part = Part("r1", _rail())
        set_attribute(part, "Length", 10.0)
        (point,) = part.connection_points
        assert part.bounds.max_x == pytest.approx(10.0)
        assert _approx(point.position) == (5.0, 0.0, 1.75)
        assert part.mesh.locate(point.position) != ()

    def test_partially_moved_face(self):
        part = Part("r1", _rail())
        set_attribute(part, "Rise", 2.0)
        set_attribute(part, "Length", 40.0)
        (point,) = part.connection_points
        assert part.mesh.locate(point.position) != ()
        assert point.position.y == pytest.approx(0.0)

    def test_back_to_default_is_exact(self):
        part = Part("r1", _rail())
        set_attribute(part, "Length", 10.0)
        set_attribute(part, "Length", 96.0)
        assert part.connection_points[0].position == Vector(48, 0, 1.75)


# ---------------------------------------------------------------------------
# Template validation
# ---------------------------------------------------------------------------

class TestTemplate:
    def test_attribute_without_rules(self):
        with pytest.raises(TemplateError, match="doesn't change any vertices"):
            PartTemplate(name="t", mesh=box_mesh(1, 1, 1), attributes=(Attribute(name="A"),))

    def test_unnamed_attribute(self):
        with pytest.raises(TemplateError, match="name"):
            PartTemplate(
                name="t", mesh=box_mesh(1, 1, 1),
                attributes=(Attribute(name="", rules=(TransformRule(),)),),
            )

    def test_zero_multiplier(self):
        with pytest.raises(TemplateError, match="multiplier"):
            PartTemplate(
                name="t", mesh=box_mesh(1, 1, 1),
                attributes=(Attribute(name="A", rules=(TransformRule(multiplier=0.0),)),),
            )

    def test_selection_out_of_range(self):
        with pytest.raises(TemplateError, match="invalid"):
            PartTemplate(
                name="t", mesh=box_mesh(1, 1, 1),
                attributes=(
                    Attribute(name="A", rules=(
                        TransformRule(selection=VertexSelection.specific((0, 8))),
                    )),
                ),
            )

    def test_scale_from_zero_default(self):
        with pytest.raises(TemplateError, match="zero default"):
            PartTemplate(
                name="t", mesh=box_mesh(1, 1, 1),
                attributes=(Attribute(name="A", default=0.0,
                                      rules=(TransformRule(kind=MatrixType.SCALE),)),),
            )

    def test_duplicate_attribute(self):
        attr = Attribute(name="A", rules=(TransformRule(),))
        with pytest.raises(TemplateError, match="twice"):
            PartTemplate(name="t", mesh=box_mesh(1, 1, 1), attributes=(attr, attr))

    def test_connection_point_off_surface(self):
        with pytest.raises(TemplateError, match="not on the surface"):
            PartTemplate(
                name="t", mesh=box_mesh(2, 2, 2),
                connection_points=(ConnectionPoint(position=Vector(1, 1, 1), radius=0.5),),
            )

    def test_unnamed_template(self):
        with pytest.raises(TemplateError):
            PartTemplate(name="", mesh=box_mesh(1, 1, 1))

    def test_mesh_from_dict(self):
        mesh = box_mesh(1, 1, 1)
        template = PartTemplate(name="t", mesh=mesh.to_dict())
        assert template.mesh == mesh

    def test_anchors(self):
        template = lumber_template("2x4")
        start, end = template.anchors
        assert start <= {0, 1, 2, 3}
        assert end <= {4, 5, 6, 7}


# ---------------------------------------------------------------------------
# TemplateLibrary
# ---------------------------------------------------------------------------

class TestTemplateLibrary:
    def test_standard_library(self):
        lib = standard_library()
        assert [t.name for t in lib.list_all()] == ["2x4", "2x6", "door", "sheathing_panel"]

    def test_get_missing(self):
        with pytest.raises(KeyError, match="Template not found"):
            TemplateLibrary().get("nope")

    def test_duplicate_register(self):
        lib = TemplateLibrary([lumber_template("2x4")])
        with pytest.raises(TemplateError):
            lib.register(lumber_template("2x4"))
        lib.register(lumber_template("2x4", 48.0), replace=True)
        assert lib.get("2x4").attribute("Length").default == 48.0

    def test_instantiate(self):
        part = standard_library().instantiate("door", "d1", Width=30)
        assert part.template_name == "door"
        assert part.get_attribute("Width") == 30.0
        assert part.metadata["category"] == "door"
