"""Wavefront OBJ interchange for part templates; annotation payloads are validated with pydantic.

A template file is a plain OBJ mesh plus annotation comments.  Every
annotation line is ``#@<key> <json>``; the first line must be the format
header ``#@buildcheck 1``::

    #@buildcheck 1
    #@template "2x4"
    #@metadata {"category": "lumber"}
    #@attribute {"name": "Length", "default": 92.625, "rules": [...]}
    #@connection {"position": [0.0, 0.75, 1.75], "radius": 0.75}
    o 2x4
    v 0.0 0.0 0.0
    ...
    f 1 2 3

Ordinary ``#`` comments and records other than ``v`` and ``f`` are ignored,
so stripping the annotations leaves a valid OBJ with the same geometry.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from buildcheck.config import ANNOTATION_PREFIX, FORMAT_NAME, FORMAT_VERSION
from buildcheck.design.design import DesignSnapshot
from buildcheck.errors import InterchangeError, MalformedMesh
from buildcheck.geometry.mesh import Mesh
from buildcheck.parts.annotation import JointAnnotation
from buildcheck.parts.attribute import Attribute
from buildcheck.parts.connection import ConnectionPoint
from buildcheck.parts.template import PartTemplate

logger = logging.getLogger(__name__)

HEADER = f"{ANNOTATION_PREFIX}{FORMAT_NAME} {FORMAT_VERSION}"

_MODELS: dict[str, type[BaseModel]] = {
    "attribute": Attribute,
    "connection": ConnectionPoint,
    "annotation": JointAnnotation,
}
_KEYS = ("template", "description", "metadata", *_MODELS)


class _Reader:
    """Accumulates template pieces while scanning lines."""

    def __init__(self) -> None:
        self.name: str | None = None
        self.description = ""
        self.metadata: dict[str, str] = {}
        self.items: dict[str, list[Any]] = {key: [] for key in _MODELS}
        self.vertices: list[tuple[float, float, float]] = []
        self.faces: list[tuple[int, int, int]] = []
        self.annotated = False

    # -- annotation lines -----------------------------------------------------

    def annotation(self, line: str, n: int) -> None:
        body = line[len(ANNOTATION_PREFIX):]
        key, _, payload = body.partition(" ")
        if key == FORMAT_NAME:
            raise InterchangeError("Format header must be the first line", n)
        if key not in _KEYS:
            raise InterchangeError(f"Unknown annotation key: {key!r}", n)
        try:
            value = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InterchangeError(f"Invalid JSON for '{key}': {exc.msg}", n) from exc

        if key == "template":
            if self.name is not None:
                raise InterchangeError("Duplicate 'template' annotation", n)
            self.name = _expect(value, str, key, n)
        elif key == "description":
            self.description = _expect(value, str, key, n)
        elif key == "metadata":
            mapping = _expect(value, dict, key, n)
            if not all(isinstance(v, str) for v in mapping.values()):
                raise InterchangeError("Metadata values must be strings", n)
            self.metadata.update(mapping)
        else:
            try:
                self.items[key].append(_MODELS[key].model_validate(value))
            except ValidationError as exc:
                raise InterchangeError(f"Invalid '{key}': {exc}", n) from exc

    # -- geometry records -----------------------------------------------------

    def vertex(self, fields: list[str], n: int) -> None:
        if len(fields) < 3:
            raise InterchangeError("Vertex needs three coordinates", n)
        try:
            x, y, z = (float(c) for c in fields[:3])
        except ValueError as exc:
            raise InterchangeError(f"Bad vertex coordinate: {exc}", n) from exc
        self.vertices.append((x, y, z))

    def face(self, fields: list[str], n: int) -> None:
        if len(fields) < 3:
            raise InterchangeError("Face needs at least three vertices", n)
        idx = [self._index(f, n) for f in fields]
        # Polygons are fan-triangulated around their first vertex
        for i in range(1, len(idx) - 1):
            self.faces.append((idx[0], idx[i], idx[i + 1]))

    def _index(self, field: str, n: int) -> int:
        head = field.split("/", 1)[0]
        try:
            raw = int(head)
        except ValueError as exc:
            raise InterchangeError(f"Bad face index {field!r}", n) from exc
        if raw == 0:
            raise InterchangeError("Face index 0 is invalid; OBJ indices are 1-based", n)
        return raw - 1 if raw > 0 else len(self.vertices) + raw

    # -- result ---------------------------------------------------------------

    def template(self, fallback_name: str | None) -> PartTemplate:
        name = self.name or fallback_name
        if not name:
            raise InterchangeError("Template has no name")
        try:
            mesh = Mesh.make(self.vertices, self.faces)
        except MalformedMesh as exc:
            raise InterchangeError(f"Template '{name}': {exc}") from exc
        return PartTemplate(
            name=name,
            mesh=mesh,
            attributes=tuple(self.items["attribute"]),
            connection_points=tuple(self.items["connection"]),
            annotations=tuple(self.items["annotation"]),
            metadata=self.metadata,
            description=self.description,
        )


def _expect(value: Any, kind: type, key: str, n: int) -> Any:
    if not isinstance(value, kind):
        raise InterchangeError(f"'{key}' expects a JSON {kind.__name__}", n)
    return value


def _check_header(line: str) -> None:
    _, _, version = line[len(ANNOTATION_PREFIX):].partition(" ")
    try:
        number = int(version.strip())
    except ValueError:
        number = None
    if number != FORMAT_VERSION:
        raise InterchangeError(
            f"Unsupported {FORMAT_NAME} format version {version.strip()!r}; "
            f"expected {FORMAT_VERSION}",
            1,
        )


def loads(text: str, name: str | None = None) -> PartTemplate:
    """Parse a template from OBJ text.

    Parameters
    ----------
    text:
        OBJ source.  Without a ``#@buildcheck`` header it is read as a plain
        mesh with no attributes or connection points.
    name:
        Template name to use when the text carries no ``#@template`` line.

    Raises
    ------
    InterchangeError
        Bad header, unknown annotation key, malformed JSON or records.
    """
    reader = _Reader()
    lines = text.splitlines()
    if lines and lines[0].startswith(f"{ANNOTATION_PREFIX}{FORMAT_NAME}"):
        _check_header(lines[0])
        reader.annotated = True
        lines = lines[1:]
        offset = 2
    else:
        offset = 1

    handlers: dict[str, Callable[[list[str], int], None]] = {
        "v": reader.vertex,
        "f": reader.face,
    }
    for n, raw in enumerate(lines, start=offset):
        line = raw.strip()
        if not line:
            continue
        if line.startswith(ANNOTATION_PREFIX):
            if not reader.annotated:
                raise InterchangeError(f"Annotation before '{HEADER}' header", n)
            reader.annotation(line, n)
            continue
        if line.startswith("#"):
            continue
        record, *fields = line.split()
        handler = handlers.get(record)
        if handler is not None:
            handler(fields, n)

    template = reader.template(name)
    logger.debug(
        "Parsed template %s: %d vertices, %d faces",
        template.name, len(template.mesh.vertices), len(template.mesh.faces),
    )
    return template


def _json(value: Any) -> str:
    return json.dumps(value, separators=(", ", ": "))


def dumps(template: PartTemplate) -> str:
    """Serialize *template* to annotated OBJ text."""
    lines: list[str] = [HEADER, f"{ANNOTATION_PREFIX}template {_json(template.name)}"]
    if template.description:
        lines.append(f"{ANNOTATION_PREFIX}description {_json(template.description)}")
    if template.metadata:
        lines.append(f"{ANNOTATION_PREFIX}metadata {_json(template.metadata)}")
    for key, items in (
        ("attribute", template.attributes),
        ("connection", template.connection_points),
        ("annotation", template.annotations),
    ):
        for item in items:
            lines.append(f"{ANNOTATION_PREFIX}{key} {_json(item.model_dump(mode='json'))}")

    lines.append(f"o {template.name}")
    for vx, vy, vz in template.mesh.vertices:
        lines.append(f"v {vx!r} {vy!r} {vz!r}")
    for f0, f1, f2 in template.mesh.faces:
        # OBJ faces are 1-indexed
        lines.append(f"f {f0 + 1} {f1 + 1} {f2 + 1}")
    return "\n".join(lines) + "\n"


def read_template(path: str | Path) -> PartTemplate:
    """Read a template file; an unannotated OBJ is named after the file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InterchangeError(f"Cannot read {path}: {exc}") from exc
    return loads(text, name=path.stem)


def write_template(template: PartTemplate, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(template), encoding="utf-8")
    return path


def write_design(snapshot: DesignSnapshot, path: str | Path) -> Path:
    """Export every part's world mesh as one OBJ object per part.

    Plain OBJ without annotations, for viewing in external tools.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [f"# {FORMAT_NAME} design {snapshot.name}".rstrip()]
    vertex_offset = 0
    for part in snapshot:
        lines.append(f"o {part.part_id}")
        for vx, vy, vz in part.mesh.vertices:
            lines.append(f"v {vx:.6f} {vy:.6f} {vz:.6f}")
        for f0, f1, f2 in part.mesh.faces:
            lines.append(
                f"f {f0 + 1 + vertex_offset} "
                f"{f1 + 1 + vertex_offset} "
                f"{f2 + 1 + vertex_offset}"
            )
        vertex_offset += len(part.mesh.vertices)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Exported %d parts to %s", len(snapshot), path)
    return path
