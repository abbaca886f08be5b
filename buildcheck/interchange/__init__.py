"""Mesh interchange — annotated Wavefront OBJ templates."""

from buildcheck.interchange.obj import dumps, loads, read_template, write_design, write_template

__all__ = ["dumps", "loads", "read_template", "write_design", "write_template"]
