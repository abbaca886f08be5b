"""TemplateLibrary — named part templates that designs instantiate from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

from buildcheck.errors import TemplateError
from buildcheck.geometry.placement import Placement
from buildcheck.parts.part import Part
from buildcheck.parts.template import PartTemplate

logger = logging.getLogger(__name__)


class TemplateLibrary:
    """In-memory registry of :class:`PartTemplate` objects keyed by name."""

    def __init__(self, templates: list[PartTemplate] | None = None) -> None:
        self._templates: dict[str, PartTemplate] = {}
        for template in templates or []:
            self.register(template)

    def register(self, template: PartTemplate, *, replace: bool = False) -> None:
        """Add a template.  Raises :class:`TemplateError` on a duplicate name."""
        if template.name in self._templates and not replace:
            raise TemplateError(f"Template already registered: {template.name}")
        self._templates[template.name] = template
        logger.debug("Registered template %s", template.name)

    def get(self, name: str) -> PartTemplate:
        try:
            return self._templates[name]
        except KeyError:
            raise KeyError(f"Template not found: {name}") from None

    def remove(self, name: str) -> PartTemplate | None:
        return self._templates.pop(name, None)

    def list_all(self) -> list[PartTemplate]:
        return [self._templates[k] for k in sorted(self._templates)]

    def instantiate(
        self,
        name: str,
        part_id: str,
        placement: Placement | None = None,
        **values: Any,
    ) -> Part:
        """Create a new :class:`Part` from the named template."""
        return Part(part_id, self.get(name), placement, values=values)

    def load_directory(self, directory: str | Path) -> int:
        """Register every ``*.obj`` template in *directory*.  Returns the count."""
        from buildcheck.interchange.obj import read_template

        count = 0
        for path in sorted(Path(directory).glob("*.obj")):
            self.register(read_template(path), replace=True)
            count += 1
        logger.info("Loaded %d templates from %s", count, directory)
        return count

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[PartTemplate]:
        return iter(self.list_all())
