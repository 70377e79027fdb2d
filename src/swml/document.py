"""SWML document assembly and rendering.

A Document maps section names to Sections and renders them as

    {"sections": {"main": [...], "other": [...]}}

in JSON or YAML. Rendering is a read-only walk over the current state, so it
can be repeated and always gives the same text for the same state.
"""

import json
import logging
import threading
from typing import Any

import yaml

from swml.config import DUPLICATE_ERROR, DocumentConfig
from swml.exceptions import DuplicateSectionError
from swml.schemas import to_swml
from swml.section import Section

logger = logging.getLogger("swml-document")


class Document:
    """A SWML document: named sections of instructions."""

    def __init__(self, config: DocumentConfig | None = None):
        self.config = config or DocumentConfig()
        self._sections: dict[str, Section] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_section(self, section: str | Section) -> Section:
        """Add a section and return it.

        A name creates a new empty Section; an existing Section is bound by
        reference under its own name. Re-using a name replaces the previous
        section (or raises DuplicateSectionError under the "error" policy).
        """
        if isinstance(section, Section):
            bound = section
        elif isinstance(section, str):
            bound = Section(section, self.config)
        else:
            raise TypeError(
                f"add_section() expects a section name or Section, got {type(section).__name__}"
            )

        with self._lock:
            if bound.name in self._sections:
                if self.config.duplicate_sections == DUPLICATE_ERROR:
                    raise DuplicateSectionError(bound.name)
                logger.warning(f"Section {bound.name!r} replaced; the previous section is detached")
            self._sections[bound.name] = bound

        logger.debug(f"Section {bound.name!r} added ({len(bound)} actions)")
        return bound

    def get_section(self, name: str) -> Section:
        """Return the section bound to `name`. Raises KeyError if missing."""
        with self._lock:
            return self._sections[name]

    @property
    def section_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._sections)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._sections

    def __len__(self) -> int:
        with self._lock:
            return len(self._sections)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Plain tree of dicts, lists and scalars, in insertion order."""
        with self._lock:
            sections = list(self._sections.items())
        return {
            "sections": {
                name: [to_swml(action) for action in section.actions]
                for name, section in sections
            }
        }

    def to_json(self) -> str:
        """Render as pretty-printed JSON."""
        tree = self.to_dict()
        logger.debug(f"Rendering {len(tree['sections'])} sections as JSON")
        return json.dumps(tree, indent=self.config.json_indent, ensure_ascii=False)

    def to_yaml(self) -> str:
        """Render as block-style YAML."""
        tree = self.to_dict()
        logger.debug(f"Rendering {len(tree['sections'])} sections as YAML")
        return yaml.safe_dump(
            tree,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )

    def __repr__(self) -> str:
        return f"Document(sections={list(self._sections)!r})"

