"""A named, ordered list of SWML instructions."""

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from swml.config import DocumentConfig
from swml.exceptions import InvalidNameError
from swml.schemas import Action, validate_instruction

logger = logging.getLogger("swml-section")


class Section:
    """A named sequence of instructions, executed in append order.

    The Section owns its action list. A Document it is attached to renders
    whatever the list holds at render time, so instructions appended after
    attachment still show up in the output.
    """

    def __init__(self, name: str, config: DocumentConfig | None = None):
        self._config = config or DocumentConfig()
        if not isinstance(name, str):
            raise InvalidNameError(f"Section name must be a string, got {type(name).__name__}")
        if not name.strip() and not self._config.allow_empty_section_names:
            raise InvalidNameError(
                "Section name must not be empty.\n"
                "Set SWML_ALLOW_EMPTY_SECTION_NAMES=true to allow it."
            )
        self._name = name
        self._actions: list[Any] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def actions(self) -> tuple[Any, ...]:
        """Snapshot of the instructions in append order."""
        with self._lock:
            return tuple(self._actions)

    def append(self, instruction: Any) -> Any:
        """Append an instruction and return it.

        Strings and mappings are checked against the schema (unless
        validation is turned off) and stored as their typed models; the
        stored value is what gets returned.
        """
        if self._config.validate_instructions and not _is_model(instruction):
            instruction = validate_instruction(instruction)
        with self._lock:
            self._actions.append(instruction)
        logger.debug(f"Appended {_action_name(instruction)} to section {self._name!r}")
        return instruction

    def extend(self, instructions: Iterable[Any]) -> list[Any]:
        """Append several instructions in order.

        Everything is validated before anything is appended, so a bad
        instruction leaves the section untouched.
        """
        items = list(instructions)
        if self._config.validate_instructions:
            items = [item if _is_model(item) else validate_instruction(item) for item in items]
        with self._lock:
            self._actions.extend(items)
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.actions)

    def __repr__(self) -> str:
        return f"Section(name={self._name!r}, actions={len(self._actions)})"


def _action_name(value: Any) -> str:
    if isinstance(value, Action):
        return value.action
    if isinstance(value, str):
        return value
    return type(value).__name__


def _is_model(value: Any) -> bool:
    return isinstance(value, Action)
