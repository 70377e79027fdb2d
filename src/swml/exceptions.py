"""Exceptions raised while building SWML documents."""

from typing import Any


class SWMLError(Exception):
    """Base class for all swml errors."""

    pass


class InvalidNameError(SWMLError, ValueError):
    """Raised when a section name is rejected."""

    pass


class DuplicateSectionError(SWMLError):
    """Raised when a section name is already bound and duplicates are an error."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Section '{name}' already exists in this document.\n"
            f"Set SWML_DUPLICATE_SECTIONS=replace to let the newest section win."
        )


class SchemaViolationError(SWMLError, ValueError):
    """Raised when an instruction does not match the SWML schema.

    `field` is the dotted location of the first failure, `errors` holds the
    full pydantic error list.
    """

    def __init__(self, field: str, message: str, errors: list[dict[str, Any]] | None = None):
        self.field = field
        self.errors = errors or []
        super().__init__(f"Invalid instruction at '{field}': {message}")
