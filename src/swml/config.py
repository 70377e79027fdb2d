"""Document builder configuration.

Policy knobs are loaded from environment variables, optionally seeded from a
dotenv file. Every value has a default, so a bare environment yields the
permissive-but-validated behaviour most callers want.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from swml.exceptions import SWMLError

logger = logging.getLogger("swml-config")

DUPLICATE_REPLACE = "replace"
DUPLICATE_ERROR = "error"
DUPLICATE_POLICIES = (DUPLICATE_REPLACE, DUPLICATE_ERROR)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(SWMLError):
    """Raised when an environment variable holds an unusable value."""

    pass


def _invalid(key: str, value: str, description: str, example: str) -> ConfigurationError:
    return ConfigurationError(
        f"Invalid value for environment variable: {key}={value!r}\n"
        f"Description: {description}\n"
        f'Example: {key}="{example}"'
    )


def _env_bool(key: str, default: bool, description: str) -> bool:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise _invalid(key, value, description, "true")


def _env_int(key: str, default: int, description: str) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise _invalid(key, value, description, str(default)) from None
    if parsed < 0:
        raise _invalid(key, value, description, str(default))
    return parsed


@dataclass
class DocumentConfig:
    """Builder policy shared by a Document and the Sections it creates."""

    json_indent: int = 4
    validate_instructions: bool = True
    allow_empty_section_names: bool = False
    duplicate_sections: str = DUPLICATE_REPLACE

    def __post_init__(self):
        if self.duplicate_sections not in DUPLICATE_POLICIES:
            raise ConfigurationError(
                f"Unknown duplicate section policy: {self.duplicate_sections!r}\n"
                f"Expected one of: {', '.join(DUPLICATE_POLICIES)}"
            )

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "DocumentConfig":
        """Load config from environment variables.

        If `env_file` is given it is loaded first; variables already present
        in the process environment take precedence over the file.
        """
        if env_file:
            if not load_dotenv(env_file):
                logger.warning(f"Env file {env_file} not found or empty")

        duplicate_sections = os.getenv("SWML_DUPLICATE_SECTIONS", "").strip().lower()
        if not duplicate_sections:
            duplicate_sections = DUPLICATE_REPLACE
        elif duplicate_sections not in DUPLICATE_POLICIES:
            raise _invalid(
                "SWML_DUPLICATE_SECTIONS",
                duplicate_sections,
                "What to do when a section name is added twice (replace or error)",
                DUPLICATE_REPLACE,
            )

        return cls(
            json_indent=_env_int(
                "SWML_JSON_INDENT",
                4,
                "Indentation width for JSON output",
            ),
            validate_instructions=_env_bool(
                "SWML_VALIDATE_INSTRUCTIONS",
                True,
                "Validate plain strings/mappings against the SWML schema on append",
            ),
            allow_empty_section_names=_env_bool(
                "SWML_ALLOW_EMPTY_SECTION_NAMES",
                False,
                "Accept empty or whitespace-only section names",
            ),
            duplicate_sections=duplicate_sections,
        )


def load_config(env_file: str | None = None) -> DocumentConfig:
    """Load and validate configuration. Fails fast with clear errors."""
    return DocumentConfig.from_env(env_file)
