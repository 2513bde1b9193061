"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the optional TOML
configuration file. Only the ``[relaunch]`` table is read; other tables are
left for whatever else shares the file (for example ``pyproject.toml``).
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)

CONFIG_SECTION = "relaunch"


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        ValidationError: If the file doesn't exist or is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        raise ValidationError(
            f"{description} not found: {file_path}",
            field_name="config",
            value=str(file_path)
        )

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise ValidationError(
            f"{description} is not valid TOML: {e}",
            field_name="config",
            value=str(file_path)
        ) from e


def load_watch_section(file_path: Path) -> Dict[str, Any]:
    """
    Load the ``[relaunch]`` table of a configuration file.

    Returns an empty dictionary if the file has no such table.
    """
    data = load_toml_file(file_path)
    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ValidationError(
            f"[{CONFIG_SECTION}] in {file_path} must be a table",
            field_name=CONFIG_SECTION,
            value=section
        )
    return section
