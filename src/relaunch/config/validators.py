"""
Configuration validation utilities.

This module validates raw configuration values (already merged from the CLI
and the TOML file) and assembles them into a ``WatchConfig``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import DEFAULT_FILE_PATTERN, WatchConfig
from ..system.commands import discover_executable, split_command
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_directory,
    validate_glob_list,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_simple_command,
)

logger = logging.getLogger(__name__)

KNOWN_KEYS = frozenset({
    "directory",
    "command",
    "pattern",
    "recursive",
    "include",
    "exclude",
    "exclude_dirs",
    "debounce",
    "restart_limit",
    "restart_window",
    "stop_timeout",
    "queue_size",
    "strict_termination",
    "beep",
})


def validate_watch_config(data: Dict[str, Any], config_file: Optional[Path] = None) -> WatchConfig:
    """
    Validate and create a WatchConfig from raw configuration data.

    Args:
        data: Raw configuration values keyed like the ``[relaunch]`` table
        config_file: File the values were partly read from, if any

    Returns:
        Validated WatchConfig instance

    Raises:
        ValidationError: If validation fails
    """
    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        raise ValidationError(
            f"Unknown configuration keys: {', '.join(unknown)}",
            field_name="config",
            value=unknown
        )

    directory = validate_directory(data.get("directory", "."), field_name="directory")

    argv = split_command(data.get("command"))
    if not argv:
        executable = discover_executable(directory)
        logger.info(f"No command given, using the only executable in {directory}: {executable.name}")
        argv = [str(executable)]
    command = validate_simple_command(argv, field_name="command")

    pattern = validate_regex_pattern(
        data.get("pattern", DEFAULT_FILE_PATTERN),
        field_name="pattern",
    )

    recursive = validate_boolean(data.get("recursive", True), field_name="recursive")
    strict_termination = validate_boolean(
        data.get("strict_termination", True), field_name="strict_termination"
    )
    beep = validate_boolean(data.get("beep", True), field_name="beep")

    include = validate_glob_list(data.get("include"), field_name="include")
    exclude = validate_glob_list(data.get("exclude"), field_name="exclude")
    exclude_dirs = validate_glob_list(data.get("exclude_dirs"), field_name="exclude_dirs")

    debounce = validate_positive_float(
        data.get("debounce", 2.0),
        min_value=0.0,
        max_value=60.0,
        field_name="debounce",
    )
    restart_limit = validate_positive_integer(
        data.get("restart_limit", 10),
        min_value=1,
        max_value=10_000,
        field_name="restart_limit",
    )
    restart_window = validate_positive_float(
        data.get("restart_window", 15.0),
        min_value=0.0,
        max_value=3600.0,
        field_name="restart_window",
    )
    stop_timeout = validate_positive_float(
        data.get("stop_timeout", 5.0),
        min_value=0.0,
        max_value=600.0,
        field_name="stop_timeout",
    )
    queue_size = validate_positive_integer(
        data.get("queue_size", 50),
        min_value=1,
        max_value=100_000,
        field_name="queue_size",
    )

    if not strict_termination:
        logger.warning(
            "Lenient termination enabled: a child that cannot be killed or reaped "
            "will be logged and a new one started anyway"
        )

    return WatchConfig(
        directory=directory,
        command=command,
        pattern=pattern,
        recursive=recursive,
        include=tuple(include),
        exclude=tuple(exclude),
        exclude_dirs=tuple(exclude_dirs),
        debounce=debounce,
        restart_limit=restart_limit,
        restart_window=restart_window,
        stop_timeout=stop_timeout,
        queue_size=queue_size,
        strict_termination=strict_termination,
        beep=beep,
        config_file=config_file,
    )
