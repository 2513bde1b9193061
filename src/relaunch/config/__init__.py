"""
Configuration management for the relaunch package.

Configuration is assembled once at startup: built-in defaults, overridden by
the ``[relaunch]`` table of an optional TOML file, overridden by command-line
flags. The result is a validated, immutable ``WatchConfig``.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import WatchConfig
from .loader import CONFIG_SECTION, load_toml_file, load_watch_section
from .validators import KNOWN_KEYS, validate_watch_config

logger = logging.getLogger(__name__)

# argparse destination -> configuration key
_CLI_KEYS = {
    "dir": "directory",
    "command": "command",
    "pattern": "pattern",
    "recursive": "recursive",
    "include": "include",
    "exclude": "exclude",
    "exclude_dir": "exclude_dirs",
    "debounce": "debounce",
    "restart_limit": "restart_limit",
    "restart_window": "restart_window",
    "stop_timeout": "stop_timeout",
    "queue_size": "queue_size",
    "strict_termination": "strict_termination",
    "beep": "beep",
}


def merge_cli_arguments(file_data: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """
    Overlay command-line values on top of file values.

    Arguments left at ``None`` (or an empty command) were not given on the
    command line and do not override anything.
    """
    merged = dict(file_data)
    for dest, key in _CLI_KEYS.items():
        value = getattr(args, dest, None)
        if value is None or (dest == "command" and not value):
            continue
        merged[key] = value
    return merged


def build_watch_config(args: argparse.Namespace) -> WatchConfig:
    """
    Assemble and validate the run configuration from parsed CLI arguments.

    Args:
        args: Namespace produced by the CLI parser; ``args.config`` optionally
              names a TOML file whose ``[relaunch]`` table supplies defaults

    Returns:
        Validated WatchConfig

    Raises:
        ValidationError: If the file cannot be read or any value is invalid
    """
    config_file: Optional[Path] = getattr(args, "config", None)
    file_data: Dict[str, Any] = {}
    if config_file is not None:
        config_file = Path(config_file)
        file_data = load_watch_section(config_file)
        # A relative directory in the file is relative to the file itself.
        directory = file_data.get("directory")
        if isinstance(directory, str) and not Path(directory).is_absolute():
            file_data["directory"] = str(config_file.parent / directory)

    merged = merge_cli_arguments(file_data, args)
    return validate_watch_config(merged, config_file=config_file)


__all__ = [
    "CONFIG_SECTION",
    "KNOWN_KEYS",
    "build_watch_config",
    "load_toml_file",
    "load_watch_section",
    "merge_cli_arguments",
    "validate_watch_config",
]
