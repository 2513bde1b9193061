"""
Validation and error handling for the relaunch package.

This module provides input validation and the fatal-error taxonomy with
consistent error reporting across the application.
"""

from .exceptions import (
    ErrorSeverity,
    ExitCode,
    RelaunchError,
    RunawayRestartError,
    SpawnError,
    TerminationError,
    ValidationError,
    WatchSetupError,
    exit_code_for,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_boolean,
    validate_directory,
    validate_glob_list,
    validate_glob_pattern,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_simple_command,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ExitCode",
    "RelaunchError",
    "RunawayRestartError",
    "SpawnError",
    "TerminationError",
    "ValidationError",
    "WatchSetupError",
    "exit_code_for",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_boolean",
    "validate_directory",
    "validate_glob_list",
    "validate_glob_pattern",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_regex_pattern",
    "validate_simple_command",
]
