"""
Validation functions for configuration values.

Every validator returns the normalized value or raises ``ValidationError``
naming the offending field.
"""

import os
import re
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a positive float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """Validate that a value is a real boolean (TOML ``true``/``false``)."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_directory(path: Union[str, Path], field_name: str = "directory") -> Path:
    """
    Validate that a path exists and is a directory.

    Args:
        path: Path to validate
        field_name: Name of the field being validated

    Returns:
        The directory as an absolute ``Path``

    Raises:
        ValidationError: If the path is empty, missing or not a directory
    """
    if path is None or str(path) == "":
        raise ValidationError(
            f"{field_name} is required",
            field_name=field_name,
            value=path
        )
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    if not os.path.isdir(path_str):
        raise ValidationError(
            f"{field_name} is not a directory: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return Path(path_str).resolve()


def validate_simple_command(command: Sequence[str], field_name: str = "command") -> List[str]:
    """
    Validate a command given as an argument vector.

    Args:
        command: Program followed by its arguments
        field_name: Name of the field being validated

    Returns:
        The command as a list of strings

    Raises:
        ValidationError: If the command is empty or holds non-string items
    """
    if isinstance(command, str) or not command:
        raise ValidationError(
            f"{field_name} must be a non-empty list of arguments",
            field_name=field_name,
            value=command
        )
    argv = list(command)
    if not all(isinstance(arg, str) for arg in argv) or not argv[0].strip():
        raise ValidationError(
            f"{field_name} must contain a program name followed by string arguments",
            field_name=field_name,
            value=command
        )
    return argv


def validate_regex_pattern(pattern: str, field_name: str = "regex_pattern") -> str:
    """
    Validate regex pattern format.

    Args:
        pattern: Regex pattern to validate
        field_name: Name of the field being validated

    Returns:
        Validated pattern

    Raises:
        ValidationError: If pattern is invalid
    """
    if not pattern or not isinstance(pattern, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )

    try:
        re.compile(pattern)
    except re.error as e:
        raise ValidationError(
            f"{field_name} is not a valid regex pattern: {e}",
            field_name=field_name,
            value=pattern
        )

    return pattern


def validate_glob_pattern(pattern: str, field_name: str = "glob_pattern") -> str:
    """
    Validate a shell-style glob.

    ``fnmatch`` silently treats a dangling ``[`` as a literal character, which
    would turn a typo into a pattern that never matches. Unbalanced bracket
    classes are rejected here instead.

    Raises:
        ValidationError: If the glob is empty or has an unterminated class
    """
    if not pattern or not isinstance(pattern, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )

    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            # A leading ']' is a literal member of the class
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise ValidationError(
                    f"{field_name} has an unterminated character class: {pattern}",
                    field_name=field_name,
                    value=pattern
                )
            i = j
        i += 1

    return pattern


def validate_glob_list(patterns: Any, field_name: str = "globs") -> List[str]:
    """Validate a list of glob patterns, accepting a single string as a one-item list."""
    if patterns is None:
        return []
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(patterns, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of glob patterns",
            field_name=field_name,
            value=patterns
        )
    return [
        validate_glob_pattern(p, field_name=f"{field_name} item {i}")
        for i, p in enumerate(patterns)
    ]
