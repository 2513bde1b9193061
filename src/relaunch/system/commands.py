"""
Command line preparation for the managed process.

This module turns the operator's command into an argument vector and, when no
command is given, finds the single executable sitting in the watch directory.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import List, Sequence, Union

from ..validation import ValidationError

logger = logging.getLogger(__name__)


def split_command(command: Union[str, Sequence[str], None]) -> List[str]:
    """Split the operator's command into an argument vector.

    A single string (or a one-item sequence, as produced by quoting the whole
    command on the shell) is split with shell quoting rules; longer sequences
    are taken as-is.

    Args:
        command: Command string or argument list.

    Returns:
        The argument vector, empty if no command was given.

    Raises:
        ValidationError: If the string has unbalanced quotes.
    """
    if command is None:
        return []
    if isinstance(command, str):
        command = [command]
    argv = list(command)
    if len(argv) != 1:
        return argv
    try:
        return shlex.split(argv[0], posix=os.name != "nt")
    except ValueError as e:
        raise ValidationError(
            f"command cannot be parsed: {e}",
            field_name="command",
            value=argv[0]
        )


def _is_executable(path: Path) -> bool:
    if not path.is_file():
        return False
    if os.name == "nt":
        return path.suffix.lower() == ".exe"
    return os.access(path, os.X_OK)


def discover_executable(directory: Path) -> Path:
    """Find the one executable file directly inside *directory*.

    Used when no command was given on the command line: a directory that
    holds exactly one program is assumed to be the build output to run.

    Raises:
        ValidationError: If there is no executable or more than one.
    """
    candidates = sorted(p for p in directory.iterdir() if _is_executable(p))
    logger.debug(f"Executable candidates in {directory}: {[p.name for p in candidates]}")

    if not candidates:
        raise ValidationError(
            f"No command given and no executable found in {directory}",
            field_name="command",
        )
    if len(candidates) > 1:
        raise ValidationError(
            f"No command given and too many executables in {directory}: "
            f"{', '.join(p.name for p in candidates)}",
            field_name="command",
            value=[str(p) for p in candidates],
        )
    return candidates[0]
