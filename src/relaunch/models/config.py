"""
Configuration data models.

This module contains the validated configuration of a supervisor run and the
pattern set that decides which file changes are relevant.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Pattern, Tuple

# Files that trigger a reload when no pattern is configured: web assets and
# the compiled artifacts a developer is typically iterating on.
DEFAULT_FILE_PATTERN = (
    r".+\.htm$|.+\.html$|.+\.js$|.+\.css$|.+\.png$|.+\.jpg$|.+\.exe$|.+\.wasm$"
)


@dataclass(frozen=True)
class PatternSet:
    """
    The union of configuration that decides whether a path is relevant.

    Built once at startup and read-only afterwards.
    """

    # Directory base names whose whole subtree is never watched.
    exclude_dirs: Tuple[str, ...] = ()
    # File base names that never trigger, even when otherwise matched.
    exclude_files: Tuple[str, ...] = ()
    # File base names that always trigger, regardless of the fallback regex.
    include_files: Tuple[str, ...] = ()
    # User pattern OR'ed with the managed command's own base name.
    fallback: Optional[Pattern[str]] = None


@dataclass(frozen=True)
class WatchConfig:
    """
    Configuration for one supervisor run, assembled from the CLI and an
    optional TOML file.
    """

    # [relaunch] - required
    directory: Path
    command: List[str]

    # Relevance
    pattern: str = DEFAULT_FILE_PATTERN
    recursive: bool = True
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    exclude_dirs: Tuple[str, ...] = ()

    # Restart coordination
    debounce: float = 2.0
    restart_limit: int = 10
    restart_window: float = 15.0
    stop_timeout: float = 5.0
    queue_size: int = 50
    strict_termination: bool = True

    # Operator feedback
    beep: bool = True

    # Where the values came from, for the startup banner.
    config_file: Optional[Path] = field(default=None, compare=False)

    @property
    def command_name(self) -> str:
        """Base name of the managed executable."""
        return Path(self.command[0]).name

    def compile_fallback(self) -> Pattern[str]:
        """Compile the user pattern folded together with the command's base name."""
        return re.compile(f"(?:{self.pattern})|{re.escape(self.command_name)}$")

    def pattern_set(self) -> PatternSet:
        return PatternSet(
            exclude_dirs=tuple(self.exclude_dirs),
            exclude_files=tuple(self.exclude),
            include_files=tuple(self.include),
            fallback=self.compile_fallback(),
        )
