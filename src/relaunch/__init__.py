"""
relaunch: live-reload supervisor.

Watches a directory tree for file changes matching configurable patterns and
restarts a single managed command in response, guarding against restart
storms along the way.

The package is organized into specialized modules:
- config: Configuration assembly and validation
- models: Data structures and type definitions
- validation: Input validation and the fatal error taxonomy
- matching: Relevance of changed paths
- watching: Watch tree enumeration and the change notifier
- orchestration: Restart queue, process supervisor and the daemon shell
- system: Command preparation and alerts
- cli: Command-line interface

Usage:
    From command line:
        relaunch [options] COMMAND [ARGS...]

    Programmatically:
        from relaunch import Daemon, build_watch_config
        config = build_watch_config(args)
        Daemon(config).run()
"""

__version__ = "1.0.0"

from .config import build_watch_config, validate_watch_config
from .matching import PatternMatcher
from .models import ChangeEvent, ManagedProcess, PatternSet, RestartHistory, WatchConfig
from .orchestration import Daemon, ProcessSupervisor, RestartQueue
from .validation import (
    ExitCode,
    RelaunchError,
    RunawayRestartError,
    SpawnError,
    TerminationError,
    ValidationError,
    WatchSetupError,
)
from .cli import main_cli

__all__ = [
    "__version__",
    # Main interfaces
    "Daemon",
    "ProcessSupervisor",
    "RestartQueue",
    "PatternMatcher",
    "build_watch_config",
    "validate_watch_config",
    "main_cli",
    # Models
    "ChangeEvent",
    "ManagedProcess",
    "PatternSet",
    "RestartHistory",
    "WatchConfig",
    # Errors
    "ExitCode",
    "RelaunchError",
    "RunawayRestartError",
    "SpawnError",
    "TerminationError",
    "ValidationError",
    "WatchSetupError",
]
