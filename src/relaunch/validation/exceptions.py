"""
Exception types and error handling helpers.

This module provides the error taxonomy of the supervisor together with the
uniform logging helpers used at every place an error is reported: configuration
problems are ``ValidationError``, everything that can go wrong once the daemon
is running derives from ``RelaunchError`` and carries its own exit code.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ExitCode:
    """Process exit codes, one per fatal stage."""
    OK = 0
    UNEXPECTED = 1
    CONFIGURATION = 2
    WATCH_SETUP = 3
    SPAWN = 4
    TERMINATION = 5
    RUNAWAY_RESTART = 6


class ValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    Raised before any watching begins; the CLI maps it to
    ``ExitCode.CONFIGURATION``.
    """

    exit_code = ExitCode.CONFIGURATION
    stage = "configuration"

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class RelaunchError(Exception):
    """Base class for fatal conditions raised while the daemon is running."""

    exit_code = ExitCode.UNEXPECTED
    stage = "supervisor"


class WatchSetupError(RelaunchError):
    """The watch tree could not be enumerated or the notifier failed."""

    exit_code = ExitCode.WATCH_SETUP
    stage = "watch setup"


class SpawnError(RelaunchError):
    """The managed command could not be started."""

    exit_code = ExitCode.SPAWN
    stage = "spawn"


class TerminationError(RelaunchError):
    """The previous child could not be killed or reaped."""

    exit_code = ExitCode.TERMINATION
    stage = "termination"

    def __init__(self, message: str, pid: Optional[int] = None):
        super().__init__(message)
        self.pid = pid


class RunawayRestartError(RelaunchError):
    """Too many restarts without a quiet period, most likely a crash loop."""

    exit_code = ExitCode.RUNAWAY_RESTART
    stage = "runaway restart"

    def __init__(self, message: str, restarts: int = 0, window: float = 0.0):
        super().__init__(message)
        self.restarts = restarts
        self.window = window


def exit_code_for(error: BaseException) -> int:
    """Return the process exit code that reports *error*."""
    return getattr(error, "exit_code", ExitCode.UNEXPECTED)


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """
    Report a fatal error to the operator and exit the process.

    The exit code defaults to the one carried by the error type, so a
    runaway restart and a spawn failure stay distinguishable from the shell.
    An optional ``alert`` callable (for example the terminal bell) is invoked
    before exiting.
    """
    exit_code = kwargs.pop('exit_code', None)
    alert = kwargs.pop('alert', None)
    include_traceback = kwargs.pop('include_traceback', False)
    if exit_code is None:
        exit_code = exit_code_for(error)

    default_severity = ErrorSeverity.CRITICAL if include_traceback else ErrorSeverity.ERROR
    severity = kwargs.pop('severity', default_severity)
    stage = getattr(error, "stage", None)
    label = f"CLI {context}" if stage is None else f"{stage} ({context})"
    handle_error(error, label, severity=severity, reraise=False, **kwargs)

    if alert is not None:
        alert()

    sys.exit(exit_code)
