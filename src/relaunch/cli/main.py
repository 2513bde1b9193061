"""
Command-line interface for the relaunch live-reload supervisor.

This module provides the main CLI entry point: it parses arguments, assembles
the validated configuration, runs the daemon and maps every fatal condition
to its own exit code.

Usage:
    relaunch [options] COMMAND [ARGS...]

Example:
    relaunch -d ./web --exclude-dir node_modules --include '*.tmpl' ./server --port 8080
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import build_watch_config
from ..models.config import DEFAULT_FILE_PATTERN
from ..orchestration import Daemon
from ..system import make_alert
from ..validation import ExitCode, RelaunchError, ValidationError, handle_cli_error

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Every option defaults to ``None`` so that values from a ``--config`` file
    are only overridden by flags the operator actually passed.
    """
    parser = argparse.ArgumentParser(
        prog="relaunch",
        description="Watch a directory tree and restart a command whenever matching files change.",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run and restart. A single quoted argument is split like a shell would. "
             "If omitted, the only executable in the watch directory is used.",
    )
    parser.add_argument(
        "-d",
        "--dir",
        type=str,
        default=None,
        help="Root of the watch tree (default: current directory).",
    )
    parser.add_argument(
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Watch subdirectories too (default: on).",
    )
    parser.add_argument(
        "-p",
        "--pattern",
        type=str,
        default=None,
        help=f"Regular expression of files that trigger a reload (default: {DEFAULT_FILE_PATTERN}).",
    )
    parser.add_argument(
        "--exclude-dir",
        action="append",
        default=None,
        metavar="GLOB",
        help="Directory name to skip entirely, with its subtree. Repeatable.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="GLOB",
        help="File name that never triggers a reload, even if otherwise matched. Repeatable.",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        metavar="GLOB",
        help="File name that always triggers a reload, regardless of --pattern. Repeatable.",
    )
    parser.add_argument(
        "--debounce",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Settle delay before each start (default: 2.0).",
    )
    parser.add_argument(
        "--restart-limit",
        type=int,
        default=None,
        metavar="N",
        help="Abort after this many restarts without a quiet period (default: 10).",
    )
    parser.add_argument(
        "--restart-window",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Quiet period that resets the restart counter (default: 15.0).",
    )
    parser.add_argument(
        "--stop-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Grace period between SIGTERM and SIGKILL when stopping the command (default: 5.0).",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=None,
        metavar="N",
        help="Capacity of the restart request queue (default: 50).",
    )
    parser.add_argument(
        "--lenient-termination",
        dest="strict_termination",
        action="store_false",
        default=None,
        help="Log and carry on when the old process cannot be killed, instead of exiting.",
    )
    parser.add_argument(
        "--beep",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Ring the terminal bell on failure (default: on).",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="TOML file whose [relaunch] table provides defaults for these options.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for relaunch.

    Raises:
        SystemExit: Always; 0 after an operator interrupt, the stage-specific
            exit code of the fatal error otherwise.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    # REMAINDER keeps a leading "--" separator
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]

    setup_logging(args.log_level)

    try:
        config = build_watch_config(args)
    except KeyboardInterrupt:
        logger.info("Received interrupt. Exit.")
        sys.exit(ExitCode.OK)
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="configuration",
            include_traceback=False,
            alert=make_alert(args.beep is not False),
            logger=logger,
        )

    alert = make_alert(config.beep)
    daemon = Daemon(config)
    try:
        exit_code = daemon.run()
    except KeyboardInterrupt:
        # Arrived before the daemon installed its own handlers; run() has
        # already stopped the child on the way out.
        if daemon.state.shutdown_error is not None:
            handle_cli_error(
                error=daemon.state.shutdown_error,
                context="daemon",
                alert=alert,
                logger=logger,
            )
        logger.info("Received interrupt. Exit.")
        exit_code = ExitCode.OK
    except RelaunchError as e:
        handle_cli_error(error=e, context="daemon", alert=alert, logger=logger)
    except Exception as e:
        handle_cli_error(
            error=e,
            context="unexpected failure",
            include_traceback=True,
            alert=alert,
            logger=logger,
        )

    sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
