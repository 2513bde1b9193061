"""
Daemon shell: startup sequencing and the top-level dispatch loop.

The daemon wires the components together in a fixed order (enumerate the
watch tree, compile patterns, start the notifier, start the supervisor with
one pending restart) and then runs a single-threaded loop that feeds matched
change events to the supervisor until an interrupt or a fatal error.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

from ..matching import PatternMatcher
from ..models.config import WatchConfig
from ..models.runtime import ChangeEvent
from ..validation import ExitCode, WatchSetupError
from ..watching import ChangeNotifier, enumerate_watch_targets
from .shared_state import RuntimeState, TimeoutConstants
from .signal_handler import SignalHandler
from .supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


class Daemon:
    """
    Main orchestrator for a live-reload session.

    ``run`` returns ``ExitCode.OK`` after an operator interrupt that stopped
    the managed child, and raises the underlying ``RelaunchError`` for any
    fatal condition, including a child that could not be stopped on the way
    out.
    """

    def __init__(
        self,
        config: WatchConfig,
        notifier: Optional[ChangeNotifier] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        state: Optional[RuntimeState] = None,
    ):
        self.config = config
        self.state = state or RuntimeState()
        self.notifier = notifier or ChangeNotifier()
        self.supervisor = supervisor or ProcessSupervisor(config, state=self.state)
        self.signal_handler = SignalHandler(self.state)
        self.matcher: Optional[PatternMatcher] = None
        self.targets: List[Path] = []
        self._daemon_id = id(self)
        self._last_health_check = 0.0

    def run(self) -> int:
        """Run until interrupted; see the class docstring for the contract."""
        self.signal_handler.register_daemon(self._daemon_id, self)
        self.signal_handler.setup_signal_handlers()
        try:
            self.setup()
            self.supervisor.start()
            exit_code = self.dispatch_loop()
        finally:
            self.shutdown()
            self.signal_handler.cleanup_signal_handlers()
            self.signal_handler.unregister_daemon(self._daemon_id)

        # A child that outlived the shutdown is not a clean exit.
        if self.state.shutdown_error is not None:
            raise self.state.shutdown_error
        return exit_code

    def setup(self) -> None:
        """Enumerate the watch tree, compile patterns and start the notifier."""
        patterns = self.config.pattern_set()
        self.matcher = PatternMatcher(patterns)

        self.targets = enumerate_watch_targets(
            self.config.directory,
            recursive=self.config.recursive,
            is_excluded_dir=self.matcher.is_excluded_dir,
        )

        logger.info(f"Patterns: {patterns.fallback.pattern}")
        if patterns.include_files:
            logger.info(f"Include: {', '.join(patterns.include_files)}")
        if patterns.exclude_files:
            logger.info(f"Exclude: {', '.join(patterns.exclude_files)}")
        if patterns.exclude_dirs:
            logger.info(f"Exclude dirs: {', '.join(patterns.exclude_dirs)}")
        logger.info(f"Recursive: {self.config.recursive}")
        logger.info(f"Watching {len(self.targets)} directories under {self.config.directory}")
        logger.info(f"Running {' '.join(self.config.command)}")

        self.notifier.start(self.targets)

    def dispatch_loop(self) -> int:
        """
        Feed matched change events to the supervisor.

        Returns:
            ``ExitCode.OK`` once an interrupt was requested

        Raises:
            RelaunchError: The supervisor's fatal error, or ``WatchSetupError``
                if the notifier fails
        """
        while True:
            if self.state.shutdown_requested.is_set():
                logger.info("Received interrupt. Exit.")
                return ExitCode.OK
            if self.state.supervisor_failed.is_set():
                raise self.state.fatal_error

            item = self.notifier.get(timeout=TimeoutConstants.DISPATCH_POLL_TIMEOUT)
            now = time.monotonic()
            if item is None or now - self._last_health_check >= TimeoutConstants.HEALTH_CHECK_INTERVAL:
                self.notifier.check_health()
                self._last_health_check = now

            if item is None:
                continue
            if isinstance(item, BaseException):
                self._handle_notifier_error(item)
            else:
                self.handle_event(item)

    def handle_event(self, event: ChangeEvent) -> bool:
        """Pass *event* through the matcher; returns True if a restart was requested."""
        if not self.matcher.is_relevant(event.path):
            return False
        logger.info(f"Change detected: {event.kind} {event.path}")
        self.supervisor.request_restart()
        return True

    def _handle_notifier_error(self, error: BaseException) -> None:
        # An interrupted system call is transient; everything else is fatal.
        if isinstance(error, InterruptedError):
            logger.debug(f"Ignoring interrupted notifier call: {error}")
            return
        raise WatchSetupError(f"watcher error: {error}") from error

    def shutdown(self) -> None:
        """Stop the child first, then the supervisor thread and the notifier."""
        self.supervisor.request_shutdown()
        self.supervisor.join()
        self.notifier.stop()
