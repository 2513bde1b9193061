"""
Signal handling for the orchestration module.

This module manages signal registration, cleanup, and delegation to active
Daemon instances using a global registry pattern.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

from .shared_state import RuntimeState

if TYPE_CHECKING:
    from .daemon import Daemon

logger = logging.getLogger(__name__)

# Signal handlers cannot be bound to instances, so active daemons are kept in
# a registry the module-level handler notifies.
_active_daemons: Dict[int, "Daemon"] = {}
_active_daemons_lock = threading.Lock()

HANDLED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class SignalHandler:
    """
    Manages signal registration and cleanup for Daemon instances.

    The handler itself only flags the shutdown request; the dispatch loop
    notices it on its next poll and stops the child from the main thread.
    """

    def __init__(self, state: RuntimeState):
        self.state = state
        self._original_handlers: Dict[int, Any] = {}
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the interrupt handlers, remembering the previous ones."""
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Not on the main thread; interrupt handling is left to the caller")
            return
        for signum in HANDLED_SIGNALS:
            self._original_handlers[signum] = signal.signal(signum, self._global_signal_handler)
        self._signal_handlers_set = True
        logger.debug("Signal handlers set up")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            for signum, handler in self._original_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._original_handlers.clear()
            self._signal_handlers_set = False

    def register_daemon(self, daemon_id: int, daemon: "Daemon") -> None:
        with _active_daemons_lock:
            _active_daemons[daemon_id] = daemon
            logger.debug(f"Registered daemon {daemon_id} for signal handling")

    def unregister_daemon(self, daemon_id: int) -> None:
        with _active_daemons_lock:
            if _active_daemons.pop(daemon_id, None) is not None:
                logger.debug(f"Unregistered daemon {daemon_id} from signal handling")

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        """
        Module-level signal handler that delegates to every active daemon.

        Args:
            signum: Signal number that was received
            frame: Current stack frame (unused)
        """
        # No lock here: the handler runs on the main thread, which may be
        # interrupted while holding it.
        daemons = list(_active_daemons.items())
        for daemon_id, daemon in daemons:
            if daemon.state.shutdown_requested.is_set():
                logger.warning("Shutdown already in progress. Please be patient.")
                continue
            logger.warning(f"Signal {signal.Signals(signum).name} received. Requesting shutdown of daemon {daemon_id}")
            daemon.state.received_signal = signum
            daemon.state.shutdown_requested.set()
