"""
Process supervisor: the restart-coordination engine.

The supervisor runs in its own thread and turns the stream of restart tokens
into a strictly serialized sequence of "stop old child, start new child"
transitions:

    IDLE -> STARTING -> RUNNING -> STOPPING -> STARTING -> ...
                                           \\-> STOPPED (shutdown)

Any fatal condition moves it to FAILED and is reported to the daemon through
the shared ``RuntimeState``.
"""

import collections
import logging
import threading
import time
from typing import Callable, Deque, Optional

from ..models.config import WatchConfig
from ..models.runtime import ManagedProcess, RestartHistory
from ..validation import (
    ErrorSeverity,
    RelaunchError,
    RunawayRestartError,
    TerminationError,
    handle_error,
)
from .process_manager import ProcessManager
from .restart_queue import RestartQueue
from .shared_state import RuntimeState, SupervisorState, TimeoutConstants

logger = logging.getLogger(__name__)


class ProcessSupervisor:
    """
    Owns the managed child and the restart history.

    Other components interact with it only through ``request_restart`` and
    ``request_shutdown``. The child handle is guarded by a lock held during
    kill-and-reap and during spawn, so a shutdown from the signal path never
    observes a half-replaced child and no child is spawned after shutdown.
    """

    def __init__(
        self,
        config: WatchConfig,
        state: Optional[RuntimeState] = None,
        restart_queue: Optional[RestartQueue] = None,
        process_manager: Optional[ProcessManager] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.state = state or RuntimeState()
        self.restart_queue = restart_queue or RestartQueue(config.queue_size)
        self.process_manager = process_manager or ProcessManager(
            stop_timeout=config.stop_timeout, clock=clock
        )
        self.clock = clock
        self.history = RestartHistory(limit=config.restart_limit, window=config.restart_window)

        self.status = SupervisorState.IDLE
        # Most recent children, newest last; diagnostics only.
        self.recent: Deque[ManagedProcess] = collections.deque(maxlen=32)

        self._lock = threading.RLock()
        self._current: Optional[ManagedProcess] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._exit_reported = False

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @property
    def current_process(self) -> Optional[ManagedProcess]:
        with self._lock:
            return self._current

    @property
    def restart_count(self) -> int:
        return self.history.total

    def start(self) -> None:
        """Start the supervisor thread with one pending restart, so the child starts immediately."""
        if self._thread is not None:
            raise RuntimeError("Supervisor already started")
        self.restart_queue.request_restart(timeout=None)
        self._thread = threading.Thread(target=self._run, name="relaunch-supervisor", daemon=True)
        self._thread.start()
        logger.debug("Supervisor thread started")

    def request_restart(self) -> bool:
        """Ask for a restart; returns False if the request was folded into a pending one."""
        return self.restart_queue.request_restart()

    def request_shutdown(self) -> None:
        """
        Stop supervising: terminate and reap the current child synchronously.

        Safe to call from the main thread while the supervisor thread is in
        the middle of a restart. Under strict termination a child that cannot
        be stopped is recorded as ``state.shutdown_error`` so the daemon does
        not report a clean exit; in lenient mode it is only logged.
        """
        self._stop.set()
        with self._lock:
            failed = False
            if self._current is not None:
                logger.info(f"Shutdown: stopping process {self._current.pid}")
                try:
                    self.process_manager.terminate(self._current)
                except TerminationError as e:
                    handle_error(e, "stopping process on shutdown", severity=ErrorSeverity.ERROR,
                                 reraise=False, logger=logger)
                    if self.config.strict_termination:
                        self.state.shutdown_error = e
                        failed = True
                self._current = None
            if failed:
                self.status = SupervisorState.FAILED
            elif self.status is not SupervisorState.FAILED:
                self.status = SupervisorState.STOPPED

    def join(self, timeout: Optional[float] = TimeoutConstants.SUPERVISOR_JOIN_TIMEOUT) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Supervisor thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                if self._wait_for_signal():
                    self._restart()
        except RelaunchError as e:
            self._fail(e)
        except Exception as e:
            logger.critical(f"Unexpected supervisor failure: {type(e).__name__}: {e}", exc_info=True)
            self._fail(e)

    def _fail(self, error: BaseException) -> None:
        self.status = SupervisorState.FAILED
        # Do not leave the child orphaned behind a dying daemon.
        with self._lock:
            if self._current is not None and not self._current.reaped:
                try:
                    self.process_manager.terminate(self._current)
                except TerminationError as e:
                    handle_error(e, "stopping process after failure", severity=ErrorSeverity.ERROR,
                                 reraise=False, logger=logger)
            self._current = None
        self.state.record_fatal(error)

    def _wait_for_signal(self) -> bool:
        """Block until a restart token arrives; False if shutdown was requested instead."""
        while not self._stop.is_set():
            if self.restart_queue.wait_for_request(timeout=TimeoutConstants.SIGNAL_WAIT_TIMEOUT):
                return True
            self._report_unexpected_exit()
        return False

    def _report_unexpected_exit(self) -> None:
        with self._lock:
            current = self._current
            if current is None or self._exit_reported:
                return
            returncode = current.poll()
            if returncode is None:
                return
            current.reaped_at = self.clock()
            self._exit_reported = True
        logger.warning(f"Process {current.pid} exited with code {returncode}; waiting for changes")

    def _restart(self) -> None:
        with self._lock:
            if self._stop.is_set():
                return
            if self._current is not None:
                self.status = SupervisorState.STOPPING
                self._stop_current()

        now = self.clock()
        if self.history.limit_reached(now):
            raise RunawayRestartError(
                f"repeated restarts: {self.history.count} restarts without "
                f"{self.history.window:g}s of quiet, likely an infinite build/crash loop",
                restarts=self.history.count,
                window=self.history.window,
            )

        self.status = SupervisorState.STARTING
        # Let the burst that caused this restart settle; shutdown cuts it short.
        if self._stop.wait(self.config.debounce):
            return
        self.restart_queue.drain()

        with self._lock:
            if self._stop.is_set():
                return
            managed = self.process_manager.start_process(self.config.command)
            self._current = managed
            self._exit_reported = False
            self.recent.append(managed)
            self.history.record(self.clock())
            self.status = SupervisorState.RUNNING
        logger.info(f"------ Reload ------ (pid {managed.pid}, restart #{self.history.total})")

    def _stop_current(self) -> None:
        """Terminate and reap the current child. Caller holds the lock."""
        current = self._current
        try:
            self.process_manager.terminate(current)
        except TerminationError as e:
            if self.config.strict_termination:
                raise
            handle_error(e, f"stopping process {current.pid}", severity=ErrorSeverity.ERROR,
                         reraise=False, logger=logger)
        self._current = None
