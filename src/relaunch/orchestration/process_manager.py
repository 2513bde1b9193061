"""
Process management for the orchestration module.

This module handles the lifecycle of the managed child: spawning it with the
daemon's standard streams, and terminating it together with its descendants
before confirming its exit with the OS.
"""

import logging
import os
import subprocess
import time
from typing import Callable, List, Optional, Sequence

import psutil

from ..models.runtime import ManagedProcess
from ..validation import SpawnError, TerminationError
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class ProcessManager:
    """
    Spawning and termination of the managed child.

    Termination escalates from SIGTERM to SIGKILL and always ends by reaping
    the child; anything that survives SIGKILL raises ``TerminationError``.
    """

    def __init__(self, stop_timeout: float = 5.0,
                 force_timeout: float = TimeoutConstants.TERMINATION_FORCE_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic):
        self.stop_timeout = stop_timeout
        self.force_timeout = force_timeout
        self.clock = clock

    def start_process(self, argv: Sequence[str]) -> ManagedProcess:
        """
        Start the managed command.

        The child inherits the daemon's stdin, stdout and stderr so its logs
        are visible to the operator. On POSIX it leads a new session, so
        anything it leaves behind can still be found by process group.

        Args:
            argv: Program and arguments

        Returns:
            Handle of the started child

        Raises:
            SpawnError: If the executable is missing, not executable, or the
                OS refuses to create the process
        """
        argv = list(argv)
        logger.info(f"Starting: {' '.join(argv)}")
        try:
            popen = subprocess.Popen(argv, start_new_session=hasattr(os, "setsid"))
        except OSError as e:
            raise SpawnError(f"can't start command {argv[0]!r}: {e}") from e

        managed = ManagedProcess(popen=popen, argv=argv, started_at=self.clock())
        logger.info(f"Process started with PID: {managed.pid}")
        return managed

    def terminate(self, managed: ManagedProcess) -> Optional[int]:
        """
        Terminate the managed child and its descendants, then reap it.

        Handles the edge cases of a child that already exited (possibly
        leaving background processes in its group), descendants that outlive
        their parent, and processes ignoring SIGTERM.

        Returns:
            The child's exit code

        Raises:
            TerminationError: If a process survives SIGKILL or cannot be
                signalled at all
        """
        pid = managed.pid
        if managed.poll() is not None:
            if not managed.reaped:
                logger.info(f"Process {pid} had already exited with code {managed.returncode}")
                managed.reaped_at = self.clock()
            self._cleanup_process_group(pid)
            return managed.returncode

        # Descendants must be collected before the parent dies and they get
        # re-parented.
        children = self._get_process_children(pid)
        logger.info(f"Stopping process {pid} and {len(children)} children")

        remaining_children = children
        parent_alive = True
        for phase in self._termination_phases():
            self._signal_parent(managed, phase)
            signalled = self._apply_termination_signal(remaining_children, phase)

            deadline = self.clock() + phase["timeout"]
            parent_alive = not self._wait_parent(managed, phase["timeout"])
            remaining_children = self._wait_for_termination(
                signalled, max(0.0, deadline - self.clock())
            )

            if not parent_alive and not remaining_children:
                logger.debug(f"Process {pid} terminated in phase {phase['name']}")
                break
            logger.warning(
                f"Phase {phase['name']}: process {pid} alive={parent_alive}, "
                f"{len(remaining_children)} children still running"
            )

        if parent_alive:
            raise TerminationError(f"Process {pid} did not exit after SIGKILL", pid=pid)
        if remaining_children:
            self._handle_stubborn_processes(remaining_children, pid)
            raise TerminationError(
                f"{len(remaining_children)} children of process {pid} did not exit after SIGKILL",
                pid=pid,
            )

        managed.reaped_at = self.clock()
        logger.info(f"Process {pid} exited with code {managed.returncode}")
        # Catches daemonized descendants that were never our children.
        self._cleanup_process_group(pid)
        return managed.returncode

    def _termination_phases(self) -> List[dict]:
        phases = [
            {"name": "graceful", "signal": "SIGTERM", "timeout": self.stop_timeout, "force": False},
            {"name": "force_kill", "signal": "SIGKILL", "timeout": self.force_timeout, "force": True},
        ]
        if self.stop_timeout <= 0:
            return phases[1:]
        return phases

    def _get_group_members(self, pgid: int) -> List[psutil.Process]:
        """Live processes in process group *pgid*; zombies are left to their reaper."""
        members = []
        for process in psutil.process_iter():
            try:
                if os.getpgid(process.pid) == pgid and self._is_process_alive(process):
                    members.append(process)
            except (OSError, psutil.Error):
                continue
        return members

    def _cleanup_process_group(self, pgid: int) -> None:
        """
        Stop whatever is left in the child's process group after the child is gone.

        Raises:
            TerminationError: If a group member survives SIGKILL
        """
        if not hasattr(os, "killpg"):
            return
        remaining = self._get_group_members(pgid)
        if not remaining:
            return
        logger.warning(f"{len(remaining)} processes left in group {pgid} after its leader exited")

        for phase in self._termination_phases():
            signalled = self._apply_termination_signal(remaining, phase)
            remaining = self._wait_for_termination(signalled, phase["timeout"])
            if not remaining:
                logger.debug(f"Process group {pgid} cleaned up in phase {phase['name']}")
                return

        self._handle_stubborn_processes(remaining, pgid)
        raise TerminationError(
            f"{len(remaining)} processes in group {pgid} did not exit after SIGKILL", pid=pgid
        )

    def _signal_parent(self, managed: ManagedProcess, phase: dict) -> None:
        try:
            if phase["force"]:
                managed.popen.kill()
            else:
                managed.popen.terminate()
            logger.debug(f"Sent {phase['signal']} to PID {managed.pid}")
        except ProcessLookupError:
            # Exited between poll and signal; the wait below reaps it.
            pass
        except OSError as e:
            raise TerminationError(
                f"Cannot send {phase['signal']} to process {managed.pid}: {e}", pid=managed.pid
            ) from e

    def _wait_parent(self, managed: ManagedProcess, timeout: float) -> bool:
        """Block until the child is reaped. Returns False on timeout."""
        try:
            managed.returncode = managed.popen.wait(timeout=timeout)
            return True
        except subprocess.TimeoutExpired:
            return False
        except OSError as e:
            raise TerminationError(f"Failed to wait for process {managed.pid}: {e}", pid=managed.pid) from e

    def _is_process_alive(self, process: psutil.Process) -> bool:
        """Safely check if a process is still alive and not a zombie."""
        try:
            if not process.is_running():
                return False
            return process.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    def _get_process_children(self, pid: int) -> List[psutil.Process]:
        """Safely get all descendants of a process, handling race conditions."""
        try:
            return [
                child for child in psutil.Process(pid).children(recursive=True)
                if self._is_process_alive(child)
            ]
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            # The parent may have exited during enumeration
            return []

    def _apply_termination_signal(self, processes: List[psutil.Process], phase: dict) -> List[psutil.Process]:
        """Apply the phase's signal to a list of processes and return those that were signalled."""
        signalled = []
        for process in processes:
            try:
                if not self._is_process_alive(process):
                    continue
                if phase["force"]:
                    process.kill()
                else:
                    process.terminate()
                signalled.append(process)
                logger.debug(f"Sent {phase['signal']} to child PID {process.pid}")
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied as e:
                raise TerminationError(
                    f"Access denied sending {phase['signal']} to PID {process.pid}", pid=process.pid
                ) from e
        return signalled

    def _wait_for_termination(self, processes: List[psutil.Process], timeout: float) -> List[psutil.Process]:
        """Wait for processes to terminate and return any that are still alive."""
        if not processes:
            return []
        _, still_alive = psutil.wait_procs(processes, timeout=timeout)
        # Zombies are effectively terminated; their own parent reaps them
        return [p for p in still_alive if self._is_process_alive(p)]

    def _handle_stubborn_processes(self, processes: List[psutil.Process], pid: int) -> None:
        """Log processes that refuse to terminate even after SIGKILL."""
        logger.error(f"Failed to terminate {len(processes)} stubborn children of process {pid}")
        for process in processes:
            try:
                logger.error(f"Stubborn process: PID {process.pid}, name: {process.name()}, "
                             f"status: {process.status()}, cmdline: {' '.join(process.cmdline()[:3])}")
            except psutil.Error as e:
                logger.error(f"Could not get info for stubborn process PID {process.pid}: {e}")
