"""
Shared data structures for the orchestration module.

This module defines the runtime state shared between the dispatch loop, the
signal handler and the process supervisor, and the timing constants they use.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SupervisorState(Enum):
    """Lifecycle of the process supervisor."""
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class RuntimeState:
    """
    Runtime state shared across orchestration components.

    Only ``threading.Event`` flags and the recorded fatal error are shared;
    the managed child itself stays private to the supervisor.
    """
    # Set by the signal handler, polled by the dispatch loop.
    shutdown_requested: threading.Event = field(default_factory=threading.Event)
    received_signal: Optional[int] = None

    # Set by the supervisor thread when it hits a fatal condition.
    supervisor_failed: threading.Event = field(default_factory=threading.Event)
    fatal_error: Optional[BaseException] = None

    # Set when the child could not be stopped during shutdown.
    shutdown_error: Optional[BaseException] = None

    def record_fatal(self, error: BaseException) -> None:
        self.fatal_error = error
        self.supervisor_failed.set()


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Dispatch loop poll interval; bounds the latency of interrupts and
    # supervisor failures reaching the main thread.
    DISPATCH_POLL_TIMEOUT = 0.25

    # Supervisor wait for the next restart signal between stop-flag checks.
    SIGNAL_WAIT_TIMEOUT = 0.25

    # How long a producer may block on a full restart queue.
    QUEUE_PUT_TIMEOUT = 1.0

    # Longest the dispatch loop goes without checking the notifier's threads,
    # even while events keep arriving.
    HEALTH_CHECK_INTERVAL = 1.0

    # Grace period after SIGKILL before a child counts as unkillable.
    TERMINATION_FORCE_TIMEOUT = 5.0

    SUPERVISOR_JOIN_TIMEOUT = 10.0
