"""
Runtime data models.

This module contains data structures used while the supervisor is running:
change notifications, the handle of the managed child and the restart history
that detects restart storms.
"""

import subprocess
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single filesystem change delivered by the notifier.

    Attributes:
        timestamp: Unix epoch time when the event was received.
        kind:      One of "created", "modified", "deleted", "moved", "closed".
        path:      Path of the affected file (destination path for moves).
    """

    timestamp: float
    kind: str
    path: str


@dataclass
class ManagedProcess:
    """
    Handle to the currently running child.

    Only the process supervisor creates, signals or reaps these.
    """

    popen: subprocess.Popen
    argv: List[str]
    # time.monotonic() values
    started_at: float
    reaped_at: Optional[float] = None
    returncode: Optional[int] = None

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def reaped(self) -> bool:
        return self.reaped_at is not None

    def poll(self) -> Optional[int]:
        """Return the exit code if the child has exited on its own, else None."""
        if self.returncode is None:
            self.returncode = self.popen.poll()
        return self.returncode


@dataclass
class RestartHistory:
    """
    Rolling restart counter used solely to detect a restart storm.

    The counter is reset whenever more than ``window`` seconds have passed
    since the most recent restart.
    """

    limit: int = 10
    window: float = 15.0
    count: int = 0
    last_restart: Optional[float] = None
    total: int = field(default=0, compare=False)

    def expire(self, now: float) -> None:
        if self.last_restart is not None and now - self.last_restart > self.window:
            self.count = 0

    def limit_reached(self, now: float) -> bool:
        """True if starting one more process now would exceed the limit."""
        self.expire(now)
        return self.count >= self.limit

    def record(self, now: float) -> None:
        self.expire(now)
        self.count += 1
        self.total += 1
        self.last_restart = now
