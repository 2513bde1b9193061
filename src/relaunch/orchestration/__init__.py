"""
Orchestration of a live-reload session.

Components:
- Daemon: startup sequencing and the dispatch loop
- ProcessSupervisor: restart coordination for the single managed child
- ProcessManager: spawning, termination and reaping
- RestartQueue: the coalescing restart mailbox
- SignalHandler: interrupt handling
"""

from .daemon import Daemon
from .process_manager import ProcessManager
from .restart_queue import RestartQueue
from .shared_state import RuntimeState, SupervisorState, TimeoutConstants
from .signal_handler import SignalHandler
from .supervisor import ProcessSupervisor

__all__ = [
    "Daemon",
    "ProcessManager",
    "ProcessSupervisor",
    "RestartQueue",
    "RuntimeState",
    "SignalHandler",
    "SupervisorState",
    "TimeoutConstants",
]
