"""
Data models for the supervisor.

Configuration Models:
- Validated run configuration and the relevance pattern set

Runtime Models:
- Filesystem change events
- The managed child handle and the restart history
"""

from .config import DEFAULT_FILE_PATTERN, PatternSet, WatchConfig
from .runtime import ChangeEvent, ManagedProcess, RestartHistory

__all__ = [
    "DEFAULT_FILE_PATTERN",
    "PatternSet",
    "WatchConfig",
    "ChangeEvent",
    "ManagedProcess",
    "RestartHistory",
]
