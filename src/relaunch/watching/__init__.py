"""
Filesystem watching: watch tree enumeration and the change notifier.
"""

from .notifier import ChangeNotifier
from .tree import enumerate_watch_targets

__all__ = [
    "ChangeNotifier",
    "enumerate_watch_targets",
]
