"""
System interaction utilities.

- Command splitting and executable discovery for the managed process
- Terminal bell alerts on fatal errors
"""

from .alerts import beep, make_alert
from .commands import discover_executable, split_command

__all__ = [
    "beep",
    "make_alert",
    "discover_executable",
    "split_command",
]
