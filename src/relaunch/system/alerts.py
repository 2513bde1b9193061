"""Audible failure notification."""

import sys
from typing import Callable, Optional, TextIO


def beep(stream: Optional[TextIO] = None) -> None:
    """Ring the terminal bell on *stream* (standard error by default)."""
    stream = stream or sys.stderr
    try:
        stream.write("\a")
        stream.flush()
    except (OSError, ValueError):
        # Closed or detached terminal; the log message is still there.
        pass


def make_alert(enabled: bool) -> Optional[Callable[[], None]]:
    """Return the alert callable for fatal errors, or None when disabled."""
    return beep if enabled else None
