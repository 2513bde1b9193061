"""
notifier.py: filesystem change notifier.

Uses the ``watchdog`` library to watch each enumerated directory (never
recursively, the tree walk already decided which directories exist for us)
and converts raw events into ``ChangeEvent`` objects.

Events and notifier errors are delivered through a single thread-safe queue
so the dispatch loop can wait on both at once.

Public API
----------
ChangeNotifier.start(targets)
    Schedule every target directory and start the observer thread.

ChangeNotifier.get(timeout)
    Next ``ChangeEvent`` or exception, or ``None`` on timeout.

ChangeNotifier.check_health()
    Raise ``WatchSetupError`` if the observer or an emitter thread died.

ChangeNotifier.stop()
    Stop the observer.
"""

from __future__ import annotations

import logging
import os
import queue
import time
from pathlib import Path
from typing import Iterable, Union

from watchdog.events import (
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..models.runtime import ChangeEvent
from ..validation import WatchSetupError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mapping watchdog event types -> ChangeEvent kinds
# ---------------------------------------------------------------------------
_EVENT_MAP = {
    FileCreatedEvent: "created",
    FileModifiedEvent: "modified",
    FileDeletedEvent: "deleted",
    FileMovedEvent: "moved",
    FileClosedEvent: "closed",
}

NotifierItem = Union[ChangeEvent, BaseException]


class _ChangeHandler(FileSystemEventHandler):
    """Translates watchdog events into ChangeEvents on the notifier queue."""

    def __init__(self, notifier: "ChangeNotifier") -> None:
        super().__init__()
        self._notifier = notifier

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        kind = _EVENT_MAP.get(type(event))
        if kind is None:
            return

        # For moved/renamed events, use the destination path
        path = getattr(event, "dest_path", None) or event.src_path
        try:
            change = ChangeEvent(timestamp=time.time(), kind=kind, path=os.fsdecode(path))
        except (TypeError, UnicodeDecodeError) as e:
            self._notifier.report_error(e)
            return
        self._notifier.emit(change)


class ChangeNotifier:
    """Watches a fixed set of directories and queues their file changes."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[NotifierItem]" = queue.Queue()
        self._observer = None
        self._handler = _ChangeHandler(self)
        self.targets: list[Path] = []

    # -- producer side (observer threads) ---------------------------------

    def emit(self, event: ChangeEvent) -> None:
        self._queue.put(event)

    def report_error(self, error: BaseException) -> None:
        self._queue.put(error)

    # -- consumer side (dispatch loop) ------------------------------------

    def get(self, timeout: float) -> NotifierItem | None:
        """Return the next event or error, or ``None`` if none arrived in *timeout* seconds."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def start(self, targets: Iterable[Path]) -> None:
        """Watch every directory in *targets*.

        Raises:
            WatchSetupError: If any directory cannot be watched; there is no
                partial operation with an incomplete watch set.
        """
        self._observer = Observer()
        self.targets = list(targets)
        for target in self.targets:
            try:
                self._observer.schedule(self._handler, str(target), recursive=False)
            except OSError as e:
                self._discard_observer()
                raise WatchSetupError(f"Cannot watch {target}: {e}") from e
            logger.debug(f"Watching: {target}")

        self._observer.daemon = True
        try:
            self._observer.start()
        except OSError as e:
            self._discard_observer()
            raise WatchSetupError(f"Cannot start filesystem observer: {e}") from e
        logger.info(f"Notifier started on {len(self.targets)} directories")

    def _discard_observer(self) -> None:
        """Stop the emitters a failed start may have left running."""
        observer, self._observer = self._observer, None
        observer.stop()

    def check_health(self) -> None:
        """Raise ``WatchSetupError`` if the observer stopped delivering events."""
        if self._observer is None:
            return
        if not self._observer.is_alive():
            raise WatchSetupError("Filesystem observer thread stopped unexpectedly")
        for emitter in self._observer.emitters:
            if not emitter.is_alive():
                raise WatchSetupError(f"Watch on {emitter.watch.path} stopped unexpectedly")

    def stop(self) -> None:
        """Stop the observer."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
            logger.info("Notifier stopped.")
