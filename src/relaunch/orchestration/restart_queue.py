"""
Restart request queue.

A bounded mailbox of restart tokens between the dispatch loop (producer) and
the process supervisor (single consumer). Only "at least one restart pending"
carries meaning, so the consumer drains everything it finds before acting.
"""

import logging
import queue
from typing import Optional

from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 50

# Opaque restart token
RESTART = object()


class RestartQueue:
    """Bounded, coalescing restart mailbox."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self.maxsize = maxsize
        self.coalesced = 0

    def request_restart(self, timeout: Optional[float] = TimeoutConstants.QUEUE_PUT_TIMEOUT) -> bool:
        """
        Enqueue a restart token.

        Blocks up to *timeout* seconds while the queue is full. A queue that
        stays full already guarantees a pending restart, so the token is then
        folded into the pending ones.

        Returns:
            True if the token was enqueued, False if it was coalesced
        """
        try:
            self._queue.put(RESTART, timeout=timeout)
            return True
        except queue.Full:
            self.coalesced += 1
            logger.debug(f"Restart queue full ({self.maxsize}), request coalesced")
            return False

    def wait_for_request(self, timeout: Optional[float] = None) -> bool:
        """Take one token, waiting up to *timeout* seconds. Returns whether one was taken."""
        try:
            self._queue.get(timeout=timeout)
            return True
        except queue.Empty:
            return False

    def drain(self) -> int:
        """Remove every pending token and return how many there were."""
        drained = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            drained += 1
        if drained:
            logger.debug(f"Coalesced {drained} pending restart requests")
        return drained

    def pending(self) -> int:
        return self._queue.qsize()
