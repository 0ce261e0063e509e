"""Cooperative pause point for chunk uploads."""

import logging
import threading
from typing import List, Optional

from .exceptions import UploadAbortedError

logger = logging.getLogger(__name__)


class PauseGate:
    """A paused flag plus the waiters blocked on it.

    A paused gate blocks callers of ``check_and_wait`` until ``unpause``
    releases them all. Without an ``abort`` event a gate that is never
    unpaused keeps its waiters blocked forever.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paused = False
        self._waiters: List[threading.Event] = []

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def waiting(self) -> int:
        """Number of callers currently blocked."""
        with self._lock:
            return len(self._waiters)

    def pause(self) -> None:
        with self._lock:
            self._paused = True

    def unpause(self) -> None:
        """Clear the flag and release every pending waiter once."""
        with self._lock:
            self._paused = False
            waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            waiter.set()
        if waiters:
            logger.debug(f"Released {len(waiters)} paused waiters")

    def check_and_wait(self, abort: Optional[threading.Event] = None) -> None:
        """Return at once if not paused, otherwise block until unpaused.

        Args:
            abort: Optional event that abandons the wait when set

        Raises:
            UploadAbortedError: If ``abort`` is set while waiting
        """
        with self._lock:
            if not self._paused:
                return
            waiter = threading.Event()
            self._waiters.append(waiter)

        if abort is None:
            waiter.wait()
            return

        # Poll both events; threading has no native wait-on-many
        while not waiter.wait(0.05):
            if abort.is_set():
                with self._lock:
                    if waiter in self._waiters:
                        self._waiters.remove(waiter)
                raise UploadAbortedError()
