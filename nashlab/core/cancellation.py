"""Routing of ``stop()`` requests to the solves running on a solver instance."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Event, Lock
from typing import Iterator

logger = logging.getLogger(__name__)


class StopSignal:
    """Cancel tokens of every solve currently attached to one solver.

    ``stop()`` sets the token of each running solve. When nothing is running
    the request is held and cancels the next solve to attach.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._active: list[Event] = []
        self._pending = False

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                logger.debug("Stop requested with no solve running; cancelling the next one")
                self._pending = True
                return
            for event in self._active:
                event.set()

    @contextmanager
    def attach(self, cancel_event: Event | None = None) -> Iterator[Event]:
        """Register a solve's cancel token for the duration of the block.

        A fresh token is used when ``cancel_event`` is omitted. A pending stop
        is consumed here and sets the token before the solve starts.
        """
        cancel = cancel_event if cancel_event is not None else Event()
        with self._lock:
            if self._pending:
                cancel.set()
                self._pending = False
            self._active.append(cancel)
        try:
            yield cancel
        finally:
            with self._lock:
                self._active.remove(cancel)
