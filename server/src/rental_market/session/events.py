"""In-memory pub/sub for session snapshots."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from rental_market.models.session import SessionSnapshot

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


class SnapshotBus:
    """Broadcasts session snapshots to queue subscribers and listeners.

    Late joiners receive the latest snapshot before live updates. Once the
    bus is closed every queue gets a final ``None``.
    """

    def __init__(self, initial: SessionSnapshot, maxsize: int = 100) -> None:
        self._latest = initial
        self._maxsize = maxsize
        self._subscribers: list[asyncio.Queue[SessionSnapshot | None]] = []
        self._listeners: list[SnapshotListener] = []
        self._closed = False

    @property
    def latest(self) -> SessionSnapshot:
        return self._latest

    def publish(self, snapshot: SessionSnapshot) -> None:
        """Record ``snapshot`` as latest and push it to everyone (non-blocking)."""
        self._latest = snapshot

        for queue in self._subscribers:
            _put_latest(queue, snapshot)

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Session listener {listener!r} failed")

    def subscribe(self) -> asyncio.Queue[SessionSnapshot | None]:
        """Return a queue pre-populated with the latest snapshot."""
        queue: asyncio.Queue[SessionSnapshot | None] = asyncio.Queue(maxsize=self._maxsize)
        queue.put_nowait(self._latest)
        if self._closed:
            queue.put_nowait(None)
        else:
            self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionSnapshot | None]) -> None:
        """Remove a subscriber queue. Idempotent."""
        try:
            self._subscribers.remove(queue)
        except ValueError:
            pass

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a synchronous listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _remove

    def close(self) -> None:
        """End every subscriber stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        for queue in self._subscribers:
            _put_latest(queue, None)
        self._subscribers.clear()


def _put_latest(
    queue: asyncio.Queue[SessionSnapshot | None],
    item: SessionSnapshot | None,
) -> None:
    try:
        queue.put_nowait(item)
    except asyncio.QueueFull:
        # Slow consumer: keep only the newest item
        _drain(queue)
        queue.put_nowait(item)


def _drain(queue: asyncio.Queue[SessionSnapshot | None]) -> None:
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return
