from __future__ import annotations

import queue
import threading
from enum import Enum
from typing import Optional

from agriassist.infra.logging_config import get_logger
from agriassist.schemas.push import PushEvent, PushEventKind

logger = get_logger("channels")


class ChannelState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class PushEventQueue:
    """
    Bounded hand-off between the socket library's threads and the consumer.

    Producers only ``put``; the single consumer ``get``s and applies events,
    so stores never see concurrent writers. When the queue is full the event
    is dropped and a RESYNC is handed out once the backlog is drained, so the
    consumer can recover what was lost from REST history.
    """

    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: "queue.Queue[PushEvent]" = queue.Queue(maxsize=maxsize)
        self._overflowed = threading.Event()

    @property
    def overflowed(self) -> bool:
        return self._overflowed.is_set()

    def put(self, event: PushEvent) -> bool:
        """Enqueue without blocking. Returns False if the event was dropped."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(
                "Push queue full (%d events), dropping %s event",
                self._queue.maxsize,
                event.kind.value,
            )
            self._overflowed.set()
            return False
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[PushEvent]:
        """Next event, a RESYNC after an overflow, or None if nothing arrives."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            pass
        if self._overflowed.is_set():
            self._overflowed.clear()
            return PushEvent(kind=PushEventKind.RESYNC)
        if not timeout:
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def clear(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        self._overflowed.clear()

    def __len__(self) -> int:
        return self._queue.qsize()
