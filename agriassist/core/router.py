from __future__ import annotations

from typing import Any, Callable, List, Optional

from agriassist.channels.base import PushEventQueue
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.message import RawMessage
from agriassist.schemas.notification import NotificationRecord
from agriassist.schemas.push import PushEvent, PushEventKind, StockUpdate
from agriassist.services.conversation_aggregator import (
    ConversationAggregator,
    parse_message,
)
from agriassist.services.notification_store import (
    NotificationStore,
    parse_notification,
)
from agriassist.services.stock_level_service import StockLevelService

logger = get_logger("router")

NotificationListener = Callable[[NotificationRecord], Any]
MessageListener = Callable[[RawMessage], Any]
StockListener = Callable[[StockUpdate], Any]


class EventRouter:
    """
    Applies queued push events to the stores, on the thread that drains.

    Listeners are called after the store has been updated. A listener that
    raises is logged and does not stop the drain.
    """

    def __init__(
        self,
        events: PushEventQueue,
        notifications: NotificationStore,
        conversations: ConversationAggregator,
        stock: Optional[StockLevelService] = None,
    ) -> None:
        self._events = events
        self._notifications = notifications
        self._conversations = conversations
        self._stock = stock or StockLevelService()
        self.on_notification: List[NotificationListener] = []
        self.on_message: List[MessageListener] = []
        self.on_stock_changed: List[StockListener] = []

    @property
    def stock(self) -> StockLevelService:
        return self._stock

    def drain(
        self, timeout: Optional[float] = None, max_events: Optional[int] = None
    ) -> int:
        """
        Apply queued events until the queue is empty.

        ``timeout`` only applies to the first event: the call waits that long
        for something to arrive, then drains whatever is queued without
        waiting again. Returns the number of events applied.
        """
        applied = 0
        wait = timeout
        while max_events is None or applied < max_events:
            event = self._events.get(timeout=wait)
            if event is None:
                break
            wait = None
            self.dispatch(event)
            applied += 1
        return applied

    def dispatch(self, event: PushEvent) -> None:
        if event.kind is PushEventKind.NOTIFICATION:
            self._apply_notification(event.payload)
        elif event.kind is PushEventKind.MESSAGE:
            self._apply_message(event.payload)
        elif event.kind is PushEventKind.STOCK_UPDATED:
            self._apply_stock(event.payload)
        elif event.kind is PushEventKind.RESYNC:
            self.resync()
        else:
            logger.warning("Unknown push event kind: %s", event.kind)

    def resync(self) -> None:
        """Reload history after a reconnect or a dropped push."""
        logger.info("Resyncing notifications and conversations from history")
        self._notifications.load_history()
        self._conversations.refresh()

    def _apply_notification(self, payload: Any) -> None:
        record = parse_notification(payload)
        if record is None:
            return
        self._notifications.on_pushed(record)
        self._notify(self.on_notification, record)

    def _apply_message(self, payload: Any) -> None:
        raw = parse_message(payload)
        if raw is None:
            return
        if self._conversations.on_pushed(raw):
            self._notify(self.on_message, raw)

    def _apply_stock(self, payload: Any) -> None:
        update = self._stock.apply(payload)
        if update is not None:
            self._notify(self.on_stock_changed, update)

    def _notify(self, listeners: List[Callable[[Any], Any]], item: Any) -> None:
        for listener in list(listeners):
            try:
                listener(item)
            except Exception:
                logger.exception("Push listener %r failed", listener)
