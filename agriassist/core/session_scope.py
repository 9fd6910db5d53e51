"""
Session-scoped client state.

Everything that belongs to a logged-in user (REST client, stores, push
connection) is created by ``start`` and dropped by ``stop``. Switching
identity always closes the old connection before the new one opens, so
events for one user can never land in another user's stores.
"""

from __future__ import annotations

from typing import Optional

from agriassist.adapters.api_client import AgriAssistApiClient
from agriassist.channels.base import ChannelState, PushEventQueue
from agriassist.channels.connection_manager import ClientFactory, ConnectionManager
from agriassist.commands.send_message_command import SendMessageCommand
from agriassist.config import Settings, get_settings
from agriassist.core.router import EventRouter
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.session import Session
from agriassist.services.conversation_aggregator import ConversationAggregator
from agriassist.services.notification_store import NotificationStore
from agriassist.services.stock_level_service import StockLevelService

logger = get_logger("session")


class ClientState:
    """
    Holds the realtime client for at most one session at a time.

    Usage::

        with ClientState() as state:
            state.start(session)
            while running:
                state.drain(timeout=1.0)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.events = PushEventQueue(self.settings.push_queue_size)
        self.stock = StockLevelService()
        self.connection = ConnectionManager(
            self.events, settings=self.settings, client_factory=client_factory
        )
        self.session: Optional[Session] = None
        self.api: Optional[AgriAssistApiClient] = None
        self.notifications: Optional[NotificationStore] = None
        self.conversations: Optional[ConversationAggregator] = None
        self.send_message: Optional[SendMessageCommand] = None
        self.router: Optional[EventRouter] = None

    @property
    def is_active(self) -> bool:
        return self.session is not None

    @property
    def channel_state(self) -> ChannelState:
        return self.connection.state

    def start(self, session: Session) -> None:
        """Bind everything to ``session``; an active session is stopped first."""
        if self.is_active:
            self.stop()

        self.session = session
        self.api = AgriAssistApiClient(session=session, settings=self.settings)
        self.notifications = NotificationStore(self.api, settings=self.settings)
        self.conversations = ConversationAggregator(session, self.api)
        self.send_message = SendMessageCommand(session, self.api, self.conversations)
        self.router = EventRouter(
            self.events, self.notifications, self.conversations, self.stock
        )
        logger.info("Starting realtime client for user %s", session.user_id)

        self.connection.open(session)
        self.notifications.load_history()
        self.conversations.refresh()

    def stop(self) -> None:
        """Close the connection and drop session state. Safe to call twice."""
        self.connection.close()
        self.events.clear()
        if self.api is not None:
            self.api.close()
        if self.session is not None:
            logger.info("Stopped realtime client for user %s", self.session.user_id)
        self.session = None
        self.api = None
        self.notifications = None
        self.conversations = None
        self.send_message = None
        self.router = None
        self.stock.reset()

    def switch(self, session: Session) -> None:
        self.start(session)

    def drain(
        self, timeout: Optional[float] = None, max_events: Optional[int] = None
    ) -> int:
        """Apply queued push events on the calling thread. 0 when stopped."""
        if self.router is None:
            return 0
        return self.router.drain(timeout=timeout, max_events=max_events)

    def __enter__(self) -> "ClientState":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
