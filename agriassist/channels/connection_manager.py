"""Socket.IO push channel: one live connection per session."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from agriassist.channels.base import ChannelState, PushEventQueue
from agriassist.config import Settings, get_settings
from agriassist.constants.events import (
    EVENT_JOIN,
    EVENT_NOTIFICATION,
    EVENT_RECEIVE_MESSAGE,
    EVENT_STOCK_UPDATED,
)
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.push import PushEvent, PushEventKind
from agriassist.schemas.session import Session

logger = get_logger("connection")

ClientFactory = Callable[[], socketio.Client]

_FORWARDED_EVENTS = {
    EVENT_NOTIFICATION: PushEventKind.NOTIFICATION,
    EVENT_RECEIVE_MESSAGE: PushEventKind.MESSAGE,
    EVENT_STOCK_UPDATED: PushEventKind.STOCK_UPDATED,
}


def build_socketio_client(settings: Settings) -> socketio.Client:
    """Socket.IO client with the library's own exponential reconnect backoff."""
    return socketio.Client(
        reconnection=True,
        reconnection_attempts=settings.socket_reconnection_attempts,
        reconnection_delay=settings.socket_reconnection_delay,
        reconnection_delay_max=settings.socket_reconnection_delay_max,
        logger=False,
    )


class ConnectionManager:
    """
    Owns at most one push connection, bound to one session.

    Socket callbacks run on the library's threads; they only translate
    payloads into ``PushEvent`` objects and put them on the queue. Callbacks
    from a client that is no longer current are ignored, so a closed session
    can never feed events into the next one.
    """

    def __init__(
        self,
        events: PushEventQueue,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._events = events
        self._settings = settings or get_settings()
        self._client_factory = client_factory or (
            lambda: build_socketio_client(self._settings)
        )
        self._lock = threading.Lock()
        self._client: Optional[socketio.Client] = None
        self._session: Optional[Session] = None
        self._state = ChannelState.DISCONNECTED
        self._has_connected = False

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def open(self, session: Session) -> None:
        """Connect for ``session``. A previous connection is closed first."""
        if self._client is not None:
            self.close()

        client = self._client_factory()
        with self._lock:
            self._client = client
            self._session = session
            self._has_connected = False
            self._state = ChannelState.CONNECTING
        self._register_handlers(client)
        client.start_background_task(self._connect, client, session)

    def _connect(self, client: socketio.Client, session: Session) -> None:
        """
        First connection attempt, run on a library thread.

        ``retry=True`` hands a failed first attempt to the same backoff the
        library uses after a dropped connection. ``ConnectionError`` only
        arrives once every allowed attempt has failed.
        """
        try:
            client.connect(
                self._settings.socket_url,
                auth={"token": session.token},
                wait_timeout=self._settings.socket_wait_timeout,
                retry=True,
            )
        except SocketConnectionError as e:
            logger.warning(
                "Push channel unavailable for user %s: %s", session.user_id, e
            )
            with self._lock:
                if self._client is client:
                    self._state = ChannelState.DISCONNECTED

    def close(self) -> None:
        """Tear down the active connection. No-op when nothing is open."""
        with self._lock:
            client = self._client
            self._client = None
            self._session = None
            self._state = ChannelState.DISCONNECTED
        if client is None:
            return
        client.disconnect()
        logger.info("Push channel closed")

    def reconfigure(self, session: Session) -> None:
        """Close-then-open for a changed identity."""
        self.close()
        self.open(session)

    def _is_current(self, client: socketio.Client) -> bool:
        return self._client is client

    def _register_handlers(self, client: socketio.Client) -> None:
        client.on("connect", lambda: self._on_connect(client))
        client.on("disconnect", lambda *args: self._on_disconnect(client))
        client.on(
            "connect_error", lambda data=None: self._on_connect_error(client, data)
        )
        for event_name, kind in _FORWARDED_EVENTS.items():
            client.on(event_name, self._forwarder(client, kind))

    def _forwarder(
        self, client: socketio.Client, kind: PushEventKind
    ) -> Callable[[Any], None]:
        def forward(payload: Any = None) -> None:
            if not self._is_current(client):
                return
            self._events.put(PushEvent(kind=kind, payload=payload))

        return forward

    def _on_connect(self, client: socketio.Client) -> None:
        with self._lock:
            stale = not self._is_current(client) or self._session is None
            if not stale:
                session = self._session
                reconnected = self._has_connected
                self._has_connected = True
                self._state = ChannelState.CONNECTED
        if stale:
            # a closed client whose retry loop got through after all
            client.disconnect()
            return
        client.emit(EVENT_JOIN, session.user_id)
        logger.info("Push channel connected, joined room %s", session.user_id)
        if reconnected and self._settings.resync_on_reconnect:
            self._events.put(PushEvent(kind=PushEventKind.RESYNC))

    def _on_disconnect(self, client: socketio.Client) -> None:
        with self._lock:
            if not self._is_current(client):
                return
            self._state = ChannelState.DISCONNECTED
        logger.info("Push channel disconnected")

    def _on_connect_error(self, client: socketio.Client, data: Any) -> None:
        if self._is_current(client):
            logger.warning("Push channel connect error: %s", data)
