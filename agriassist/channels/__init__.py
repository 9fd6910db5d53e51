from agriassist.channels.base import ChannelState, PushEventQueue
from agriassist.channels.connection_manager import (
    ConnectionManager,
    build_socketio_client,
)

__all__ = [
    "ChannelState",
    "ConnectionManager",
    "PushEventQueue",
    "build_socketio_client",
]
