from agriassist.schemas.message import (
    ConversationThread,
    MessageCreate,
    MessageRecord,
    ProductRef,
    RawMessage,
    UserRef,
)
from agriassist.schemas.notification import NotificationRecord, NotificationType
from agriassist.schemas.push import PushEvent, PushEventKind, StockUpdate
from agriassist.schemas.session import Role, Session

__all__ = [
    "ConversationThread",
    "MessageCreate",
    "MessageRecord",
    "NotificationRecord",
    "NotificationType",
    "ProductRef",
    "PushEvent",
    "PushEventKind",
    "RawMessage",
    "Role",
    "Session",
    "StockUpdate",
    "UserRef",
]
