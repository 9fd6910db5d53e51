from agriassist.services.conversation_aggregator import ConversationAggregator
from agriassist.services.notification_store import NotificationStore
from agriassist.services.stock_level_service import StockLevelService

__all__ = [
    "ConversationAggregator",
    "NotificationStore",
    "StockLevelService",
]
