"""Wire names shared with the AgriAssist backend."""

# Push channel events (server -> client)
EVENT_NOTIFICATION = "notification"
EVENT_RECEIVE_MESSAGE = "receive_message"
EVENT_STOCK_UPDATED = "stockUpdated"

# Push channel events (client -> server)
EVENT_JOIN = "join"

# REST paths, relative to the API base URL
AUTH_LOGIN_PATH = "/auth/login"
NOTIFICATIONS_PATH = "/notifications"
NOTIFICATION_PATH = "/notifications/{notification_id}"
MESSAGES_PATH = "/messages"
