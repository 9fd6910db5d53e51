"""
Notification store: the single list of notifications shown to a user.

Sources are the REST history (bulk) and pushed ``notification`` events
(single, prepended). Read-state changes are optimistic: the local flip is
kept even when the server call fails. Clearing is the opposite: it only
happens after the server confirms, and failures are raised.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from agriassist.adapters.api_client import AgriAssistApiClient
from agriassist.config import Settings, get_settings
from agriassist.core.errors import ApiRequestError
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.notification import NotificationRecord

logger = get_logger("notifications")


def parse_notification(payload: Any) -> Optional[NotificationRecord]:
    """Validate a wire payload; malformed payloads are logged and skipped."""
    try:
        return NotificationRecord.model_validate(payload)
    except ValidationError as e:
        logger.warning("Skipping malformed notification payload: %s", e)
        return None


def parse_notifications(payloads: Iterable[Any]) -> List[NotificationRecord]:
    records = (parse_notification(p) for p in payloads)
    return [r for r in records if r is not None]


class NotificationStore:
    """Newest-first notifications with an O(1) unread counter."""

    def __init__(
        self, api: AgriAssistApiClient, settings: Optional[Settings] = None
    ) -> None:
        self._api = api
        self._settings = settings or get_settings()
        self._records: List[NotificationRecord] = []
        self._unread = 0

    @property
    def records(self) -> tuple[NotificationRecord, ...]:
        return tuple(self._records)

    @property
    def unread_count(self) -> int:
        return self._unread

    def __len__(self) -> int:
        return len(self._records)

    def get(self, notification_id: str) -> Optional[NotificationRecord]:
        for record in self._records:
            if record.id == notification_id:
                return record
        return None

    def unread(self) -> List[NotificationRecord]:
        return [r for r in self._records if not r.is_read]

    def load_history(self) -> bool:
        """
        Pull ``GET /notifications`` into the store.

        Returns False and leaves the store untouched when the call fails. In
        merge mode, records the history does not know about (typically pushed
        while the request was in flight) are kept, and a record already read
        locally stays read.
        """
        result = self._api.list_notifications()
        if not result.ok:
            logger.warning("Error fetching notifications: %s", result.error)
            return False
        if not isinstance(result.data, list):
            logger.warning("Notification history is not a list: %r", result.data)
            return False

        fetched = parse_notifications(result.data)
        if self._settings.merges_notification_history:
            self._records = self._merge(fetched)
        else:
            self._records = fetched
        self._recount()
        logger.debug("Loaded %d notifications", len(self._records))
        return True

    def on_pushed(self, record: NotificationRecord) -> None:
        """
        Prepend a pushed notification.

        A push for an id already in the store (it was also in the history
        loaded after the channel opened) replaces that record in place. A
        record already read locally stays read.
        """
        for index, existing in enumerate(self._records):
            if existing.id != record.id:
                continue
            if existing.is_read and not record.is_read:
                record = record.as_read()
            if not existing.is_read and record.is_read:
                self._unread -= 1
            self._records[index] = record
            return

        self._records.insert(0, record)
        if not record.is_read:
            self._unread += 1

    def mark_read(self, notification_id: str) -> bool:
        """
        Flip ``notification_id`` to read locally, then confirm remotely.

        Returns True if the record was unread before. A failed PUT is logged
        and the local state is not rolled back.
        """
        was_unread = False
        for index, record in enumerate(self._records):
            if record.id == notification_id:
                if not record.is_read:
                    self._records[index] = record.as_read()
                    self._unread -= 1
                    was_unread = True
                break

        result = self._api.mark_notification_read(notification_id)
        if not result.ok:
            logger.warning(
                "Error marking notification %s as read: %s",
                notification_id,
                result.error,
            )
        return was_unread

    def clear_all(self) -> None:
        """
        Delete every notification server-side, then empty the store.

        Raises:
            ApiRequestError: the DELETE failed; the store is unchanged.
        """
        result = self._api.clear_notifications()
        if not result.ok:
            raise ApiRequestError(
                result.error or "Failed to clear notifications", result.status_code
            )
        self.reset()

    def reset(self) -> None:
        """Forget everything locally (session teardown)."""
        self._records = []
        self._unread = 0

    def _merge(self, fetched: List[NotificationRecord]) -> List[NotificationRecord]:
        local_by_id = {r.id: r for r in self._records}
        merged: List[NotificationRecord] = []
        seen: set[str] = set()
        for record in fetched:
            local = local_by_id.get(record.id)
            if local is not None and local.is_read and not record.is_read:
                record = record.as_read()
            merged.append(record)
            seen.add(record.id)
        for record in self._records:
            if record.id not in seen:
                merged.append(record)
                seen.add(record.id)
        merged.sort(key=lambda r: r.created_at, reverse=True)
        return merged

    def _recount(self) -> None:
        self._unread = sum(1 for r in self._records if not r.is_read)
