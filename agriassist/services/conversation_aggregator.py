"""Groups chat messages into one thread per counterparty."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from agriassist.adapters.api_client import AgriAssistApiClient
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.message import (
    ConversationThread,
    MessageRecord,
    ProductRef,
    RawMessage,
    UserRef,
)
from agriassist.schemas.session import Session

logger = get_logger("conversations")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_message(payload: Any) -> Optional[RawMessage]:
    """Validate a wire message; payloads without populated users are skipped."""
    if isinstance(payload, RawMessage):
        return payload
    try:
        return RawMessage.model_validate(payload)
    except ValidationError as e:
        logger.warning("Skipping malformed message payload: %s", e)
        return None


def _insert_chronologically(
    messages: List[MessageRecord], record: MessageRecord
) -> None:
    """Insert keeping ``created_at`` order; equal timestamps keep arrival order."""
    index = len(messages)
    while index > 0 and messages[index - 1].created_at > record.created_at:
        index -= 1
    messages.insert(index, record)


class ConversationAggregator:
    """
    Per-counterparty conversation threads for one session user.

    Threads are built from ``GET /messages`` and kept current with pushed
    ``receive_message`` events and locally sent messages. A message id is
    stored at most once per thread, whichever source delivers it first.
    """

    def __init__(self, session: Session, api: AgriAssistApiClient) -> None:
        self._session = session
        self._api = api
        self._threads: Dict[str, ConversationThread] = {}
        self._active_id: Optional[str] = None

    @property
    def user_id(self) -> str:
        return self._session.user_id

    def refresh(self) -> bool:
        """Rebuild every thread from REST history. False if the fetch failed."""
        result = self._api.list_messages()
        if not result.ok:
            logger.warning("Error fetching conversations: %s", result.error)
            return False
        if not isinstance(result.data, list):
            logger.warning("Message history is not a list: %r", result.data)
            return False
        self.load_history(result.data)
        return True

    def load_history(self, payloads: Iterable[Any]) -> None:
        threads: Dict[str, ConversationThread] = {}
        for payload in payloads:
            raw = parse_message(payload)
            if raw is None:
                continue
            self._apply(
                raw.to_record(), raw.counterparty(self.user_id), raw.product, threads
            )
        self._threads = threads
        logger.debug("Built %d conversation threads", len(threads))

    def on_pushed(self, payload: Any) -> bool:
        """
        Merge a pushed message. Returns True if a thread changed.

        Messages that do not involve the session user are ignored, and a
        message whose id is already in its thread is not added again.
        """
        raw = parse_message(payload)
        if raw is None:
            return False
        record = raw.to_record()
        if not record.involves(self.user_id):
            logger.debug(
                "Ignoring message %s between %s and %s",
                record.id,
                record.sender_id,
                record.receiver_id,
            )
            return False
        return self._apply(
            record, raw.counterparty(self.user_id), raw.product, self._threads
        )

    def add_local(
        self,
        record: MessageRecord,
        counterparty: Optional[UserRef] = None,
        product: Optional[ProductRef] = None,
    ) -> bool:
        """Add a message this client just sent; deduplicated by id like pushes."""
        return self._apply(record, counterparty, product, self._threads)

    def get_thread(self, counterparty_id: str) -> Optional[ConversationThread]:
        return self._threads.get(counterparty_id)

    def threads(self) -> List[ConversationThread]:
        """Threads with the most recent activity first."""
        return sorted(
            self._threads.values(),
            key=lambda t: t.last_message_time or _EPOCH,
            reverse=True,
        )

    def __len__(self) -> int:
        return len(self._threads)

    @property
    def total_unread(self) -> int:
        return sum(t.unread_count for t in self._threads.values())

    def search(self, query: str) -> List[ConversationThread]:
        """Case-insensitive match on name, email or last message."""
        needle = query.strip().lower()
        if not needle:
            return self.threads()
        return [
            t
            for t in self.threads()
            if any(
                needle in (field or "").lower()
                for field in (t.counterparty_name, t.counterparty_email, t.last_message)
            )
        ]

    def open_thread(self, counterparty_id: str) -> Optional[ConversationThread]:
        """Make ``counterparty_id`` the active chat; the thread may not exist yet."""
        self._active_id = counterparty_id
        return self._threads.get(counterparty_id)

    def close_thread(self) -> None:
        self._active_id = None

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active_thread(self) -> Optional[ConversationThread]:
        if self._active_id is None:
            return None
        return self._threads.get(self._active_id)

    @property
    def active_messages(self) -> List[MessageRecord]:
        thread = self.active_thread
        return list(thread.messages) if thread else []

    def mark_thread_read(self, counterparty_id: str) -> int:
        """Mark inbound messages as read, locally only. Returns how many changed."""
        thread = self._threads.get(counterparty_id)
        if thread is None:
            return 0
        changed = 0
        for index, message in enumerate(thread.messages):
            if message.is_unread_for(self.user_id):
                thread.messages[index] = message.model_copy(update={"is_read": True})
                changed += 1
        return changed

    def reset(self) -> None:
        self._threads = {}
        self._active_id = None

    def _apply(
        self,
        record: MessageRecord,
        counterparty: Optional[UserRef],
        product: Optional[ProductRef],
        threads: Dict[str, ConversationThread],
    ) -> bool:
        counterparty_id = record.counterparty_of(self.user_id)
        if counterparty_id is None:
            return False

        thread = threads.get(counterparty_id)
        if thread is None:
            thread = ConversationThread(
                owner_id=self.user_id,
                counterparty_id=counterparty_id,
                counterparty_name=counterparty.name if counterparty else None,
                counterparty_email=counterparty.email if counterparty else None,
                product_context=product,
            )
            threads[counterparty_id] = thread
        else:
            if counterparty is not None:
                if not thread.counterparty_name:
                    thread.counterparty_name = counterparty.name
                if not thread.counterparty_email:
                    thread.counterparty_email = counterparty.email
            if thread.product_context is None and product is not None:
                thread.product_context = product

        if thread.has_message(record.id):
            return False
        _insert_chronologically(thread.messages, record)
        return True
