"""
Command to send a chat message and show it in the sender's thread right away.

Posts via REST, then adds the server-confirmed record to the aggregator. The
backend also echoes the message to the sender's room; that echo carries the
same id and is dropped by the aggregator's per-thread id check.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from agriassist.adapters.api_client import AgriAssistApiClient
from agriassist.schemas.message import MessageCreate, MessageRecord, RawMessage
from agriassist.schemas.session import Session
from agriassist.services.conversation_aggregator import ConversationAggregator


class SendMessageCommand:
    """
    Command to send an outbound message to one counterparty.
    Keeps the unsent text in ``draft`` when the request fails.
    """

    def __init__(
        self,
        session: Session,
        api: AgriAssistApiClient,
        aggregator: ConversationAggregator,
    ) -> None:
        self.session = session
        self.api = api
        self.aggregator = aggregator
        self.draft = ""
        self.logger = logging.getLogger(__name__)

    def execute(
        self, receiver_id: str, text: str, product_id: Optional[str] = None
    ) -> Optional[MessageRecord]:
        """
        Send ``text`` to ``receiver_id``.

        Args:
            receiver_id: The counterparty's user id.
            text: Message body; blank text is not sent.
            product_id: Product the conversation is about, if any.

        Returns:
            MessageRecord: the server-confirmed message, already in its thread.
            None: blank text, or the request failed (``draft`` keeps the text).
        """
        self.draft = text
        if not text or not text.strip():
            return None

        body = MessageCreate(receiver=receiver_id, text=text, product=product_id)
        result = self.api.send_message(body)
        if not result.ok:
            self.logger.warning(
                "Error sending message to %s: %s", receiver_id, result.error
            )
            return None

        data = result.data
        if not isinstance(data, dict) or not data.get("_id"):
            self.logger.warning("Send response has no message id: %r", data)
            return None

        parsed = _parse_populated(data)
        if parsed is not None:
            record = parsed.to_record()
            self.aggregator.add_local(
                record,
                counterparty=parsed.counterparty(self.session.user_id),
                product=parsed.product,
            )
        else:
            record = self._record_from_ids(data, body)
            if record is None:
                return None
            self.aggregator.add_local(record)

        self.draft = ""
        return record

    def _record_from_ids(
        self, data: dict[str, Any], body: MessageCreate
    ) -> Optional[MessageRecord]:
        """Unpopulated response: server id/timestamp, the rest from the request."""
        fields: dict[str, Any] = {
            "id": str(data["_id"]),
            "sender_id": self.session.user_id,
            "receiver_id": body.receiver,
            "product_id": body.product,
            "text": body.text,
            "is_read": bool(data.get("isRead", False)),
        }
        if data.get("createdAt"):
            fields["created_at"] = data["createdAt"]
        try:
            return MessageRecord.model_validate(fields)
        except ValidationError as e:
            self.logger.warning("Unusable send response %r: %s", data, e)
            return None


def _parse_populated(data: dict[str, Any]) -> Optional[RawMessage]:
    """The send response normally has populated sender/receiver; fall back if not."""
    try:
        return RawMessage.model_validate(data)
    except ValidationError:
        return None
