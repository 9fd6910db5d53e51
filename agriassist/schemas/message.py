"""
Chat message contracts.

``RawMessage`` is the wire shape (sender/receiver populated as user objects).
It is parsed strictly at the boundary and converted into the flat, immutable
``MessageRecord`` the aggregator works with. ``ConversationThread`` is derived
state and never sent anywhere.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from agriassist.utils.timestamps import ensure_utc, utc_now


def _coerce_id(value: Any) -> Any:
    return str(value) if isinstance(value, (int, str)) else value


class UserRef(BaseModel):
    """Populated user reference (``_id``, ``name``, ``email``)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class ProductRef(BaseModel):
    """Product a conversation started from; bare ids are accepted."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    image: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class MessageRecord(BaseModel):
    """A chat message. Immutable; identity is ``id``."""

    model_config = ConfigDict(frozen=True)

    id: str
    sender_id: str
    receiver_id: str
    product_id: Optional[str] = None
    text: str
    created_at: datetime = Field(default_factory=utc_now)
    is_read: bool = False

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def counterparty_of(self, user_id: str) -> Optional[str]:
        """The other side of the message, or None if ``user_id`` is not a party."""
        if self.sender_id == user_id:
            return self.receiver_id
        if self.receiver_id == user_id:
            return self.sender_id
        return None

    def is_unread_for(self, user_id: str) -> bool:
        return not self.is_read and self.sender_id != user_id


class RawMessage(BaseModel):
    """Message as returned by ``GET/POST /messages`` and ``receive_message``."""

    id: str = Field(min_length=1, validation_alias=AliasChoices("_id", "id"))
    sender: UserRef
    receiver: UserRef
    product: Optional[ProductRef] = None
    text: str
    created_at: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )
    is_read: bool = Field(
        default=False, validation_alias=AliasChoices("isRead", "is_read")
    )

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("product", mode="before")
    @classmethod
    def accept_bare_product_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"_id": value} if value else None
        return value

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def counterparty(self, user_id: str) -> Optional[UserRef]:
        """Profile of whichever side is not ``user_id``."""
        if self.sender.id == user_id:
            return self.receiver
        if self.receiver.id == user_id:
            return self.sender
        return None

    def to_record(self) -> MessageRecord:
        return MessageRecord(
            id=self.id,
            sender_id=self.sender.id,
            receiver_id=self.receiver.id,
            product_id=self.product.id if self.product else None,
            text=self.text,
            created_at=self.created_at,
            is_read=self.is_read,
        )


class MessageCreate(BaseModel):
    """Body of ``POST /messages``."""

    receiver: str
    text: str
    product: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass
class ConversationThread:
    """All messages between the session user (``owner_id``) and one counterparty."""

    owner_id: str
    counterparty_id: str
    counterparty_name: Optional[str] = None
    counterparty_email: Optional[str] = None
    product_context: Optional[ProductRef] = None
    messages: List[MessageRecord] = field(default_factory=list)  # oldest first

    @property
    def unread_count(self) -> int:
        return sum(1 for m in self.messages if m.is_unread_for(self.owner_id))

    @property
    def last(self) -> Optional[MessageRecord]:
        return self.messages[-1] if self.messages else None

    @property
    def last_message(self) -> Optional[str]:
        last = self.last
        return last.text if last else None

    @property
    def last_message_time(self) -> Optional[datetime]:
        last = self.last
        return last.created_at if last else None

    @property
    def display_name(self) -> str:
        return self.counterparty_name or self.counterparty_email or "Unknown User"

    def has_message(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages)
