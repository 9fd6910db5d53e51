"""Notification records as delivered by REST history and the push channel."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from agriassist.utils.timestamps import ensure_utc, utc_now


class NotificationType(str, Enum):
    MESSAGE = "message"
    ORDER = "order"
    SYSTEM = "system"
    SUCCESS = "success"
    REVIEW = "review"


class NotificationRecord(BaseModel):
    """A single notification; identity is ``id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    type: NotificationType = NotificationType.SYSTEM
    title: str = ""
    message: str = ""
    link: Optional[str] = None
    is_read: bool = Field(
        default=False, validation_alias=AliasChoices("isRead", "is_read")
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return str(value) if value is not None else value

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def as_read(self) -> "NotificationRecord":
        """Return a copy flagged as read."""
        return self.model_copy(update={"is_read": True})
