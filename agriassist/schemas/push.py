"""Envelopes for events arriving over the push channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from agriassist.constants.events import (
    EVENT_NOTIFICATION,
    EVENT_RECEIVE_MESSAGE,
    EVENT_STOCK_UPDATED,
)
from agriassist.utils.timestamps import utc_now


class PushEventKind(str, Enum):
    """Kinds of queued events. RESYNC is produced locally, never by the server."""

    NOTIFICATION = EVENT_NOTIFICATION
    MESSAGE = EVENT_RECEIVE_MESSAGE
    STOCK_UPDATED = EVENT_STOCK_UPDATED
    RESYNC = "resync"


@dataclass(frozen=True)
class PushEvent:
    kind: PushEventKind
    payload: Any = None
    received_at: datetime = field(default_factory=utc_now)


class StockUpdate(BaseModel):
    """Payload of ``stockUpdated`` (broadcast after a paid order reduces stock)."""

    product_id: str = Field(validation_alias=AliasChoices("productId", "product_id"))
    new_stock: int = Field(validation_alias=AliasChoices("newStock", "new_stock"))
    product_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("productName", "product_name")
    )
    previous_stock: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("previousStock", "previous_stock")
    )
    quantity_sold: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("quantitySold", "quantity_sold")
    )

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value
