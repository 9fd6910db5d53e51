"""Authenticated identity context for the realtime client."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Roles issued by the backend at login."""

    USER = "user"
    SELLER = "seller"
    ADMIN = "admin"


class Session(BaseModel):
    """Who is logged in. Every store and connection is scoped to one of these."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(validation_alias=AliasChoices("user_id", "_id", "id"))
    token: str = Field(min_length=1)
    role: Role = Role.USER
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, value: Any) -> str:
        # Mongo ObjectIds arrive as strings, but tests and callers may pass ints
        return str(value) if value is not None else value

    def auth_headers(self) -> dict[str, str]:
        """Bearer header expected by every protected REST route."""
        return {"Authorization": f"Bearer {self.token}"}

