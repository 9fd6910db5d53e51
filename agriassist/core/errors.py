"""Errors surfaced to callers of the realtime client."""

from __future__ import annotations

from typing import Optional


class ApiRequestError(RuntimeError):
    """A REST call failed and the operation does not swallow failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"
