"""REST client for the AgriAssist backend (notifications, messages, login)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import requests

from agriassist.config import Settings, get_settings
from agriassist.constants.events import (
    AUTH_LOGIN_PATH,
    MESSAGES_PATH,
    NOTIFICATION_PATH,
    NOTIFICATIONS_PATH,
)
from agriassist.infra.logging_config import get_logger
from agriassist.schemas.message import MessageCreate
from agriassist.schemas.session import Session

logger = get_logger("api_client")

ERROR_BODY_PREVIEW = 500


@dataclass
class ApiResult:
    """Result of a REST call. Exactly one of ``data``/``error`` is meaningful."""

    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AgriAssistApiClient:
    """
    Thin wrapper over the ``/api`` routes.

    Never raises for transport or HTTP failures: every call returns an
    ``ApiResult`` and the caller decides whether a failure is logged or raised.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        settings: Optional[Settings] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._http = http or requests.Session()

    @property
    def base_url(self) -> str:
        return self._settings.api_base_url.rstrip("/")

    def close(self) -> None:
        self._http.close()

    def login(self, email: str, password: str) -> ApiResult:
        return self._request(
            "POST",
            AUTH_LOGIN_PATH,
            json={"email": email, "password": password},
            authenticated=False,
        )

    def list_notifications(self) -> ApiResult:
        return self._request("GET", NOTIFICATIONS_PATH)

    def mark_notification_read(self, notification_id: str) -> ApiResult:
        return self._request(
            "PUT", NOTIFICATION_PATH.format(notification_id=notification_id)
        )

    def clear_notifications(self) -> ApiResult:
        return self._request("DELETE", NOTIFICATIONS_PATH)

    def list_messages(self) -> ApiResult:
        return self._request("GET", MESSAGES_PATH)

    def send_message(self, body: MessageCreate) -> ApiResult:
        return self._request("POST", MESSAGES_PATH, json=body.to_payload())

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if authenticated:
            if self._session is None:
                raise ValueError("An authenticated session is required for this call")
            headers.update(self._session.auth_headers())
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> ApiResult:
        url = f"{self.base_url}{path}"
        headers = self._headers(authenticated)
        logger.debug("%s %s", method, url)

        try:
            resp = self._http.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.RequestException as e:
            return ApiResult(error=str(e))

        try:
            body = resp.json() if resp.content else {}
        except ValueError as e:
            if resp.status_code >= 400:
                return ApiResult(
                    error=_error_preview(resp), status_code=resp.status_code
                )
            return ApiResult(error=f"Invalid JSON: {e}", status_code=resp.status_code)

        if not isinstance(body, dict):
            return ApiResult(
                error="Unexpected response body", status_code=resp.status_code
            )

        if resp.status_code >= 400 or body.get("success") is False:
            message = body.get("message") or _error_preview(resp)
            return ApiResult(error=message, status_code=resp.status_code)

        return ApiResult(data=body.get("data"), status_code=resp.status_code)


def _error_preview(resp: requests.Response) -> str:
    text = resp.text[:ERROR_BODY_PREVIEW] if resp.text else "no body"
    return f"HTTP {resp.status_code}: {text}"
