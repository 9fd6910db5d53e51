"""Command to log in and obtain a Session."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from agriassist.adapters.api_client import AgriAssistApiClient
from agriassist.config import Settings
from agriassist.core.errors import ApiRequestError
from agriassist.schemas.session import Session


class LoginCommand:
    """
    Command to exchange credentials for a bearer token.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        api: Optional[AgriAssistApiClient] = None,
    ) -> None:
        self._owns_api = api is None
        self.api = api or AgriAssistApiClient(settings=settings)
        self.logger = logging.getLogger(__name__)

    def close(self) -> None:
        """Release the HTTP session if this command created the client."""
        if self._owns_api:
            self.api.close()

    def execute(self, email: str, password: str) -> Session:
        """
        Log in with ``email``/``password``.

        Returns:
            Session: user id, token, role and profile of the logged-in user.

        Raises:
            ApiRequestError: wrong credentials, unverified/inactive account,
                transport failure or a response without a usable token.
        """
        result = self.api.login(email.strip().lower(), password)
        if not result.ok:
            raise ApiRequestError(result.error or "Login failed", result.status_code)
        try:
            session = Session.model_validate(result.data)
        except ValidationError as e:
            raise ApiRequestError(
                f"Malformed login response: {e}", result.status_code
            ) from e
        self.logger.info("Logged in as %s (%s)", session.user_id, session.role.value)
        return session
