"""Tests for LoginCommand."""

from unittest.mock import MagicMock, patch

import pytest

from agriassist.adapters.api_client import AgriAssistApiClient, ApiResult
from agriassist.commands.login_command import LoginCommand
from agriassist.core.errors import ApiRequestError
from agriassist.schemas.session import Role


@pytest.fixture
def api():
    return MagicMock(spec=AgriAssistApiClient)


def test_login_returns_session(api, faker):
    token = faker.sha256()
    api.login.return_value = ApiResult(
        data={
            "_id": "u1",
            "name": "Ana",
            "email": "ana@example.com",
            "role": "seller",
            "isVerified": True,
            "token": token,
        },
        status_code=200,
    )

    session = LoginCommand(api=api).execute(" Ana@Example.com ", "secret")

    api.login.assert_called_once_with("ana@example.com", "secret")
    assert session.user_id == "u1"
    assert session.role == Role.SELLER
    assert session.token == token


def test_wrong_credentials_raise(api):
    api.login.return_value = ApiResult(
        error="Invalid email or password", status_code=401
    )
    with pytest.raises(ApiRequestError) as exc_info:
        LoginCommand(api=api).execute("a@example.com", "nope")
    assert exc_info.value.status_code == 401
    assert str(exc_info.value) == "HTTP 401: Invalid email or password"


def test_response_without_token_raises(api):
    api.login.return_value = ApiResult(data={"_id": "u1"}, status_code=200)
    with pytest.raises(ApiRequestError):
        LoginCommand(api=api).execute("a@example.com", "secret")


def test_close_releases_owned_client(test_settings):
    with patch("agriassist.commands.login_command.AgriAssistApiClient") as api_cls:
        command = LoginCommand(settings=test_settings)
        command.close()
    api_cls.return_value.close.assert_called_once()


def test_close_leaves_injected_client_open(api):
    LoginCommand(api=api).close()
    api.close.assert_not_called()
