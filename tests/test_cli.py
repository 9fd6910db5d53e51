"""Smoke tests for the command line."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from agriassist.cli import cli
from agriassist.core.errors import ApiRequestError


def test_tail_once_prints_summary(buyer_session):
    state = MagicMock()
    state.__enter__.return_value = state
    state.notifications.__len__.return_value = 2
    state.notifications.unread_count = 1
    state.conversations.__len__.return_value = 0
    state.conversations.threads.return_value = []

    with patch("agriassist.cli.LoginCommand") as login_cls, patch(
        "agriassist.cli.ClientState", return_value=state
    ):
        login_cls.return_value.execute.return_value = buyer_session
        result = CliRunner().invoke(
            cli, ["tail", "--email", "a@example.com", "--password", "x", "--once"]
        )

    assert result.exit_code == 0, result.output
    assert "2 notifications (1 unread), 0 conversations" in result.output
    state.start.assert_called_once_with(buyer_session)
    state.drain.assert_not_called()
    login_cls.return_value.close.assert_called_once()


def test_tail_login_failure_exits_nonzero():
    with patch("agriassist.cli.LoginCommand") as login_cls:
        login_cls.return_value.execute.side_effect = ApiRequestError(
            "Invalid email or password", 401
        )
        result = CliRunner().invoke(
            cli, ["tail", "--email", "a@example.com", "--password", "bad"]
        )

    assert result.exit_code == 1
    assert "Invalid email or password" in result.output
    login_cls.return_value.close.assert_called_once()
