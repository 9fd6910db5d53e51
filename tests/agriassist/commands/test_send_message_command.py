"""Tests for SendMessageCommand."""

import pytest

from agriassist.adapters.api_client import ApiResult
from agriassist.commands.send_message_command import SendMessageCommand
from agriassist.schemas.message import MessageCreate
from agriassist.services.conversation_aggregator import ConversationAggregator
from tests.fixtures.message_fixtures import user_payload


@pytest.fixture
def aggregator(buyer_session, mock_api):
    return ConversationAggregator(buyer_session, mock_api)


@pytest.fixture
def command(buyer_session, mock_api, aggregator):
    return SendMessageCommand(buyer_session, mock_api, aggregator)


def test_blank_text_sends_nothing(command, mock_api):
    assert command.execute("seller-1", "   ") is None
    assert command.execute("seller-1", "") is None
    mock_api.send_message.assert_not_called()


def test_success_adds_record_and_clears_draft(
    command, mock_api, aggregator, buyer_session, farmer_profile, make_message_payload
):
    sent = make_message_payload(
        user_payload(buyer_session), farmer_profile, text="Is the maize dry?"
    )
    mock_api.send_message.return_value = ApiResult(data=sent, status_code=201)

    record = command.execute(farmer_profile["_id"], "Is the maize dry?", "p1")

    mock_api.send_message.assert_called_once_with(
        MessageCreate(
            receiver=farmer_profile["_id"], text="Is the maize dry?", product="p1"
        )
    )
    assert record.id == sent["_id"]
    assert command.draft == ""
    thread = aggregator.get_thread(farmer_profile["_id"])
    assert [m.id for m in thread.messages] == [sent["_id"]]
    assert thread.counterparty_name == farmer_profile["name"]


def test_echo_after_send_is_not_duplicated(
    command, mock_api, aggregator, buyer_session, farmer_profile, make_message_payload
):
    sent = make_message_payload(user_payload(buyer_session), farmer_profile)
    mock_api.send_message.return_value = ApiResult(data=sent, status_code=201)

    command.execute(farmer_profile["_id"], sent["text"])
    aggregator.on_pushed(dict(sent))

    assert len(aggregator.get_thread(farmer_profile["_id"]).messages) == 1


def test_failure_keeps_draft_and_state(command, mock_api, aggregator):
    mock_api.send_message.return_value = ApiResult(
        error="Server error", status_code=500
    )

    assert command.execute("seller-1", "hello there") is None

    assert command.draft == "hello there"
    assert len(aggregator) == 0


def test_unpopulated_response_uses_server_id_and_time(
    command, mock_api, aggregator, buyer_session
):
    mock_api.send_message.return_value = ApiResult(
        data={
            "_id": "m-42",
            "sender": buyer_session.user_id,
            "receiver": "seller-1",
            "text": "hi",
            "createdAt": "2024-05-01T10:00:00Z",
        },
        status_code=201,
    )

    record = command.execute("seller-1", "hi")

    assert record.id == "m-42"
    assert record.sender_id == buyer_session.user_id
    assert record.created_at.year == 2024
    assert aggregator.get_thread("seller-1").has_message("m-42")


def test_response_without_id_is_rejected(command, mock_api, aggregator):
    mock_api.send_message.return_value = ApiResult(data={}, status_code=201)
    assert command.execute("seller-1", "hi") is None
    assert command.draft == "hi"
    assert len(aggregator) == 0
