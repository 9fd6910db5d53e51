"""Tests for EventRouter."""

from unittest.mock import MagicMock

import pytest

from agriassist.adapters.api_client import ApiResult
from agriassist.channels.base import PushEventQueue
from agriassist.core.router import EventRouter
from agriassist.schemas.push import PushEvent, PushEventKind
from agriassist.services.conversation_aggregator import ConversationAggregator
from agriassist.services.notification_store import NotificationStore
from tests.fixtures.message_fixtures import user_payload


@pytest.fixture
def events():
    return PushEventQueue(10)


@pytest.fixture
def notifications(mock_api, test_settings):
    return NotificationStore(mock_api, settings=test_settings)


@pytest.fixture
def conversations(buyer_session, mock_api):
    return ConversationAggregator(buyer_session, mock_api)


@pytest.fixture
def router(events, notifications, conversations):
    return EventRouter(events, notifications, conversations)


def test_drain_applies_each_kind(
    router,
    events,
    notifications,
    conversations,
    buyer_session,
    farmer_profile,
    make_message_payload,
    make_notification_payload,
):
    message = make_message_payload(farmer_profile, user_payload(buyer_session))
    events.put(PushEvent(PushEventKind.NOTIFICATION, make_notification_payload()))
    events.put(PushEvent(PushEventKind.MESSAGE, message))
    stock = {"productId": "p1", "newStock": 4}
    events.put(PushEvent(PushEventKind.STOCK_UPDATED, stock))

    assert router.drain() == 3

    assert len(notifications) == 1
    assert notifications.unread_count == 1
    assert conversations.get_thread(farmer_profile["_id"]).has_message(message["_id"])
    assert router.stock.get("p1") == 4
    assert len(events) == 0


def test_listeners_called_after_store_update(
    router, events, notifications, make_notification_payload
):
    seen = []
    router.on_notification.append(lambda record: seen.append(len(notifications)))
    events.put(PushEvent(PushEventKind.NOTIFICATION, make_notification_payload()))

    router.drain()

    assert seen == [1]


def test_duplicate_message_does_not_notify_twice(
    router, events, buyer_session, farmer_profile, make_message_payload
):
    listener = MagicMock()
    router.on_message.append(listener)
    message = make_message_payload(farmer_profile, user_payload(buyer_session))
    events.put(PushEvent(PushEventKind.MESSAGE, message))
    events.put(PushEvent(PushEventKind.MESSAGE, dict(message)))

    router.drain()

    listener.assert_called_once()


def test_malformed_payloads_are_skipped(router, events, notifications):
    events.put(PushEvent(PushEventKind.NOTIFICATION, {"title": "no id"}))
    events.put(PushEvent(PushEventKind.MESSAGE, {"_id": "m1", "sender": "x"}))
    events.put(PushEvent(PushEventKind.STOCK_UPDATED, "nonsense"))

    assert router.drain() == 3
    assert len(notifications) == 0


def test_failing_listener_does_not_stop_drain(
    router, events, notifications, make_notification_payload
):
    router.on_notification.append(MagicMock(side_effect=RuntimeError("ui gone")))
    ok = MagicMock()
    router.on_notification.append(ok)
    events.put(PushEvent(PushEventKind.NOTIFICATION, make_notification_payload()))
    events.put(PushEvent(PushEventKind.NOTIFICATION, make_notification_payload()))

    assert router.drain() == 2

    assert ok.call_count == 2
    assert len(notifications) == 2


def test_resync_reloads_history(
    router,
    events,
    mock_api,
    notifications,
    conversations,
    buyer_session,
    farmer_profile,
    make_message_payload,
    make_notification_payload,
):
    mock_api.list_notifications.return_value = ApiResult(
        data=[make_notification_payload()]
    )
    mock_api.list_messages.return_value = ApiResult(
        data=[make_message_payload(farmer_profile, user_payload(buyer_session))]
    )
    events.put(PushEvent(PushEventKind.RESYNC))

    router.drain()

    mock_api.list_notifications.assert_called_once()
    mock_api.list_messages.assert_called_once()
    assert len(notifications) == 1
    assert len(conversations) == 1


def test_max_events_limits_drain(router, events, make_notification_payload):
    for _ in range(3):
        events.put(PushEvent(PushEventKind.NOTIFICATION, make_notification_payload()))
    assert router.drain(max_events=2) == 2
    assert len(events) == 1


def test_drain_on_empty_queue_returns_zero(router):
    assert router.drain() == 0
    assert router.drain(timeout=0.01) == 0
