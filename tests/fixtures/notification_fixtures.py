"""Fixtures for notification payloads."""

from datetime import datetime, timedelta, timezone

import pytest

from tests.fixtures.session_fixtures import object_id


@pytest.fixture(scope="function")
def make_notification_payload(faker):
    """Factory for ``notification`` payloads in the backend's wire shape."""
    start = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    def _make(minutes=0, is_read=False, notification_type="order", **extra):
        payload = {
            "_id": object_id(faker),
            "type": notification_type,
            "title": faker.sentence(nb_words=3),
            "message": faker.sentence(),
            "link": "/orders",
            "isRead": is_read,
            "createdAt": (start + timedelta(minutes=minutes)).isoformat(),
        }
        payload.update(extra)
        return payload

    return _make
