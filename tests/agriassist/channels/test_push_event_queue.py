"""Tests for PushEventQueue."""

import threading

import pytest

from agriassist.channels.base import PushEventQueue
from agriassist.schemas.push import PushEvent, PushEventKind


def _event(payload=None):
    return PushEvent(kind=PushEventKind.NOTIFICATION, payload=payload)


def test_rejects_zero_size():
    with pytest.raises(ValueError):
        PushEventQueue(0)


def test_fifo_order():
    events = PushEventQueue(5)
    for i in range(3):
        assert events.put(_event(i))
    assert len(events) == 3
    assert [events.get().payload for _ in range(3)] == [0, 1, 2]
    assert events.get() is None


def test_overflow_drops_and_yields_single_resync_after_backlog():
    events = PushEventQueue(2)
    assert events.put(_event(1))
    assert events.put(_event(2))
    assert events.put(_event(3)) is False
    assert events.put(_event(4)) is False
    assert events.overflowed

    assert events.get().payload == 1
    assert events.get().payload == 2
    resync = events.get()
    assert resync.kind == PushEventKind.RESYNC
    assert not events.overflowed
    assert events.get() is None


def test_get_waits_for_producer_thread():
    events = PushEventQueue(5)
    timer = threading.Timer(0.05, lambda: events.put(_event("late")))
    timer.start()
    try:
        event = events.get(timeout=2.0)
    finally:
        timer.cancel()
    assert event.payload == "late"


def test_get_timeout_returns_none():
    assert PushEventQueue(1).get(timeout=0.01) is None


def test_clear_drops_backlog_and_overflow_flag():
    events = PushEventQueue(1)
    events.put(_event(1))
    events.put(_event(2))
    events.clear()
    assert len(events) == 0
    assert not events.overflowed
    assert events.get() is None
