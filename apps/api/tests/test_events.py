"""Tests for the in-process event dispatcher."""
from uuid import uuid4

from core.events import emit, handlers_for, subscribe, unsubscribe


def _event_name():
    # Unique per test so the global registry never leaks between tests.
    return f"test.{uuid4().hex}"


def test_emit_calls_handlers_in_order_with_kwargs():
    name = _event_name()
    calls = []
    subscribe(name, lambda **kw: calls.append(("first", kw)))
    subscribe(name, lambda **kw: calls.append(("second", kw)))

    completed = emit(name, user_id="u1", day="2025-08-26")

    assert completed == 2
    assert [c[0] for c in calls] == ["first", "second"]
    assert calls[0][1] == {"user_id": "u1", "day": "2025-08-26"}


def test_emit_without_subscribers_is_a_noop():
    assert emit(_event_name(), anything=1) == 0


def test_failing_handler_is_logged_and_does_not_stop_others(caplog):
    name = _event_name()
    seen = []

    def broken(**kwargs):
        raise RuntimeError("handler exploded")

    subscribe(name, broken)
    subscribe(name, lambda **kw: seen.append(kw))

    completed = emit(name, value=42)

    assert completed == 1
    assert seen == [{"value": 42}]
    assert "handler exploded" in caplog.text


def test_subscribe_is_idempotent_and_unsubscribe_removes():
    name = _event_name()

    def handler(**kwargs):
        pass

    subscribe(name, handler)
    subscribe(name, handler)
    assert handlers_for(name) == [handler]

    assert unsubscribe(name, handler) is True
    assert unsubscribe(name, handler) is False
    assert handlers_for(name) == []
