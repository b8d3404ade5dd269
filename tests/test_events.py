"""
Tests for the Event System (Observer Pattern)
"""

from datetime import datetime
from unittest.mock import Mock

from atm_core.events import SessionEvent, EventPayload, EventDispatcher


class TestEventPayload:
    """Test EventPayload creation"""

    def test_event_payload_creation(self):
        event = EventPayload(
            event_type=SessionEvent.LOGGED_IN,
            session_id="teller-1",
            data={"identity": "alice"}
        )

        assert event.event_type == SessionEvent.LOGGED_IN
        assert event.session_id == "teller-1"
        assert event.data["identity"] == "alice"
        assert isinstance(event.timestamp, datetime)
        assert len(event.event_id) > 0

    def test_event_ids_are_unique(self):
        first = EventPayload(SessionEvent.STATE_CHANGED, "teller-1", {})
        second = EventPayload(SessionEvent.STATE_CHANGED, "teller-1", {})
        assert first.event_id != second.event_id


class TestEventDispatcher:
    """Test the event dispatcher"""

    def test_subscribe_and_publish(self):
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe(SessionEvent.LOGGED_IN, handler)

        event = EventPayload(SessionEvent.LOGGED_IN, "teller-1", {})
        dispatcher.publish(event)

        handler.assert_called_once_with(event)

    def test_only_matching_handlers_called(self):
        dispatcher = EventDispatcher()
        login_handler = Mock()
        logout_handler = Mock()
        dispatcher.subscribe(SessionEvent.LOGGED_IN, login_handler)
        dispatcher.subscribe(SessionEvent.LOGGED_OUT, logout_handler)

        event = EventPayload(SessionEvent.LOGGED_OUT, "teller-1", {})
        dispatcher.publish(event)

        login_handler.assert_not_called()
        logout_handler.assert_called_once_with(event)

    def test_handlers_called_in_subscription_order(self):
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe(SessionEvent.DARK_MODE_CHANGED, lambda e: calls.append("first"))
        dispatcher.subscribe(SessionEvent.DARK_MODE_CHANGED, lambda e: calls.append("second"))

        dispatcher.publish(EventPayload(SessionEvent.DARK_MODE_CHANGED, "teller-1", {}))
        assert calls == ["first", "second"]

    def test_publish_without_subscribers(self):
        EventDispatcher().publish(EventPayload(SessionEvent.ACTION_REJECTED, "teller-1", {}))

    def test_unsubscribe_works(self):
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe(SessionEvent.LOGGED_IN, handler)
        dispatcher.unsubscribe(SessionEvent.LOGGED_IN, handler)
        # Unsubscribing twice only warns
        dispatcher.unsubscribe(SessionEvent.LOGGED_IN, handler)

        dispatcher.publish(EventPayload(SessionEvent.LOGGED_IN, "teller-1", {}))
        handler.assert_not_called()

    def test_handler_exceptions_dont_break_publisher(self):
        dispatcher = EventDispatcher()
        failing_handler = Mock(side_effect=RuntimeError("Handler error"))
        working_handler = Mock()
        dispatcher.subscribe(SessionEvent.LOGGED_IN, failing_handler)
        dispatcher.subscribe(SessionEvent.LOGGED_IN, working_handler)

        dispatcher.publish(EventPayload(SessionEvent.LOGGED_IN, "teller-1", {}))

        failing_handler.assert_called_once()
        working_handler.assert_called_once()
