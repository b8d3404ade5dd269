"""
Event System Module

Publish/subscribe dispatcher for session events. The session host publishes
after a transition has been committed; subscribers such as the preference
cache react without the state machine knowing about them.
"""

from enum import Enum
from typing import Callable, Dict, List, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid
import logging
from threading import RLock


class SessionEvent(Enum):
    """Events that can occur during a teller session"""

    STATE_CHANGED = "session.state_changed"
    LOGGED_IN = "session.logged_in"
    LOGGED_OUT = "session.logged_out"
    DARK_MODE_CHANGED = "session.dark_mode_changed"
    ACTION_REJECTED = "session.action_rejected"


@dataclass
class EventPayload:
    """Payload for session events"""
    event_type: SessionEvent
    session_id: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__name__", repr(handler))


class EventDispatcher:
    """Central event dispatcher: publish/subscribe pattern"""

    def __init__(self):
        self._handlers: Dict[SessionEvent, List[Callable]] = {}
        self._lock = RLock()
        self.logger = logging.getLogger("atm.events")

    def subscribe(self, event_type: SessionEvent, handler: Callable) -> None:
        """Subscribe to a specific event type"""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {_handler_name(handler)} to {event_type.value}")

    def unsubscribe(self, event_type: SessionEvent, handler: Callable) -> None:
        """Unsubscribe from a specific event type"""
        with self._lock:
            try:
                self._handlers.get(event_type, []).remove(handler)
            except ValueError:
                self.logger.warning(f"Handler {_handler_name(handler)} was not subscribed to {event_type.value}")

    def publish(self, event: EventPayload) -> None:
        """Publish event to all subscribers"""
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, []))

        self.logger.debug(f"Publishing event {event.event_type.value} for session {event.session_id}")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # A failing subscriber must not undo a committed transition
                self.logger.error(
                    f"Error in event handler {_handler_name(handler)} for {event.event_type.value}: {e}"
                )

