"""
Preference Cache Module

Best-effort persistence of the session marker (who is logged in) and the
dark-mode flag. Written after a transition commits, read once when a
session is restored. Storage failures are logged and swallowed here so they
can never disturb the in-memory account state.
"""

import sqlite3
from typing import Any, Dict, NamedTuple, Optional

from .events import EventDispatcher, EventPayload, SessionEvent
from .logging_config import get_logger, log_action
from .storage import StorageInterface

STORAGE_ERRORS = (sqlite3.Error, OSError, ValueError, TypeError)


class StoredPreferences(NamedTuple):
    identity: Optional[str] = None
    dark_mode: bool = False


class PreferenceStore:
    """Reads and writes the preference record"""

    table = "preferences"
    record_id = "session"

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.logger = get_logger("atm.preferences")

    def _read(self) -> StoredPreferences:
        """Read the record; storage errors propagate"""
        record = self.storage.load(self.table, self.record_id)
        if not record:
            return StoredPreferences()

        identity = record.get("user")
        dark_mode = record.get("dark_mode", False)
        if identity is not None and not isinstance(identity, str):
            self.logger.warning("Ignoring malformed user marker in preferences")
            identity = None
        if not isinstance(dark_mode, bool):
            self.logger.warning("Ignoring malformed dark_mode flag in preferences")
            dark_mode = False
        return StoredPreferences(identity=identity, dark_mode=dark_mode)

    def load(self) -> StoredPreferences:
        """Return the cached record, or defaults when missing or unreadable"""
        try:
            return self._read()
        except STORAGE_ERRORS as e:
            log_action(self.logger, "error", f"Could not read preferences: {e}",
                       action="load_preferences")
            return StoredPreferences()

    def _write(self, updates: Dict[str, Any]) -> bool:
        # Whole-record rewrite; an unreadable record is left untouched
        try:
            current = self._read()
        except STORAGE_ERRORS as e:
            log_action(self.logger, "error", f"Skipping preference write, record unreadable: {e}",
                       action="save_preferences", extra={"fields": sorted(updates)})
            return False

        record = {"user": current.identity, "dark_mode": current.dark_mode}
        record.update(updates)
        try:
            self.storage.save(self.table, self.record_id, record)
        except STORAGE_ERRORS as e:
            log_action(self.logger, "error", f"Could not write preferences: {e}",
                       action="save_preferences", extra={"fields": sorted(updates)})
            return False
        return True

    def save_identity(self, identity: Optional[str]) -> bool:
        return self._write({"user": identity})

    def save_dark_mode(self, dark_mode: bool) -> bool:
        return self._write({"dark_mode": bool(dark_mode)})

    # Event hooks

    def _on_logged_in(self, event: EventPayload) -> None:
        self.save_identity(event.data.get("identity"))

    def _on_logged_out(self, event: EventPayload) -> None:
        self.save_identity(None)

    def _on_dark_mode_changed(self, event: EventPayload) -> None:
        self.save_dark_mode(event.data.get("dark_mode", False))

    def _hooks(self):
        return (
            (SessionEvent.LOGGED_IN, self._on_logged_in),
            (SessionEvent.LOGGED_OUT, self._on_logged_out),
            (SessionEvent.DARK_MODE_CHANGED, self._on_dark_mode_changed),
        )

    def attach(self, dispatcher: EventDispatcher) -> None:
        """Write the record back whenever login state or dark mode changes"""
        for event_type, handler in self._hooks():
            dispatcher.subscribe(event_type, handler)

    def detach(self, dispatcher: EventDispatcher) -> None:
        """Stop writing back, e.g. before the storage is closed"""
        for event_type, handler in self._hooks():
            dispatcher.unsubscribe(event_type, handler)
