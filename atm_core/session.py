"""
Teller Session Module

Owns the single live AccountState of a teller session. Actions are applied
one at a time under a lock, so every transition sees the latest committed
state. Once a transition commits, the session logs it and publishes events;
subscribers (the preference cache, for one) do their I/O from there, outside
the pure state machine.
"""

import threading
from typing import Optional

from .currency import MAX_AMOUNT_LENGTH
from .events import EventDispatcher, EventPayload, SessionEvent
from .keypad import AmountEntry
from .logging_config import get_logger, log_action
from .preferences import PreferenceStore
from .state import (
    AccountDefaults, AccountState, Action, ActionType, AmountInput, Outcome,
    TransitionResult, DEFAULT_ACCOUNT, transition
)


_REJECTION_MESSAGES = {
    Outcome.INVALID_AMOUNT: "Please enter a valid amount.",
    Outcome.INSUFFICIENT_FUNDS: "Insufficient funds.",
    Outcome.DAILY_LIMIT_EXCEEDED: "Daily withdrawal limit exceeded.",
    Outcome.NOT_AUTHENTICATED: "Please log in.",
}


_ENTRY_ACTIONS = {
    ActionType.DEPOSIT: Action.deposit,
    ActionType.WITHDRAW: Action.withdraw,
    ActionType.SET_DAILY_LIMIT: Action.set_daily_limit,
}


def rejection_message(result: TransitionResult, action: Action) -> Optional[str]:
    """User-facing text for a rejected action, None if it was accepted"""
    if result.accepted:
        return None
    if result.outcome is Outcome.INVALID_AMOUNT and action.type is ActionType.SET_DAILY_LIMIT:
        return "Please enter a valid limit."
    return _REJECTION_MESSAGES[result.outcome]


class AtmSession:
    """
    Serializing host around the transition function
    """

    def __init__(
        self,
        defaults: AccountDefaults = DEFAULT_ACCOUNT,
        dispatcher: Optional[EventDispatcher] = None,
        session_id: str = "teller-1",
        max_amount_length: int = MAX_AMOUNT_LENGTH
    ):
        self.defaults = defaults
        self.dispatcher = dispatcher or EventDispatcher()
        self.session_id = session_id
        self.max_amount_length = max_amount_length
        self.logger = get_logger("atm.session")
        self._state = AccountState.initial(defaults)
        self._lock = threading.RLock()

    @classmethod
    def restore(
        cls,
        preferences: PreferenceStore,
        defaults: AccountDefaults = DEFAULT_ACCOUNT,
        dispatcher: Optional[EventDispatcher] = None,
        session_id: str = "teller-1",
        max_amount_length: int = MAX_AMOUNT_LENGTH
    ) -> 'AtmSession':
        """
        Start a session from the preference cache

        A stored identity is replayed as LOGIN and a stored dark-mode flag as
        TOGGLE_DARK_MODE. The cache's write-back hook is attached afterwards
        so the replay does not rewrite what was just read.
        """
        session = cls(defaults, dispatcher, session_id, max_amount_length)
        stored = preferences.load()
        if stored.identity:
            session.dispatch(Action.login(stored.identity))
        if stored.dark_mode:
            session.dispatch(Action.toggle_dark_mode())
        preferences.attach(session.dispatcher)

        log_action(
            session.logger, "info", "Session restored",
            identity=stored.identity, action="restore",
            session_id=session_id, extra={"dark_mode": stored.dark_mode}
        )
        return session

    @property
    def state(self) -> AccountState:
        return self._state

    def dispatch(self, action: Action) -> TransitionResult:
        """Apply an action, commit the result and notify subscribers"""
        with self._lock:
            previous = self._state
            result = transition(previous, action, self.defaults)
            self._state = result.state
            self._after_commit(previous, action, result)
        return result

    def _after_commit(self, previous: AccountState, action: Action, result: TransitionResult) -> None:
        current = result.state
        extra = {"amount": action.raw_amount} if action.raw_amount is not None else None

        if result.accepted:
            log_action(
                self.logger, "info", f"{action.type.value} accepted",
                identity=current.identity or previous.identity, action=action.type.value,
                outcome=result.outcome.value, session_id=self.session_id, extra=extra
            )
        else:
            log_action(
                self.logger, "warning", f"{action.type.value} rejected: {result.outcome.value}",
                identity=previous.identity, action=action.type.value,
                outcome=result.outcome.value, session_id=self.session_id, extra=extra
            )
            self._publish(SessionEvent.ACTION_REJECTED, {
                "action": action.type.value,
                "outcome": result.outcome.value,
            })
            return

        if current != previous:
            self._publish(SessionEvent.STATE_CHANGED, {
                "action": action.type.value,
                "state": current.to_dict(),
            })
        if action.type is ActionType.LOGIN:
            self._publish(SessionEvent.LOGGED_IN, {"identity": current.identity})
        elif action.type is ActionType.LOGOUT:
            self._publish(SessionEvent.LOGGED_OUT, {"identity": previous.identity})
        if current.dark_mode != previous.dark_mode:
            self._publish(SessionEvent.DARK_MODE_CHANGED, {"dark_mode": current.dark_mode})

    def _publish(self, event_type: SessionEvent, data: dict) -> None:
        self.dispatcher.publish(EventPayload(event_type=event_type, session_id=self.session_id, data=data))

    # Convenience wrappers used by the presentation layer

    def login(self, identity: str) -> TransitionResult:
        return self.dispatch(Action.login(identity))

    def logout(self) -> TransitionResult:
        return self.dispatch(Action.logout())

    def deposit(self, amount: AmountInput) -> TransitionResult:
        return self.dispatch(Action.deposit(amount, self.defaults.currency, self.max_amount_length))

    def withdraw(self, amount: AmountInput) -> TransitionResult:
        return self.dispatch(Action.withdraw(amount, self.defaults.currency, self.max_amount_length))

    def set_daily_limit(self, limit: AmountInput) -> TransitionResult:
        return self.dispatch(Action.set_daily_limit(limit, self.defaults.currency, self.max_amount_length))

    def reset_daily_limit(self) -> TransitionResult:
        return self.dispatch(Action.reset_daily_limit())

    def toggle_dark_mode(self) -> TransitionResult:
        return self.dispatch(Action.toggle_dark_mode())

    # Keypad entry

    def new_entry(self) -> AmountEntry:
        return AmountEntry(self.max_amount_length)

    def submit_entry(self, action_type: ActionType, entry: AmountEntry) -> TransitionResult:
        """
        Submit the keypad text as a deposit, withdrawal or new limit

        The entry is emptied only when the action is accepted, so a rejected
        amount stays on screen for correction.
        """
        factory = _ENTRY_ACTIONS.get(action_type)
        if factory is None:
            raise ValueError(f"{action_type.value} does not take an amount")
        result = self.dispatch(factory(entry.text, self.defaults.currency, self.max_amount_length))
        if result.accepted:
            entry.clear()
        return result
