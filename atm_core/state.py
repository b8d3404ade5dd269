"""
Account Transaction State Machine

The teller's financial rules as a pure transition function. An
AccountState value goes in together with an Action, and a TransitionResult
comes out carrying the next state and the outcome. Rejected actions return
the input state object untouched, so a failed validation can never leave a
half-applied update behind.

Nothing here performs I/O. Logging, events and the preference cache are
layered on top by the session host.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Union

from .currency import Money, Currency, parse_amount, MAX_AMOUNT_LENGTH


class ActionType(Enum):
    """User-initiated requests understood by the state machine"""
    LOGIN = "login"
    LOGOUT = "logout"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SET_DAILY_LIMIT = "set_daily_limit"
    RESET_DAILY_LIMIT = "reset_daily_limit"
    TOGGLE_DARK_MODE = "toggle_dark_mode"


class Outcome(Enum):
    """Result of a transition"""
    OK = "ok"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
    NOT_AUTHENTICATED = "not_authenticated"


# Actions that move money or change limits need a logged-in actor
FINANCIAL_ACTIONS = frozenset({
    ActionType.DEPOSIT,
    ActionType.WITHDRAW,
    ActionType.SET_DAILY_LIMIT,
    ActionType.RESET_DAILY_LIMIT,
})


@dataclass(frozen=True)
class AccountDefaults:
    """Values a fresh session starts from"""
    balance: Money = Money(Decimal('2000'), Currency.USD)
    daily_limit: Money = Money(Decimal('500'), Currency.USD)

    def __post_init__(self):
        if self.balance.currency != self.daily_limit.currency:
            raise ValueError("Default balance and daily limit must share a currency")
        if self.balance.is_negative():
            raise ValueError("Default balance cannot be negative")
        if not self.daily_limit.is_positive():
            raise ValueError("Default daily limit must be positive")

    @property
    def currency(self) -> Currency:
        return self.balance.currency


DEFAULT_ACCOUNT = AccountDefaults()


@dataclass(frozen=True)
class AccountState:
    """
    Immutable snapshot of the teller session

    Every accepted transition produces a new instance; nothing mutates an
    existing one.
    """
    balance: Money
    daily_limit: Money
    daily_withdrawn: Money
    is_authenticated: bool = False
    identity: Optional[str] = None
    dark_mode: bool = False

    @classmethod
    def initial(cls, defaults: AccountDefaults = DEFAULT_ACCOUNT, dark_mode: bool = False) -> 'AccountState':
        """Unauthenticated state with default balance and limits"""
        return cls(
            balance=defaults.balance,
            daily_limit=defaults.daily_limit,
            daily_withdrawn=Money.zero(defaults.currency),
            dark_mode=dark_mode,
        )

    @property
    def currency(self) -> Currency:
        return self.balance.currency

    @property
    def remaining_daily_allowance(self) -> Money:
        """How much more may be withdrawn before the daily limit is hit"""
        remaining = self.daily_limit - self.daily_withdrawn
        return remaining if remaining.is_positive() else Money.zero(self.currency)

    def to_dict(self) -> Dict[str, Any]:
        """Render for API responses and logs"""
        return {
            "is_authenticated": self.is_authenticated,
            "identity": self.identity,
            "currency": self.currency.code,
            "balance": str(self.balance.amount),
            "daily_limit": str(self.daily_limit.amount),
            "daily_withdrawn": str(self.daily_withdrawn.amount),
            "remaining_daily_allowance": str(self.remaining_daily_allowance.amount),
            "dark_mode": self.dark_mode,
        }


AmountInput = Union[str, int, float, Decimal, Money, None]


@dataclass(frozen=True)
class Action:
    """
    A request submitted to the state machine

    ``amount`` is None when the entered value could not be parsed; the
    transition treats that the same as a non-positive amount.
    """
    type: ActionType
    amount: Optional[Money] = None
    identity: Optional[str] = None
    raw_amount: Optional[str] = field(default=None, compare=False)

    @classmethod
    def _with_amount(cls, action_type: ActionType, value: AmountInput,
                     currency: Currency, max_length: int) -> 'Action':
        return cls(
            type=action_type,
            amount=parse_amount(value, currency, max_length),
            raw_amount=None if value is None else str(value),
        )

    @classmethod
    def login(cls, identity: str) -> 'Action':
        return cls(type=ActionType.LOGIN, identity=identity)

    @classmethod
    def logout(cls) -> 'Action':
        return cls(type=ActionType.LOGOUT)

    @classmethod
    def deposit(cls, amount: AmountInput, currency: Currency = Currency.USD,
                max_length: int = MAX_AMOUNT_LENGTH) -> 'Action':
        return cls._with_amount(ActionType.DEPOSIT, amount, currency, max_length)

    @classmethod
    def withdraw(cls, amount: AmountInput, currency: Currency = Currency.USD,
                 max_length: int = MAX_AMOUNT_LENGTH) -> 'Action':
        return cls._with_amount(ActionType.WITHDRAW, amount, currency, max_length)

    @classmethod
    def set_daily_limit(cls, limit: AmountInput, currency: Currency = Currency.USD,
                        max_length: int = MAX_AMOUNT_LENGTH) -> 'Action':
        return cls._with_amount(ActionType.SET_DAILY_LIMIT, limit, currency, max_length)

    @classmethod
    def reset_daily_limit(cls) -> 'Action':
        return cls(type=ActionType.RESET_DAILY_LIMIT)

    @classmethod
    def toggle_dark_mode(cls) -> 'Action':
        return cls(type=ActionType.TOGGLE_DARK_MODE)


class TransitionResult(NamedTuple):
    state: AccountState
    outcome: Outcome

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.OK


def _valid_amount(action: Action, state: AccountState) -> Optional[Money]:
    """Return the action amount if it is usable against this state"""
    amount = action.amount
    if amount is None or amount.currency != state.currency:
        return None
    if not amount.is_positive():
        return None
    return amount


def transition(
    state: AccountState,
    action: Action,
    defaults: AccountDefaults = DEFAULT_ACCOUNT
) -> TransitionResult:
    """
    Apply one action to the state

    Checks run in a fixed order and the first failure wins:
    authentication, amount validity, sufficient funds, daily limit.
    """
    kind = action.type

    if kind is ActionType.LOGIN:
        if state.is_authenticated and state.identity != action.identity:
            fresh = AccountState.initial(defaults, dark_mode=state.dark_mode)
            return TransitionResult(
                replace(fresh, is_authenticated=True, identity=action.identity), Outcome.OK
            )
        return TransitionResult(
            replace(state, is_authenticated=True, identity=action.identity), Outcome.OK
        )

    if kind is ActionType.LOGOUT:
        return TransitionResult(AccountState.initial(defaults, dark_mode=state.dark_mode), Outcome.OK)

    if kind is ActionType.TOGGLE_DARK_MODE:
        return TransitionResult(replace(state, dark_mode=not state.dark_mode), Outcome.OK)

    if kind in FINANCIAL_ACTIONS and not state.is_authenticated:
        return TransitionResult(state, Outcome.NOT_AUTHENTICATED)

    if kind is ActionType.RESET_DAILY_LIMIT:
        return TransitionResult(replace(state, daily_limit=defaults.daily_limit), Outcome.OK)

    amount = _valid_amount(action, state)
    if amount is None:
        return TransitionResult(state, Outcome.INVALID_AMOUNT)

    try:
        return _apply_amount(state, kind, amount)
    except InvalidOperation:
        # Sum too large for the decimal context
        return TransitionResult(state, Outcome.INVALID_AMOUNT)


def _apply_amount(state: AccountState, kind: ActionType, amount: Money) -> TransitionResult:
    if kind is ActionType.DEPOSIT:
        return TransitionResult(replace(state, balance=state.balance + amount), Outcome.OK)

    if kind is ActionType.SET_DAILY_LIMIT:
        return TransitionResult(replace(state, daily_limit=amount), Outcome.OK)

    # WITHDRAW
    if amount > state.balance:
        return TransitionResult(state, Outcome.INSUFFICIENT_FUNDS)
    withdrawn = state.daily_withdrawn + amount
    if withdrawn > state.daily_limit:
        return TransitionResult(state, Outcome.DAILY_LIMIT_EXCEEDED)
    return TransitionResult(
        replace(state, balance=state.balance - amount, daily_withdrawn=withdrawn),
        Outcome.OK,
    )
