"""
Money and Amount Parsing Module

Immutable Money values with ISO 4217 currency precision, plus the strict
parsing rules applied to amounts typed at the teller. NEVER uses float for
monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum
import re

# Set global decimal context for financial precision
getcontext().prec = 28

# Longest amount text the teller keypad accepts
MAX_AMOUNT_LENGTH = 8

# Plain decimal notation only: no exponents, separators or symbols
_AMOUNT_PATTERN = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$')


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation with currency and proper precision.
    Amounts are rounded to the currency precision on construction.
    """
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        rounded = self.amount.quantize(
            Decimal('0.1') ** self.currency.precision,
            rounding=ROUND_HALF_UP
        )
        object.__setattr__(self, 'amount', rounded)

    @classmethod
    def zero(cls, currency: Currency) -> 'Money':
        return cls(Decimal('0'), currency)

    def _check_currency(self, other: 'Money', verb: str) -> None:
        if self.currency != other.currency:
            raise ValueError(f"Cannot {verb} {self.currency.code} and {other.currency.code}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract {other.currency.code} from {self.currency.code}")
        return Money(self.amount - other.amount, self.currency)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')

    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def to_string(self) -> str:
        """Format for display"""
        if self.currency.precision == 0:
            return f"{self.currency.code} {self.amount:,.0f}"
        return f"{self.currency.code} {self.amount:,.{self.currency.precision}f}"


def decimal_from_string(value: str) -> Decimal:
    """
    Strictly convert entered text to Decimal

    Only plain decimal notation is accepted ("12", "12.5", ".5", "-3").
    Exponents, thousands separators, currency symbols, NaN and Infinity
    are rejected.

    Args:
        value: String representation of number

    Returns:
        Decimal value

    Raises:
        ValueError: If string is not a plain decimal number
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = value.strip()
    if not _AMOUNT_PATTERN.match(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    return Decimal(clean_value)


def _amount_fits(amount: Decimal, currency: Currency, max_length: int) -> bool:
    """Finite, at most ``max_length`` integer digits, no sub-unit fraction"""
    if not amount.is_finite():
        return False
    if amount.adjusted() >= max_length:
        return False
    return amount == amount.quantize(Decimal(1).scaleb(-currency.precision))


def parse_amount(
    value: Union[str, int, float, Decimal, Money, None],
    currency: Currency = Currency.USD,
    max_length: int = MAX_AMOUNT_LENGTH
) -> Optional[Money]:
    """
    Turn user input into Money, or None when it cannot be parsed

    The entered value is never rounded: anything finer than the currency's
    smallest unit ("0.005" for USD) is a parse failure, as is text longer
    than ``max_length`` after trimming or a number with more than
    ``max_length`` integer digits. Sign is not checked here; a parsed
    non-positive amount is returned as-is and rejected by the transition
    rules.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Money):
        if value.currency != currency:
            return None
        return value if _amount_fits(value.amount, currency, max_length) else None

    if isinstance(value, str):
        text = value.strip()
        if len(text) > max_length:
            return None
        try:
            amount = decimal_from_string(text)
        except ValueError:
            return None
    elif isinstance(value, (int, Decimal)):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        return None

    if not _amount_fits(amount, currency, max_length):
        return None
    return Money(amount, currency)
