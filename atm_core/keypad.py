"""
Keypad Amount Entry

Builds the amount text the way the teller screen does: digits pressed one
at a time, free typing that is only accepted while it still looks like a
number, and a hard cap on length. The result is raw text; turning it into
Money is left to the action constructors in ``atm_core.state``; the session
host submits an entry and empties it once the action is accepted.
"""

from typing import Union

from .currency import MAX_AMOUNT_LENGTH, decimal_from_string


class AmountEntry:
    """Amount buffer behind the teller keypad"""

    def __init__(self, max_length: int = MAX_AMOUNT_LENGTH):
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self._buffer = ""

    def __repr__(self) -> str:
        return f"AmountEntry({self._buffer!r}, max_length={self.max_length})"

    @property
    def text(self) -> str:
        return self._buffer

    def press(self, key: Union[int, str]) -> str:
        """
        Append one keypad digit

        Presses past the length cap are ignored. Returns the buffer.
        """
        digit = str(key)
        if len(digit) != 1 or not digit.isdigit():
            raise ValueError(f"Not a keypad digit: {key!r}")
        if len(self._buffer) < self.max_length:
            self._buffer += digit
        return self._buffer

    def type_text(self, text: str) -> bool:
        """
        Replace the buffer with typed text

        The edit is dropped (and False returned) if the text is too long or
        is not a number. An empty string is accepted so the field can be
        erased by typing.
        """
        if len(text) > self.max_length:
            return False
        if text:
            try:
                decimal_from_string(text)
            except ValueError:
                return False
        self._buffer = text
        return True

    def clear(self) -> None:
        self._buffer = ""
