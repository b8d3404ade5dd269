"""
Tests for keypad amount entry
"""

import pytest

from atm_core.keypad import AmountEntry
from atm_core.state import Action, ActionType


class TestAmountEntry:
    """Digit entry, typing and the length cap"""

    def test_press_builds_text(self):
        entry = AmountEntry()
        for key in (1, 2, 0):
            entry.press(key)
        assert entry.text == "120"

    def test_press_stops_at_cap(self):
        entry = AmountEntry()
        for _ in range(12):
            entry.press("9")
        assert entry.text == "99999999"
        assert len(entry.text) == 8

    def test_press_rejects_non_digits(self):
        entry = AmountEntry()
        with pytest.raises(ValueError):
            entry.press("Enter")
        with pytest.raises(ValueError):
            entry.press(12)

    def test_type_text_accepts_numbers(self):
        entry = AmountEntry()
        assert entry.type_text("12.50")
        assert entry.text == "12.50"

    def test_type_text_ignores_bad_edits(self):
        entry = AmountEntry()
        entry.type_text("40")
        assert not entry.type_text("40a")
        assert not entry.type_text("123456789")
        assert entry.text == "40"

    def test_type_empty_text_erases(self):
        entry = AmountEntry()
        entry.type_text("40")
        assert entry.type_text("")
        assert entry.text == ""

    def test_clear(self):
        entry = AmountEntry()
        entry.press(5)
        entry.clear()
        assert entry.text == ""

        entry.press(7)
        assert entry.text == "7"

    def test_custom_cap(self):
        entry = AmountEntry(max_length=3)
        for key in "12345":
            entry.press(key)
        assert entry.text == "123"
        with pytest.raises(ValueError):
            AmountEntry(max_length=0)

    def test_entry_feeds_an_action(self):
        entry = AmountEntry()
        for key in "300":
            entry.press(key)
        action = Action.withdraw(entry.text)
        assert action.type == ActionType.WITHDRAW
        assert str(action.amount.amount) == "300.00"
