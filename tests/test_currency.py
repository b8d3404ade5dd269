"""
Test suite for currency module

Tests Money arithmetic and precision, and the strict parsing applied to
amounts typed at the teller.
"""

import pytest
from decimal import Decimal

from atm_core.currency import (
    Money, Currency, MAX_AMOUNT_LENGTH, decimal_from_string, parse_amount
)


class TestMoney:
    """Test Money class operations"""

    def test_money_creation(self):
        """Amounts are rounded to the currency precision"""
        money = Money(Decimal('100.50'), Currency.USD)
        assert money.amount == Decimal('100.50')
        assert money.currency == Currency.USD

        assert Money(Decimal('100.555'), Currency.USD).amount == Decimal('100.56')
        assert Money(Decimal('100.7'), Currency.JPY).amount == Decimal('101')

    def test_non_decimal_input_converted(self):
        assert Money(10, Currency.USD).amount == Decimal('10.00')
        assert Money('3.333', Currency.USD).amount == Decimal('3.33')

    def test_zero(self):
        assert Money.zero(Currency.GBP).is_zero()
        assert Money.zero(Currency.GBP).currency == Currency.GBP

    def test_money_arithmetic(self):
        money1 = Money(Decimal('100.50'), Currency.USD)
        money2 = Money(Decimal('50.25'), Currency.USD)

        assert (money1 + money2).amount == Decimal('150.75')
        assert (money1 - money2).amount == Decimal('50.25')
        assert (money2 - money1).is_negative()

    def test_money_comparison(self):
        money1 = Money(Decimal('100.00'), Currency.USD)
        money2 = Money(Decimal('50.00'), Currency.USD)
        money3 = Money(Decimal('100'), Currency.USD)

        assert money1 == money3
        assert money1 != money2
        assert money1 > money2
        assert money2 < money1
        assert money1 >= money3
        assert money1 <= money3
        assert money1 != Decimal('100.00')

    def test_money_is_hashable(self):
        assert len({Money(Decimal('1'), Currency.USD), Money(Decimal('1.00'), Currency.USD)}) == 1

    def test_money_currency_mismatch(self):
        usd_money = Money(Decimal('100.00'), Currency.USD)
        eur_money = Money(Decimal('100.00'), Currency.EUR)

        with pytest.raises(ValueError, match="Cannot add USD and EUR"):
            usd_money + eur_money

        with pytest.raises(ValueError, match="Cannot subtract EUR from USD"):
            usd_money - eur_money

        with pytest.raises(ValueError, match="Cannot compare USD and EUR"):
            usd_money < eur_money

    def test_money_state_checks(self):
        zero_money = Money(Decimal('0.00'), Currency.USD)
        positive_money = Money(Decimal('100.50'), Currency.USD)
        negative_money = Money(Decimal('-50.25'), Currency.USD)

        assert zero_money.is_zero()
        assert not zero_money.is_positive()
        assert not zero_money.is_negative()
        assert positive_money.is_positive()
        assert negative_money.is_negative()

    def test_to_string(self):
        assert Money(Decimal('1234.5'), Currency.USD).to_string() == "USD 1,234.50"
        assert Money(Decimal('1234'), Currency.JPY).to_string() == "JPY 1,234"


class TestDecimalFromString:
    """Strict parsing of entered text"""

    @pytest.mark.parametrize("text,expected", [
        ("12", Decimal("12")),
        ("12.5", Decimal("12.5")),
        (".5", Decimal("0.5")),
        ("5.", Decimal("5")),
        ("-3", Decimal("-3")),
        ("  42  ", Decimal("42")),
    ])
    def test_valid(self, text, expected):
        assert decimal_from_string(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "abc", "1e3", "NaN", "Infinity", "1,000", "$10", "1.2.3", "."])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            decimal_from_string(text)

    def test_non_string_rejected(self):
        with pytest.raises(ValueError, match="non-empty string"):
            decimal_from_string(None)


class TestParseAmount:
    """Conversion of user input into Money"""

    def test_cap_is_eight(self):
        assert MAX_AMOUNT_LENGTH == 8

    def test_text(self):
        assert parse_amount("250") == Money(Decimal('250'), Currency.USD)
        assert parse_amount("250", Currency.GBP).currency == Currency.GBP

    def test_parse_failures_return_none(self):
        assert parse_amount("abc") is None
        assert parse_amount("") is None
        assert parse_amount(None) is None
        assert parse_amount(True) is None
        assert parse_amount(object()) is None

    def test_length_cap(self):
        assert parse_amount("99999999") is not None
        assert parse_amount("999999999") is None
        assert parse_amount("  1234  ") is not None
        assert parse_amount("123", max_length=2) is None

    def test_sign_not_checked(self):
        assert parse_amount("-5").is_negative()
        assert parse_amount("0").is_zero()

    def test_numbers(self):
        assert parse_amount(Decimal("1.00")).amount == Decimal("1.00")
        assert parse_amount(7).amount == Decimal("7.00")
        assert parse_amount(0.1).amount == Decimal("0.10")

    def test_non_finite(self):
        assert parse_amount(Decimal("NaN")) is None
        assert parse_amount(Decimal("-Infinity")) is None
        assert parse_amount(float("inf")) is None

    def test_money_must_match_currency(self):
        eur = Money(Decimal("5"), Currency.EUR)
        assert parse_amount(eur, Currency.EUR) is eur
        assert parse_amount(eur, Currency.USD) is None

    def test_oversized_numbers(self):
        assert parse_amount(Decimal("1e40")) is None
        assert parse_amount(Decimal("99999999999999999999999999")) is None
        assert parse_amount(10 ** 8) is None
        assert parse_amount(10 ** 8 - 1) is not None
        assert parse_amount(Money(Decimal("1e9"), Currency.USD)) is None

    @pytest.mark.parametrize("value", ["0.005", "1.005", "0.004", Decimal("1.005"), 2.345])
    def test_sub_cent_amounts_rejected(self, value):
        assert parse_amount(value) is None

    def test_trailing_zeros_are_exact(self):
        assert parse_amount("1.000") == Money(Decimal("1"), Currency.USD)

    def test_yen_has_no_fraction(self):
        assert parse_amount("150", Currency.JPY).amount == Decimal("150")
        assert parse_amount("1.5", Currency.JPY) is None
