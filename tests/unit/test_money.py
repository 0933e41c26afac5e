"""Unit tests for the Money value."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from household_ledger.lib.errors import (
    InvalidExchangeRateError,
    MissingExchangeRateError,
    ValidationError,
)
from household_ledger.lib.money import Money, currency_decimals, format_currency


@pytest.mark.unit
class TestMoneyConstruction:
    """Test suite for building Money values."""

    def test_currency_is_normalised(self):
        """Currency codes are upper-cased and trimmed."""
        assert Money("10", " usd ").currency == "USD"

    def test_float_input_keeps_decimal_text(self):
        """Floats go through their text form, not their binary value."""
        assert Money(0.1, "USD").amount == Decimal("0.1")

    def test_invalid_amount_rejected(self):
        """Non-numeric amounts raise ValidationError."""
        with pytest.raises(ValidationError, match="Invalid amount"):
            Money("ten", "USD")

    def test_money_is_immutable(self):
        """Money values cannot be modified in place."""
        money = Money("10", "USD")
        with pytest.raises(FrozenInstanceError):
            money.amount = Decimal("20")  # type: ignore[misc]

    def test_zero(self):
        """zero() builds an empty amount in the currency."""
        assert Money.zero("EUR").is_zero()
        assert Money.zero("EUR").currency == "EUR"


@pytest.mark.unit
class TestMoneyArithmetic:
    """Test suite for Money arithmetic."""

    def test_same_currency_addition_is_exact(self):
        """0.1 + 0.2 is exactly 0.3."""
        total = Money("0.1", "USD").add(Money("0.2", "USD"))
        assert total.amount == Decimal("0.3")
        assert total.currency == "USD"

    def test_subtract_and_operators(self):
        """Operators mirror the named methods."""
        a = Money("100", "JPY")
        b = Money("30", "JPY")
        assert (a - b).amount == Decimal("70")
        assert (a + b).amount == Decimal("130")
        assert (-a).amount == Decimal("-100")

    def test_cross_currency_add_with_rate(self):
        """The other operand is converted into this currency."""
        total = Money("100", "USD").add(Money("50", "EUR"), rate="1.10")
        assert total.amount == Decimal("155")
        assert total.currency == "USD"

    def test_cross_currency_without_rate(self):
        """Mixing currencies without a rate raises MissingExchangeRateError."""
        with pytest.raises(MissingExchangeRateError, match="EUR to USD"):
            Money("100", "USD").add(Money("50", "EUR"))
        with pytest.raises(MissingExchangeRateError):
            Money("100", "USD").subtract(Money("50", "EUR"))

    def test_non_positive_rate_rejected(self):
        """Zero and negative rates are invalid."""
        with pytest.raises(InvalidExchangeRateError):
            Money("100", "USD").add(Money("50", "EUR"), rate=0)
        with pytest.raises(InvalidExchangeRateError):
            Money("100", "USD").convert_to("JPY", rate="-150")

    def test_multiply_and_divide(self):
        """Scaling keeps the currency."""
        assert Money("10", "USD").multiply(3).amount == Decimal("30")
        assert Money("10", "USD").divide(4).amount == Decimal("2.5")

    def test_divide_by_zero(self):
        """Division by zero is a validation error."""
        with pytest.raises(ValidationError, match="divide"):
            Money("10", "USD").divide(0)

    def test_intermediate_results_not_rounded(self):
        """Arithmetic keeps more digits than the display precision."""
        third = Money("1", "USD").divide(3)
        assert third.amount == Decimal("0.3333333333333333333333333333")


@pytest.mark.unit
class TestMoneyConversion:
    """Test suite for convert_to."""

    def test_convert_with_rate(self):
        """Amount is multiplied by the rate."""
        converted = Money("10", "USD").convert_to("JPY", "150")
        assert converted.amount == Decimal("1500")
        assert converted.currency == "JPY"

    def test_convert_to_same_currency_ignores_rate(self):
        """Converting to the own currency returns the value unchanged."""
        money = Money("10", "USD")
        assert money.convert_to("usd", rate="999") is money

    def test_convert_without_rate(self):
        """Missing rate raises."""
        with pytest.raises(MissingExchangeRateError):
            Money("10", "USD").convert_to("JPY")


@pytest.mark.unit
class TestMoneyComparison:
    """Test suite for comparisons."""

    def test_equals_requires_same_currency(self):
        """Equal magnitudes in different currencies are not equal."""
        assert Money("1", "USD").equals(Money("1.00", "USD"))
        assert not Money("1", "USD").equals(Money("1", "EUR"))

    def test_cross_currency_comparison_with_rate(self):
        """Comparisons convert the other operand."""
        usd = Money("100", "USD")
        jpy = Money("10000", "JPY")
        assert usd.greater_than(jpy, rate="0.0067")
        assert not usd.less_than(jpy, rate="0.0067")

    def test_cross_currency_comparison_without_rate(self):
        """Comparisons without a rate raise."""
        with pytest.raises(MissingExchangeRateError):
            Money("100", "USD").greater_than(Money("1", "JPY"))

    def test_sign_checks(self):
        """is_zero and is_negative."""
        assert Money("0.00", "USD").is_zero()
        assert Money("-0.01", "USD").is_negative()
        assert not Money("0", "USD").is_negative()


@pytest.mark.unit
class TestMoneyFormatting:
    """Test suite for display formatting."""

    def test_usd_en_us(self):
        """Two fraction digits with grouping."""
        assert Money("1234.5", "USD").format("en-US") == "$1,234.50"

    def test_jpy_has_no_fraction_digits(self):
        """Yen rounds half-up to whole units."""
        assert Money("1234.5", "JPY").format() == "¥1,235"
        assert Money("2.5", "JPY").format() == "¥3"

    def test_rounding_is_half_up(self):
        """Half values round away from zero, not to even."""
        assert Money("2.345", "USD").format("en-US") == "$2.35"
        assert Money("2.125", "EUR").format("en-GB") == "€2.13"

    def test_negative_amount(self):
        """Sign goes before the symbol."""
        assert Money("-1234.5", "USD").format("en-US") == "-$1,234.50"

    def test_symbol_after_locales(self):
        """European locales swap separators and trail the symbol."""
        assert Money("1234.5", "EUR").format("de-DE") == "1.234,50 €"
        assert Money("1234.5", "EUR").format("fr-FR") == "1 234,50 €"

    def test_unknown_currency_falls_back(self):
        """Unknown currencies render as amount and code."""
        assert Money("12.5", "XTS").format() == "12.5 XTS"

    def test_unknown_locale_uses_default(self):
        """Unknown locales fall back to the default conventions."""
        assert Money("1234.5", "USD").format("xx-XX") == "$1,234.50"

    def test_format_currency_helper(self):
        """format_currency formats bare amounts."""
        assert format_currency(Decimal("1500"), "JPY") == "¥1,500"

    def test_currency_decimals(self):
        """Fraction digits come from the currency table."""
        assert currency_decimals("JPY") == 0
        assert currency_decimals("usd") == 2
        assert currency_decimals("XTS") == 2

    def test_quantize(self):
        """quantize rounds to the currency's digits."""
        assert Money("1.005", "USD").quantize().amount == Decimal("1.01")
        assert Money("1.23456", "USD").quantize(3).amount == Decimal("1.235")

    def test_serialisation(self):
        """as_dict and str keep the exact amount."""
        money = Money("10.50", "USD")
        assert money.as_dict() == {"amount": "10.50", "currency": "USD"}
        assert str(money) == "10.50 USD"
