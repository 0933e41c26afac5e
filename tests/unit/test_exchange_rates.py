"""Unit tests for the exchange rate table."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from household_ledger.lib.errors import InvalidCurrencyError, InvalidExchangeRateError
from household_ledger.lib.money import MONEY_CONTEXT, Money
from household_ledger.services.exchange_rates import (
    ExchangeRateTable,
    calculate_rate_change,
)
from household_ledger.services.schemas import ExchangeRateEntry


def entry(from_currency, to_currency, rate, observed_at=None):
    return ExchangeRateEntry(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=Decimal(rate),
        observed_at=observed_at,
    )


@pytest.fixture
def usd_jpy_table():
    """Table with USD->JPY 150."""
    return ExchangeRateTable([entry("USD", "JPY", "150")])


@pytest.mark.unit
class TestExchangeRateTable:
    """Test suite for ExchangeRateTable."""

    def test_direct_rate(self, usd_jpy_table):
        """Stored pair is returned as given."""
        assert usd_jpy_table.get_rate("USD", "JPY") == Decimal("150")

    def test_reciprocal_rate(self, usd_jpy_table):
        """The inverse pair is derived from every entry."""
        expected = MONEY_CONTEXT.divide(Decimal(1), Decimal(150))
        assert usd_jpy_table.get_rate("JPY", "USD") == expected
        assert usd_jpy_table.has_rate("jpy", "usd")

    @pytest.mark.parametrize(
        "pair, rate",
        [
            (("USD", "JPY"), "150"),
            (("JPY", "USD"), "0.0067"),
            (("EUR", "CNY"), "7.3"),
            (("GBP", "KRW"), "1234.5678"),
            (("THB", "EUR"), "0.02537"),
        ],
    )
    def test_rate_times_reciprocal_is_one(self, pair, rate):
        """Any stored rate multiplied by its derived inverse is 1 within precision."""
        base, quote = pair
        table = ExchangeRateTable([entry(base, quote, rate)])

        product = table.get_rate(base, quote) * table.get_rate(quote, base)
        assert abs(product - 1) < Decimal("1e-18")

    def test_same_currency_is_one(self):
        """A currency converts to itself at 1 even in an empty table."""
        assert ExchangeRateTable().get_rate("EUR", "EUR") == Decimal(1)

    def test_missing_pair(self, usd_jpy_table):
        """Unknown pairs return None."""
        assert usd_jpy_table.get_rate("EUR", "JPY") is None
        assert not usd_jpy_table.has_rate("EUR", "JPY")

    def test_latest_observation_wins(self):
        """A newer observation of the same pair replaces the older one."""
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = datetime(2024, 1, 2, tzinfo=timezone.utc)
        table = ExchangeRateTable(
            [entry("USD", "JPY", "155", later), entry("USD", "JPY", "150", earlier)]
        )
        assert table.get_rate("USD", "JPY") == Decimal("155")

    def test_direct_beats_reciprocal_at_same_time(self):
        """An explicitly observed pair is not overwritten by another entry's inverse."""
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        table = ExchangeRateTable(
            [entry("USD", "JPY", "150", at), entry("JPY", "USD", "0.0070", at)]
        )
        assert table.get_rate("USD", "JPY") == Decimal("150")
        assert table.get_rate("JPY", "USD") == Decimal("0.0070")

    def test_newer_reciprocal_beats_older_direct(self):
        """Recency decides before directness."""
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = datetime(2024, 1, 2, tzinfo=timezone.utc)
        table = ExchangeRateTable(
            [entry("JPY", "USD", "0.0070", earlier), entry("USD", "JPY", "160", later)]
        )
        assert table.get_rate("JPY", "USD") == MONEY_CONTEXT.divide(Decimal(1), Decimal(160))

    def test_update_replaces_whole_table(self, usd_jpy_table):
        """update_rates drops pairs absent from the new entries."""
        usd_jpy_table.update_rates([entry("EUR", "USD", "1.1")])
        assert not usd_jpy_table.has_rate("USD", "JPY")
        assert usd_jpy_table.get_rate("EUR", "USD") == Decimal("1.1")

    def test_invalid_rate_leaves_table_untouched(self, usd_jpy_table):
        """A rejected update does not publish a partial table."""
        bad = SimpleNamespace(from_currency="EUR", to_currency="USD", rate=Decimal("0"))
        with pytest.raises(InvalidExchangeRateError):
            usd_jpy_table.update_rates([entry("GBP", "USD", "1.3"), bad])
        assert usd_jpy_table.has_rate("USD", "JPY")
        assert not usd_jpy_table.has_rate("GBP", "USD")

    def test_same_currency_entries_are_ignored(self):
        """Identity entries add nothing."""
        table = ExchangeRateTable([SimpleNamespace(from_currency="USD", to_currency="USD", rate=2)])
        assert len(table) == 0
        assert table.get_rate("USD", "USD") == Decimal(1)

    def test_convert(self, usd_jpy_table):
        """convert applies the stored rate."""
        converted = usd_jpy_table.convert(Money("10", "USD"), "JPY")
        assert converted == Money(Decimal("1500"), "JPY")
        assert usd_jpy_table.convert(Money("10", "EUR"), "JPY") is None

    def test_available_pairs(self, usd_jpy_table):
        """Both directions are listed, sorted."""
        assert usd_jpy_table.available_pairs() == [("JPY", "USD"), ("USD", "JPY")]
        assert len(usd_jpy_table) == 2


@pytest.mark.unit
class TestExchangeRateEntry:
    """Test suite for the rate entry payload."""

    def test_codes_are_normalised(self):
        """Currency codes are upper-cased."""
        parsed = entry("usd", " jpy ", "150")
        assert (parsed.from_currency, parsed.to_currency) == ("USD", "JPY")

    def test_malformed_code_rejected(self):
        """Codes must be three letters."""
        with pytest.raises(InvalidCurrencyError):
            entry("US", "JPY", "150")


@pytest.mark.unit
class TestCalculateRateChange:
    """Test suite for calculate_rate_change."""

    def test_increase(self):
        """Change and percentage against the previous rate."""
        change, percent = calculate_rate_change("155", "150")
        assert change == Decimal("5")
        assert percent.quantize(Decimal("0.01")) == Decimal("3.33")

    def test_decrease(self):
        """A falling rate yields negative values."""
        change, percent = calculate_rate_change(Decimal("90"), Decimal("100"))
        assert change == Decimal("-10")
        assert percent == Decimal("-10")

    def test_previous_zero(self):
        """No percentage against a zero baseline."""
        change, percent = calculate_rate_change("5", "0")
        assert change == Decimal("5")
        assert percent == Decimal("0")
