"""Integration tests for persisted exchange rates."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from household_ledger.lib.errors import InvalidCurrencyError, InvalidExchangeRateError
from household_ledger.lib.money import Money
from household_ledger.models import ExchangeRate
from household_ledger.services.exchange_rates import (
    list_latest_rates,
    load_rate_table,
    record_exchange_rates,
)


@pytest.mark.integration
class TestExchangeRateStore:
    """Test suite for recording and loading rates."""

    def test_record_and_load(self, session, currencies):
        """Stored rates build a table answering both directions."""
        record_exchange_rates(
            session, [{"from_currency": "usd", "to_currency": "jpy", "rate": "150"}]
        )
        table = load_rate_table(session)
        assert table.get_rate("USD", "JPY") == Decimal("150")
        assert table.convert(Money("3000", "JPY"), "USD").amount == Decimal("20")

    def test_latest_observation_wins(self, session, currencies):
        """The table uses the newest row for a pair."""
        record_exchange_rates(
            session,
            [
                {
                    "from_currency": "USD",
                    "to_currency": "JPY",
                    "rate": "150",
                    "observed_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
                },
                {
                    "from_currency": "EUR",
                    "to_currency": "JPY",
                    "rate": "160",
                    "observed_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
                },
            ],
        )
        record_exchange_rates(
            session,
            [
                {
                    "from_currency": "USD",
                    "to_currency": "JPY",
                    "rate": "155",
                    "observed_at": datetime(2024, 1, 2, tzinfo=timezone.utc),
                }
            ],
        )
        assert load_rate_table(session).get_rate("USD", "JPY") == Decimal("155")

        latest = list_latest_rates(session)
        assert [(r.from_currency, r.to_currency, r.rate) for r in latest] == [
            ("EUR", "JPY", Decimal("160")),
            ("USD", "JPY", Decimal("155")),
        ]

    def test_duplicate_pairs_in_batch(self, session, currencies):
        """The first entry of a repeated pair is kept."""
        rows = record_exchange_rates(
            session,
            [
                {"from_currency": "USD", "to_currency": "JPY", "rate": "150"},
                {"from_currency": "USD", "to_currency": "JPY", "rate": "151"},
            ],
        )
        assert len(rows) == 1
        assert rows[0].rate == Decimal("150")

    def test_unregistered_currency(self, session, currencies):
        """Both currencies must be registered."""
        with pytest.raises(InvalidCurrencyError):
            record_exchange_rates(
                session, [{"from_currency": "USD", "to_currency": "XTS", "rate": "1"}]
            )

    def test_non_positive_rate(self, session, currencies):
        """Zero rates are rejected and nothing is stored."""
        with pytest.raises(InvalidExchangeRateError):
            record_exchange_rates(
                session,
                [
                    {"from_currency": "USD", "to_currency": "JPY", "rate": "150"},
                    {"from_currency": "EUR", "to_currency": "JPY", "rate": "0"},
                ],
            )
        assert session.query(ExchangeRate).count() == 0
