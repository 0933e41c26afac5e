"""Unit tests for the card-type policy."""

from decimal import Decimal

import pytest

from household_ledger.lib.errors import InvalidCardConfigurationError
from household_ledger.models import CardType
from household_ledger.services.card_policy import validate_card_configuration


@pytest.mark.unit
class TestCreditPolicy:
    """CREDIT cards."""

    def test_positive_limit_accepted(self):
        """A positive credit limit passes."""
        result = validate_card_configuration(CardType.CREDIT, {"credit_limit": Decimal("300000")})
        assert result["credit_limit"] == Decimal("300000")

    @pytest.mark.parametrize("limit", [None, Decimal("0"), Decimal("-1")])
    def test_missing_or_non_positive_limit(self, limit):
        """The error names credit_limit."""
        with pytest.raises(InvalidCardConfigurationError, match="credit_limit") as exc_info:
            validate_card_configuration(CardType.CREDIT, {"credit_limit": limit})
        assert exc_info.value.field == "credit_limit"


@pytest.mark.unit
class TestDebitPolicy:
    """DEBIT cards."""

    def test_auto_transfer_requires_linked_account(self):
        """Auto transfer without a linked account is rejected."""
        with pytest.raises(InvalidCardConfigurationError) as exc_info:
            validate_card_configuration(CardType.DEBIT, {"auto_transfer_enabled": True})
        assert exc_info.value.field == "linked_account_id"

    def test_auto_transfer_with_linked_account(self):
        """Linked account satisfies the rule; balance defaults to zero."""
        result = validate_card_configuration(
            CardType.DEBIT, {"auto_transfer_enabled": True, "linked_account_id": "acc-1"}
        )
        assert result["balance"] == Decimal("0")

    def test_plain_debit_card(self):
        """No auto transfer needs no linked account."""
        result = validate_card_configuration("DEBIT", {"auto_transfer_enabled": False})
        assert result["balance"] == Decimal("0")


@pytest.mark.unit
class TestPrepaidPolicy:
    """PREPAID cards."""

    def test_balance_defaults_to_zero(self):
        """A new prepaid card starts empty."""
        assert validate_card_configuration(CardType.PREPAID, {})["balance"] == Decimal("0")

    def test_given_balance_kept(self):
        """An opening balance is preserved."""
        result = validate_card_configuration(CardType.PREPAID, {"balance": Decimal("5000")})
        assert result["balance"] == Decimal("5000")

    def test_negative_balance_rejected(self):
        """Prepaid balances cannot start negative."""
        with pytest.raises(InvalidCardConfigurationError, match="balance"):
            validate_card_configuration(CardType.PREPAID, {"balance": Decimal("-1")})

    def test_input_not_mutated(self):
        """Defaults are applied to a copy."""
        fields: dict = {}
        validate_card_configuration(CardType.PREPAID, fields)
        assert fields == {}


@pytest.mark.unit
class TestPostpayPolicy:
    """POSTPAY cards."""

    def test_positive_monthly_limit(self):
        """A positive monthly limit passes."""
        validate_card_configuration(CardType.POSTPAY, {"monthly_limit": Decimal("50000")})

    @pytest.mark.parametrize("limit", [None, Decimal("0")])
    def test_missing_monthly_limit(self, limit):
        """The error names monthly_limit."""
        with pytest.raises(InvalidCardConfigurationError) as exc_info:
            validate_card_configuration(CardType.POSTPAY, {"monthly_limit": limit})
        assert exc_info.value.field == "monthly_limit"
